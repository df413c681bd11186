"""
Async process runner for PowerShell cmdlets and native diagnostic tools.
Every command line passes the SafetyGuardian before it is spawned.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..safety.guardian import SafetyGuardian

logger = logging.getLogger("ad_health_engine.shell")


class CommandError(Exception):
    """Raised when a command cannot be started, times out or exits non-zero."""
    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


@dataclass
class CommandOutput:
    """Captured output of a finished process."""
    args: list[str]
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def lines(self) -> list[str]:
        return self.stdout.splitlines()


def decode_output(raw: bytes, fallback_encoding: str = "cp850") -> str:
    """Decode tool output: UTF-8 first, then the console's OEM code page."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        text = raw.decode(fallback_encoding, errors="replace")
    return text.replace("\x00", "")


class CommandRunner:
    """
    Runs read-only commands against domain controllers.

    powershell_json() wraps a pipeline in ConvertTo-Json and always returns a
    list of objects, since PowerShell collapses single-item arrays.
    """

    def __init__(
        self,
        guardian: SafetyGuardian,
        timeout: float = 300.0,
        powershell: str = "powershell",
        fallback_encoding: str = "cp850",
    ):
        self.guardian = guardian
        self.timeout = timeout
        self.powershell = powershell
        self.fallback_encoding = fallback_encoding
        self.commands_run = 0

    async def run(self, args: list[str], timeout: Optional[float] = None) -> CommandOutput:
        """Run a command and capture its output. Non-zero exit codes are returned, not raised."""
        self.guardian.validate_command(args)
        timeout = timeout or self.timeout
        logger.debug(f"Running: {' '.join(args)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandError(f"Failed to start {args[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise CommandError(f"{args[0]} timed out after {timeout:.0f}s")

        self.commands_run += 1
        return CommandOutput(
            args=list(args),
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=decode_output(stdout, self.fallback_encoding),
            stderr=decode_output(stderr, self.fallback_encoding),
        )

    async def run_powershell(self, script: str, timeout: Optional[float] = None) -> CommandOutput:
        """Run a PowerShell script; raise CommandError when it fails."""
        args = [
            self.powershell,
            "-NoProfile",
            "-NonInteractive",
            "-Command",
            f"$ErrorActionPreference = 'Stop'; {script}",
        ]
        output = await self.run(args, timeout=timeout)
        if output.returncode != 0:
            message = output.stderr.strip() or output.stdout.strip() or "no output"
            raise CommandError(
                f"PowerShell exited with {output.returncode}: {message[:300]}",
                returncode=output.returncode,
                stderr=output.stderr,
            )
        return output

    async def powershell_json(self, script: str, timeout: Optional[float] = None) -> list[dict[str, Any]]:
        """Run a PowerShell pipeline and parse its JSON output into a list of objects."""
        output = await self.run_powershell(
            f"{script} | ConvertTo-Json -Compress -Depth 4", timeout=timeout
        )
        raw = output.stdout.strip()
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CommandError(f"Unparseable PowerShell JSON output: {e}") from e
        if isinstance(data, dict):
            return [data]
        if isinstance(data, list):
            return [d if isinstance(d, dict) else {"value": d} for d in data]
        return [{"value": data}]

    async def powershell_scalar(self, script: str, timeout: Optional[float] = None) -> str:
        """Run a PowerShell expression and return the last non-empty output line."""
        output = await self.run_powershell(script, timeout=timeout)
        lines = [line.strip() for line in output.lines if line.strip()]
        if not lines:
            raise CommandError("PowerShell returned no output")
        return lines[-1]
