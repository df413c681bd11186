"""
Safety Guardian — Enforces strict read-only operation.
Validates every external command and HTTP request, blocks anything that could
change a domain controller, and logs safety events.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import PureWindowsPath
from typing import Optional

logger = logging.getLogger("ad_health_engine.safety")

# ─── Allowed executables ─────────────────────────────────────────────────────

ALLOWED_EXECUTABLES = {"powershell", "pwsh", "dcdiag", "w32tm"}

# w32tm is only used to measure offsets
W32TM_SAFE_SWITCHES = {"/stripchart", "/query", "/monitor"}
W32TM_BLOCKED_SWITCHES = {"/resync", "/config", "/register", "/unregister", "/tz"}

# dcdiag /fix and /repairs write to the directory
DCDIAG_BLOCKED_SWITCHES = {"/fix", "/repair"}

# ─── Blocked PowerShell patterns ─────────────────────────────────────────────

BLOCKED_SCRIPT_PATTERNS = [
    re.compile(r"\b(Set|New|Remove|Add|Clear|Enable|Disable|Move|Rename)-\w+", re.IGNORECASE),
    re.compile(r"\b(Restart|Stop|Start|Suspend|Resume)-(Service|Computer|Process)\b", re.IGNORECASE),
    re.compile(r"\bInvoke-(Expression|WebRequest|RestMethod)\b", re.IGNORECASE),
    re.compile(r"\biex\b", re.IGNORECASE),
    re.compile(r"\bOut-File\b", re.IGNORECASE),
]

_QUOTED_LITERAL = re.compile(r"'[^']*'")

WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# RFC 1123 host labels, optionally dotted, plus NetBIOS-style underscores
_HOST_PATTERN = re.compile(r"^(?=.{1,253}$)[A-Za-z0-9_](?:[A-Za-z0-9_\-]{0,62})(?:\.[A-Za-z0-9_\-]{1,63})*\.?$")


class SafetyViolation(Exception):
    """Raised when a write operation is attempted."""
    pass


class SafetyGuardian:
    """
    Validates every outbound command and HTTP request to ensure read-only operation.
    Maintains an audit log of all safety checks and violations.
    """

    def __init__(self):
        self.violations: list[dict] = []
        self.checks_performed: int = 0
        self.started_at: str = datetime.now(timezone.utc).isoformat()

    def validate_host(self, host: str) -> str:
        """Return the host name if it is safe to interpolate into a command line."""
        self.checks_performed += 1
        if not host or not _HOST_PATTERN.match(host):
            self._record_violation("host", repr(host), "Invalid host name")
            raise SafetyViolation(f"SAFETY VIOLATION: Invalid host name: {host!r}")
        return host

    def validate_command(self, args: list[str]) -> bool:
        """
        Validate that a command line is read-only.
        Returns True if safe, raises SafetyViolation if not.
        """
        self.checks_performed += 1
        if not args:
            raise SafetyViolation("SAFETY VIOLATION: Empty command line")

        exe = PureWindowsPath(args[0]).name.lower()
        if exe.endswith(".exe"):
            exe = exe[:-4]
        command = " ".join(args)

        if exe not in ALLOWED_EXECUTABLES:
            self._record_violation(exe, command, "Executable not on allow-list")
            raise SafetyViolation(f"SAFETY VIOLATION: Executable not allowed: {args[0]}")

        switches = {a.lower().split(":", 1)[0] for a in args[1:] if a.startswith("/")}

        if exe == "w32tm":
            if switches & W32TM_BLOCKED_SWITCHES or not switches & W32TM_SAFE_SWITCHES:
                self._record_violation(exe, command, "w32tm write switch blocked")
                raise SafetyViolation(f"SAFETY VIOLATION: w32tm write switch: {command}")

        if exe == "dcdiag" and switches & DCDIAG_BLOCKED_SWITCHES:
            self._record_violation(exe, command, "dcdiag repair switch blocked")
            raise SafetyViolation(f"SAFETY VIOLATION: dcdiag repair switch: {command}")

        if exe in ("powershell", "pwsh"):
            # Quoted literals (host names, filters) are data, not cmdlets
            script = _QUOTED_LITERAL.sub("''", command)
            for pattern in BLOCKED_SCRIPT_PATTERNS:
                match = pattern.search(script)
                if match:
                    self._record_violation(exe, command, f"Write cmdlet blocked: {match.group(0)}")
                    raise SafetyViolation(
                        f"SAFETY VIOLATION: Write cmdlet detected: {match.group(0)}"
                    )

        return True

    def validate_request(self, method: str, url: str, body: Optional[dict] = None) -> bool:
        """
        Validate that an HTTP request is read-only.
        Returns True if safe, raises SafetyViolation if not.
        """
        self.checks_performed += 1
        method_upper = method.upper()

        if method_upper in ("GET", "HEAD", "OPTIONS"):
            return True

        reason = "Write HTTP method blocked" if method_upper in WRITE_METHODS else "Unknown HTTP method"
        self._record_violation(method_upper, url, reason)
        raise SafetyViolation(f"SAFETY VIOLATION: {reason}: {method_upper} {url}")

    def _record_violation(self, kind: str, target: str, reason: str):
        """Record a safety violation for audit."""
        violation = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "kind": kind,
            "target": target,
            "reason": reason,
        }
        self.violations.append(violation)
        logger.critical(f"SAFETY VIOLATION: {reason} — {kind} {target}")

    def get_audit_record(self) -> dict:
        """Return the full safety audit record."""
        return {
            "safety_guardian": {
                "mode": "READ-ONLY",
                "started_at": self.started_at,
                "checks_performed": self.checks_performed,
                "violations_detected": len(self.violations),
                "violations": self.violations,
                "status": "CLEAN" if not self.violations else "VIOLATIONS_DETECTED",
            }
        }

    @staticmethod
    def print_banner():
        """Print the read-only banner."""
        print("=" * 75)
        print("  READ-ONLY DOMAIN CONTROLLER HEALTH CHECK -- NO CHANGES WILL BE MADE")
        print("  * Only query cmdlets, dcdiag and w32tm /stripchart are executed")
        print("  * dcdiag /fix, service control and time resync are blocked")
        print("  * Safety Guardian validates every command before execution")
        print("=" * 75)
