"""
Clock offset probe — w32tm /stripchart against the domain controller.
"""

from __future__ import annotations

import logging
import re

from .base import BaseProbe, ProbeError

logger = logging.getLogger("ad_health_engine.probes.clock")

# "10:00:00, +00.0012345s" (also "o:+00.0012345s" without /dataonly)
_OFFSET_PATTERN = re.compile(r"(?:,|o:)\s*(?P<offset>[+-]?\d+(?:[.,]\d+)?)s\s*$")
_ERROR_PATTERN = re.compile(r",\s*(?:error|fehler)\b.*$", re.IGNORECASE)


def parse_stripchart(lines: list[str]) -> float:
    """Return the last sampled offset in seconds from w32tm /stripchart output."""
    offset = None
    error = None
    for line in lines:
        line = line.strip()
        match = _OFFSET_PATTERN.search(line)
        if match:
            offset = float(match.group("offset").replace(",", "."))
            continue
        if _ERROR_PATTERN.search(line):
            error = line
    if offset is None:
        raise ProbeError(error or "no offset sample in w32tm output")
    return offset


class ClockOffsetProbe(BaseProbe):
    name = "clock_offset_seconds"
    description = "Time offset between this machine and the DC (w32tm /stripchart)"

    async def measure(self, host: str) -> float:
        host = self.safe_host(host)
        output = await self.runner.run(
            ["w32tm", "/stripchart", f"/computer:{host}", "/samples:1", "/dataonly"],
            timeout=60,
        )
        if output.returncode != 0 and not output.stdout.strip():
            raise ProbeError(f"w32tm exited with {output.returncode}")
        return parse_stripchart(output.lines)
