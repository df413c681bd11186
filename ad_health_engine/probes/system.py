"""
Operating-system probes — uptime and system-drive free space via CIM.
"""

from __future__ import annotations

import logging
import re

from .base import BaseProbe, ProbeError

logger = logging.getLogger("ad_health_engine.probes.system")

_BYTES_PER_GB = 1024 ** 3
_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:$")


def parse_number(text: str) -> float:
    """Parse a number printed by PowerShell, tolerating a decimal comma."""
    cleaned = text.strip().replace("\u00a0", "").replace(" ", "")
    if "," in cleaned and "." not in cleaned:
        cleaned = cleaned.replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        raise ProbeError(f"not a number: {text!r}")


class UptimeProbe(BaseProbe):
    name = "uptime_hours"
    description = "Hours since the last boot (Win32_OperatingSystem.LastBootUpTime)"

    async def measure(self, host: str) -> float:
        host = self.safe_host(host)
        script = (
            f"$os = Get-CimInstance -ClassName Win32_OperatingSystem -ComputerName '{host}'; "
            "[math]::Round(((Get-Date) - $os.LastBootUpTime).TotalHours, 2)"
        )
        value = parse_number(await self.runner.powershell_scalar(script))
        if value < 0:
            raise ProbeError(f"negative uptime {value}")
        return value


class FreeSpaceProbe(BaseProbe):
    name = "free_space_gb"
    description = "Free space on the system drive in GB (Win32_LogicalDisk)"

    async def measure(self, host: str) -> float:
        host = self.safe_host(host)
        drive = self.config.system_drive
        if not _DRIVE_PATTERN.match(drive):
            raise ProbeError(f"invalid drive {drive!r}")
        script = (
            f"Get-CimInstance -ClassName Win32_LogicalDisk -ComputerName '{host}' "
            f"-Filter \"DeviceID='{drive}'\" | Select-Object -ExpandProperty FreeSpace"
        )
        free_bytes = parse_number(await self.runner.powershell_scalar(script))
        return round(free_bytes / _BYTES_PER_GB, 2)
