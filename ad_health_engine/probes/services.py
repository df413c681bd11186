"""
Service probe — state of the directory services on a domain controller.
"""

from __future__ import annotations

import logging
import re

from ..shell.runner import CommandError
from .base import Outcome

logger = logging.getLogger("ad_health_engine.probes.services")

_SERVICE_NAME = re.compile(r"^[A-Za-z0-9_\-$]+$")


class ServiceProbe:
    """
    Queries Get-Service for the configured services.

    Running → Passed, any other state → Failed, not installed → NoData,
    query failure → Inaccessible for every service.
    """

    name = "services"
    description = "Directory service state (NTDS, Netlogon, DNS, KDC, ...)"

    def __init__(self, runner, services: list[str]):
        self.runner = runner
        self.services = [s for s in services if _SERVICE_NAME.match(s)]

    async def check(self, host: str) -> dict[str, Outcome]:
        if not self.services:
            return {}
        host = self.runner.guardian.validate_host(host)
        names = ",".join(f"'{s}'" for s in self.services)
        script = (
            f"Get-Service -ComputerName '{host}' | Where-Object {{ $_.Name -in @({names}) }} | "
            "Select-Object Name,@{n='Status';e={$_.Status.ToString()}}"
        )
        try:
            rows = await self.runner.powershell_json(script)
        except CommandError as e:
            logger.warning(f"[{self.name}] {host}: {e}")
            return {name: Outcome.INACCESSIBLE for name in self.services}
        return self.resolve(rows)

    def resolve(self, rows: list[dict]) -> dict[str, Outcome]:
        states = {str(r.get("Name", "")).casefold(): str(r.get("Status", "")) for r in rows}
        outcomes = {}
        for name in self.services:
            state = states.get(name.casefold())
            if state is None:
                outcomes[name] = Outcome.NO_DATA
            elif state.casefold() == "running":
                outcomes[name] = Outcome.PASSED
            else:
                outcomes[name] = Outcome.FAILED
        return outcomes
