"""
Reachability probe — bounded TCP connect against the directory ports.
Its answer gates every other probe for the host.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import ProbeConfig

logger = logging.getLogger("ad_health_engine.probes.connectivity")


class ReachabilityProbe:
    name = "reachability"
    description = "TCP connect to LDAP (or the configured ports)"

    def __init__(self, config: ProbeConfig):
        self.ports = list(config.reachability_ports)
        self.timeout = config.connect_timeout_seconds

    async def check(self, host: str) -> bool:
        """Return True if any configured port accepts a connection."""
        for port in self.ports:
            if await self._tcp_check(host, port):
                return True
        logger.warning(f"[{self.name}] {host} unreachable on ports {self.ports}")
        return False

    async def _tcp_check(self, host: str, port: int) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=self.timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"[{self.name}] {host}:{port} — {type(e).__name__}: {e}")
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True
