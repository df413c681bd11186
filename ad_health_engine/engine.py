"""
Health check engine — runs the probe sequence for every host.

Per host: reachability gate → metric probes → services → dcdiag, strictly in
that order. Hosts may be fanned out up to `parallel_hosts` at a time; results
always come back in enumeration order.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Sequence

from .config import ProbeConfig
from .dcdiag import DcdiagRunner, load_locales
from .probes import (
    BaseProbe,
    CertificateProbe,
    ClockOffsetProbe,
    FreeSpaceProbe,
    HostProbeResult,
    MetricFailure,
    ReachabilityProbe,
    ServiceProbe,
    UptimeProbe,
)
from .safety.guardian import SafetyViolation
from .shell.runner import CommandRunner

logger = logging.getLogger("ad_health_engine.engine")


def build_metric_probes(runner: CommandRunner, config: ProbeConfig) -> list[BaseProbe]:
    probes: list[BaseProbe] = [
        UptimeProbe(runner, config),
        FreeSpaceProbe(runner, config),
        ClockOffsetProbe(runner, config),
    ]
    if config.check_ldaps_certificate:
        probes.append(CertificateProbe(runner, config))
    return probes


class HealthCheckEngine:
    """
    Produces one fully resolved HostProbeResult per host.

    Every declared metric, service and sub-test is present in each result,
    whether measured or marked failed.
    """

    def __init__(
        self,
        config: ProbeConfig,
        runner: CommandRunner,
        reachability: Optional[ReachabilityProbe] = None,
        metric_probes: Optional[Sequence[BaseProbe]] = None,
        service_probe: Optional[ServiceProbe] = None,
        dcdiag: Optional[DcdiagRunner] = None,
        extra_locales: Optional[list[dict]] = None,
    ):
        self.config = config
        self.runner = runner
        self.reachability = reachability or ReachabilityProbe(config)
        self.metric_probes = list(
            metric_probes if metric_probes is not None else build_metric_probes(runner, config)
        )
        self.service_probe = service_probe or ServiceProbe(runner, config.services)
        self.dcdiag = dcdiag or DcdiagRunner(runner, load_locales(extra_locales))

    @property
    def metric_names(self) -> list[str]:
        return [p.name for p in self.metric_probes]

    @property
    def service_names(self) -> list[str]:
        return list(self.service_probe.services)

    @property
    def test_names(self) -> list[str]:
        return list(self.config.dcdiag_tests) if self.config.enable_dcdiag else []

    async def probe_host(self, host: str) -> HostProbeResult:
        started = time.monotonic()
        logger.info(f"[{host}] Probing...")

        try:
            self.runner.guardian.validate_host(host)
            reachable = await self.reachability.check(host)
        except SafetyViolation as e:
            logger.error(f"[{host}] Skipped: {e}")
            reachable = False

        if not reachable:
            result = HostProbeResult.unreachable(
                host, self.metric_names, self.service_names, self.test_names
            )
            result.duration_seconds = round(time.monotonic() - started, 2)
            return result

        result = HostProbeResult(host_name=host, reachable=True)

        for probe in self.metric_probes:
            value = await probe.execute(host)
            result.metrics[probe.name] = value
            if isinstance(value, MetricFailure):
                result.errors.append(f"{probe.name}: {value.reason}")

        result.services = await self.service_probe.check(host)
        result.sub_tests = await self.dcdiag.run(host, self.test_names)

        result.duration_seconds = round(time.monotonic() - started, 2)
        logger.info(f"[{host}] Completed in {result.duration_seconds}s")
        return result

    async def run(self, hosts: Sequence[str]) -> list[HostProbeResult]:
        """Probe all hosts; output order equals input order."""
        semaphore = asyncio.Semaphore(max(1, int(self.config.parallel_hosts)))

        async def _bounded(host: str) -> HostProbeResult:
            async with semaphore:
                return await self.probe_host(host)

        return list(await asyncio.gather(*(_bounded(h) for h in hosts)))
