"""
Base probe class — Abstract interface for all per-host metric probes.
Defines the HostProbeResult data model, the Outcome enumeration and the
MetricFailure sentinel shared by probes, the dcdiag parser and the renderer.
"""

from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Union

from ..config import ProbeConfig
from ..shell.runner import CommandRunner

logger = logging.getLogger("ad_health_engine.probes")


class Outcome(str, Enum):
    """Result of one dcdiag sub-test or service check."""
    PASSED = "Passed"
    FAILED = "Failed"
    NO_DATA = "NoData"
    INACCESSIBLE = "Inaccessible"


@dataclass(frozen=True)
class MetricFailure:
    """Sentinel for a metric that could not be measured."""
    reason: str = ""

    def __str__(self) -> str:
        return "Failed"


MetricValue = Union[float, MetricFailure]

UNREACHABLE = MetricFailure("host unreachable")


class ProbeError(Exception):
    """Raised by a probe when its output cannot be turned into a metric."""
    pass


@dataclass
class HostProbeResult:
    """
    Everything measured for one domain controller in one run.

    Populated step by step by the engine, then consumed once by the renderer.
    """
    host_name: str
    reachable: bool = False
    metrics: dict[str, MetricValue] = field(default_factory=dict)
    services: dict[str, Outcome] = field(default_factory=dict)
    sub_tests: dict[str, Outcome] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @classmethod
    def unreachable(
        cls,
        host_name: str,
        metric_names: Iterable[str],
        service_names: Iterable[str],
        test_names: Iterable[str],
    ) -> "HostProbeResult":
        """Uniform failure record for a host that failed the reachability probe."""
        return cls(
            host_name=host_name,
            reachable=False,
            metrics={name: UNREACHABLE for name in metric_names},
            services={name: Outcome.FAILED for name in service_names},
            sub_tests={name: Outcome.FAILED for name in test_names},
            errors=["Host unreachable"],
        )

    def to_dict(self) -> dict:
        return {
            "host_name": self.host_name,
            "reachable": self.reachable,
            "metrics": {
                k: (None if isinstance(v, MetricFailure) else v) for k, v in self.metrics.items()
            },
            "metric_failures": {
                k: v.reason for k, v in self.metrics.items() if isinstance(v, MetricFailure)
            },
            "services": {k: v.value for k, v in self.services.items()},
            "sub_tests": {k: v.value for k, v in self.sub_tests.items()},
            "errors": self.errors,
            "duration_seconds": self.duration_seconds,
        }


class BaseProbe(ABC):
    """
    Abstract base class for metric probes.

    Subclasses implement measure() to return one number for a host.
    execute() wraps it with timing and converts every failure into a
    MetricFailure so a single bad probe never aborts the run.
    """

    name: str = "base"
    description: str = "Base probe"

    def __init__(self, runner: CommandRunner, config: ProbeConfig):
        self.runner = runner
        self.config = config

    async def execute(self, host: str) -> MetricValue:
        started = time.monotonic()
        try:
            value = float(await self.measure(host))
            if math.isnan(value):
                raise ProbeError("probe returned NaN")
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            logger.warning(f"[{self.name}] {host}: {reason}")
            return MetricFailure(reason)
        logger.debug(
            f"[{self.name}] {host}: {value} ({time.monotonic() - started:.2f}s)"
        )
        return value

    @abstractmethod
    async def measure(self, host: str) -> float:
        """Return the metric value for host; raise on any failure."""
        raise NotImplementedError

    def safe_host(self, host: str) -> str:
        return self.runner.guardian.validate_host(host)
