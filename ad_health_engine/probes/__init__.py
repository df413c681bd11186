from .base import (
    BaseProbe,
    HostProbeResult,
    MetricFailure,
    MetricValue,
    Outcome,
    ProbeError,
    UNREACHABLE,
)
from .connectivity import ReachabilityProbe
from .system import UptimeProbe, FreeSpaceProbe
from .clock import ClockOffsetProbe
from .certificate import CertificateProbe
from .services import ServiceProbe


__all__ = [
    "BaseProbe",
    "HostProbeResult",
    "MetricFailure",
    "MetricValue",
    "Outcome",
    "ProbeError",
    "UNREACHABLE",
    "ReachabilityProbe",
    "UptimeProbe",
    "FreeSpaceProbe",
    "ClockOffsetProbe",
    "CertificateProbe",
    "ServiceProbe",
]
