"""
Summary data models — per-host and per-run rollups of classified results.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .classifier import Tier


@dataclass
class HostSummary:
    """Rolled-up status of one host."""
    host_name: str
    reachable: bool
    overall: Tier = Tier.NOT_APPLICABLE
    metric_tiers: dict[str, Tier] = field(default_factory=dict)
    service_tiers: dict[str, Tier] = field(default_factory=dict)
    sub_test_tiers: dict[str, Tier] = field(default_factory=dict)
    failed_checks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "host_name": self.host_name,
            "reachable": self.reachable,
            "overall": self.overall.value,
            "metric_tiers": {k: v.value for k, v in self.metric_tiers.items()},
            "service_tiers": {k: v.value for k, v in self.service_tiers.items()},
            "sub_test_tiers": {k: v.value for k, v in self.sub_test_tiers.items()},
            "failed_checks": self.failed_checks,
        }


@dataclass
class RunSummary:
    """Complete rollup for a run."""
    hosts: list[HostSummary] = field(default_factory=list)
    host_count: int = 0
    reachable_count: int = 0
    tier_counts: dict[str, int] = field(default_factory=dict)
    host_status_counts: dict[str, int] = field(default_factory=dict)
    overall: Tier = Tier.NOT_APPLICABLE

    def host(self, host_name: str) -> HostSummary:
        for h in self.hosts:
            if h.host_name == host_name:
                return h
        raise KeyError(host_name)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall.value,
            "host_count": self.host_count,
            "reachable_count": self.reachable_count,
            "tier_counts": self.tier_counts,
            "host_status_counts": self.host_status_counts,
            "hosts": [h.to_dict() for h in self.hosts],
        }
