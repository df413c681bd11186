"""
Summary engine — Classifies every probed value and rolls it up.

Rollup model:
  - Every metric, service and sub-test cell gets a tier from the classifier.
  - A host's overall tier is its worst cell (fail > warn > pass > n/a).
  - The run's overall tier is the worst host tier.
"""

from __future__ import annotations

from collections import Counter

from ..probes.base import HostProbeResult
from .classifier import Classifier, Tier, worst_tier
from .models import HostSummary, RunSummary


def summarize_host(result: HostProbeResult, classifier: Classifier) -> HostSummary:
    summary = HostSummary(host_name=result.host_name, reachable=result.reachable)

    for metric, value in result.metrics.items():
        summary.metric_tiers[metric] = classifier.classify(metric, value)
    for service, outcome in result.services.items():
        summary.service_tiers[service] = classifier.classify_outcome(outcome)
    for test, outcome in result.sub_tests.items():
        summary.sub_test_tiers[test] = classifier.classify_outcome(outcome)

    all_tiers = [
        *summary.metric_tiers.values(),
        *summary.service_tiers.values(),
        *summary.sub_test_tiers.values(),
    ]
    if not result.reachable:
        all_tiers.append(Tier.FAIL)
    summary.overall = worst_tier(all_tiers)

    summary.failed_checks = [
        name
        for tiers in (summary.metric_tiers, summary.service_tiers, summary.sub_test_tiers)
        for name, tier in tiers.items()
        if tier is Tier.FAIL
    ]
    return summary


def compute_summary(results: list[HostProbeResult], classifier: Classifier) -> RunSummary:
    """Classify all results and compute per-host and run-level rollups."""
    run = RunSummary()
    tier_counts: Counter = Counter()

    for result in results:
        host = summarize_host(result, classifier)
        run.hosts.append(host)
        for tiers in (host.metric_tiers, host.service_tiers, host.sub_test_tiers):
            tier_counts.update(t.value for t in tiers.values())

    run.host_count = len(results)
    run.reachable_count = sum(1 for r in results if r.reachable)
    run.tier_counts = {t.value: tier_counts.get(t.value, 0) for t in Tier}
    run.host_status_counts = {
        t.value: sum(1 for h in run.hosts if h.overall is t) for t in Tier
    }
    run.overall = worst_tier(h.overall for h in run.hosts)
    return run
