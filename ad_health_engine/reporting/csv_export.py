"""
CSV exporter — one row per host, plus a long-format row per check.
"""

from __future__ import annotations

import csv
from pathlib import Path

from ..probes.base import HostProbeResult, MetricFailure
from ..scoring.classifier import Classifier, Tier
from ..scoring.models import RunSummary


def _metric_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, MetricFailure):
        return "Failed"
    return f"{value:.15g}"


def export_csv(
    results: list[HostProbeResult],
    summary: RunSummary,
    classifier: Classifier,
    output_dir: Path,
    run_id: str,
) -> list[Path]:
    """
    Write the host overview CSV and the per-check CSV.

    Returns:
        List of created CSV file paths.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    created = []

    metric_names: list[str] = []
    for result in results:
        for m in result.metrics:
            if m not in metric_names:
                metric_names.append(m)

    # --- Hosts CSV ---
    hosts_path = output_dir / f"ad_health_hosts_{run_id}.csv"
    HOST_FIELDS = ["host_name", "reachable", "overall"]
    for m in metric_names:
        HOST_FIELDS += [m, f"{m}_tier"]
    HOST_FIELDS += ["services_failed", "sub_tests_failed", "errors", "duration_seconds"]

    with open(hosts_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.DictWriter(fh, fieldnames=HOST_FIELDS)
        writer.writeheader()
        for result, host in zip(results, summary.hosts):
            row = {
                "host_name": result.host_name,
                "reachable": result.reachable,
                "overall": host.overall.value,
                "services_failed": "; ".join(
                    n for n, t in host.service_tiers.items() if t is Tier.FAIL
                ),
                "sub_tests_failed": "; ".join(
                    n for n, t in host.sub_test_tiers.items() if t is Tier.FAIL
                ),
                "errors": "; ".join(result.errors),
                "duration_seconds": result.duration_seconds,
            }
            for m in metric_names:
                value = result.metrics.get(m)
                row[m] = _metric_text(value)
                row[f"{m}_tier"] = classifier.classify(m, value).value
            writer.writerow(row)
    created.append(hosts_path)

    # --- Checks CSV ---
    checks_path = output_dir / f"ad_health_checks_{run_id}.csv"
    CHECK_FIELDS = ["host_name", "kind", "check", "value", "tier"]

    with open(checks_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.DictWriter(fh, fieldnames=CHECK_FIELDS)
        writer.writeheader()
        for result in results:
            for m, value in result.metrics.items():
                writer.writerow({
                    "host_name": result.host_name,
                    "kind": "metric",
                    "check": m,
                    "value": _metric_text(value),
                    "tier": classifier.classify(m, value).value,
                })
            for name, outcome in result.services.items():
                writer.writerow({
                    "host_name": result.host_name,
                    "kind": "service",
                    "check": name,
                    "value": outcome.value,
                    "tier": classifier.classify_outcome(outcome).value,
                })
            for name in sorted(result.sub_tests, key=str.casefold):
                outcome = result.sub_tests[name]
                writer.writerow({
                    "host_name": result.host_name,
                    "kind": "dcdiag",
                    "check": name,
                    "value": outcome.value,
                    "tier": classifier.classify_outcome(outcome).value,
                })
    created.append(checks_path)

    return created
