"""
HTML Health Report — single-file, colour-coded output for DC operators.

The report has one infrastructure/summary section followed by one detail
section per host, in probe order. Every cell carries the tier the classifier
assigned to it; sub-tests are listed alphabetically with an explanation.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..config import METRIC_DISPLAY
from ..dcdiag.catalog import explain
from ..discovery.directory import InfrastructureInfo
from ..discovery.sync import SYNC_METRIC
from ..probes.base import HostProbeResult, MetricFailure, MetricValue, Outcome
from ..scoring.classifier import Classifier, Tier, worst_tier
from ..scoring.models import RunSummary

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "health_report.html.j2"

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------
TIER_COLOURS = {
    Tier.PASS:           {"bg": "#dcfce7", "fg": "#166534", "badge": "#16a34a"},
    Tier.WARN:           {"bg": "#fef3c7", "fg": "#92400e", "badge": "#d97706"},
    Tier.FAIL:           {"bg": "#fee2e2", "fg": "#991b1b", "badge": "#dc2626"},
    Tier.NOT_APPLICABLE: {"bg": "#f1f5f9", "fg": "#475569", "badge": "#6b7280"},
}

TIER_LABELS = {
    Tier.PASS: "Healthy",
    Tier.WARN: "Warning",
    Tier.FAIL: "Failed",
    Tier.NOT_APPLICABLE: "N/A",
}

_TIER_CSS = {
    Tier.PASS: "tier-pass",
    Tier.WARN: "tier-warn",
    Tier.FAIL: "tier-fail",
    Tier.NOT_APPLICABLE: "tier-na",
}

# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def metric_label(metric: str) -> str:
    return METRIC_DISPLAY.get(metric, (metric.replace("_", " ").title(), ""))[0]


def format_metric(metric: str, value: Optional[MetricValue]) -> str:
    """Display text for a metric cell."""
    if value is None:
        return "n/a"
    if isinstance(value, MetricFailure):
        return "Failed"
    unit = METRIC_DISPLAY.get(metric, ("", ""))[1]
    text = f"{value:.0f}" if metric == "certificate_days_remaining" else f"{value:.2f}"
    return f"{text} {unit}".strip()


def _cell(text: str, tier: Tier, title: str = "") -> dict[str, str]:
    return {"text": text, "tier": tier.value, "css": _TIER_CSS[tier], "title": title}


def _metric_cell(classifier: Classifier, metric: str, value: Optional[MetricValue]) -> dict:
    title = value.reason if isinstance(value, MetricFailure) else ""
    return _cell(format_metric(metric, value), classifier.classify(metric, value), title)


def _outcome_cell(classifier: Classifier, outcome: Outcome) -> dict:
    return _cell(outcome.value, classifier.classify_outcome(outcome))


# ---------------------------------------------------------------------------
# Context building
# ---------------------------------------------------------------------------

def _host_context(
    position: int,
    result: HostProbeResult,
    summary,
    classifier: Classifier,
    metric_names: list[str],
) -> dict:
    metrics = [
        {
            "name": metric_label(m),
            "cell": _metric_cell(classifier, m, result.metrics[m]),
        }
        for m in metric_names
    ]
    services = [
        {"name": name, "cell": _outcome_cell(classifier, outcome)}
        for name, outcome in result.services.items()
    ]
    sub_tests = [
        {
            "name": name,
            "cell": _outcome_cell(classifier, result.sub_tests[name]),
            "explanation": explain(name),
        }
        for name in sorted(result.sub_tests, key=str.casefold)
    ]
    passed = sum(1 for o in result.sub_tests.values() if o is Outcome.PASSED)
    return {
        "host_name": result.host_name,
        # position keeps ids unique when two names slug the same
        "anchor": f"host-{position}-" + re.sub(r"[^a-z0-9]+", "-", result.host_name.lower()),
        "overall": _cell(TIER_LABELS[summary.overall], summary.overall),
        "reachable": _cell(
            "Yes" if result.reachable else "No",
            Tier.PASS if result.reachable else Tier.FAIL,
        ),
        "metrics": metrics,
        "services": services,
        "service_summary": _summary_cell(summary.service_tiers.values()),
        "sub_tests": sub_tests,
        "sub_test_summary": _cell(
            f"{passed}/{len(result.sub_tests)} passed" if result.sub_tests else "n/a",
            worst_tier(summary.sub_test_tiers.values()),
        ),
        "errors": list(result.errors),
        "duration": f"{result.duration_seconds:.1f}s",
    }


def _summary_cell(tiers) -> dict:
    tiers = list(tiers)
    if not tiers:
        return _cell("n/a", Tier.NOT_APPLICABLE)
    ok = sum(1 for t in tiers if t is Tier.PASS)
    return _cell(f"{ok}/{len(tiers)} OK", worst_tier(tiers))


def _infrastructure_context(infra: Optional[InfrastructureInfo], classifier: Classifier) -> dict:
    if infra is None:
        return {"available": False, "rows": [], "domains": [], "sites": [], "global_catalogs": [],
                "errors": [], "sync": None}

    rows = []
    if infra.available:
        rows = [
            ("Forest", infra.forest_name),
            ("Forest functional level", infra.forest_mode),
            ("Schema master", infra.schema_master),
            ("Domain naming master", infra.domain_naming_master),
        ]

    sync = None
    if infra.sync_status is not None:
        status = infra.sync_status
        if status.sync_enabled is False:
            age_cell = _cell("Sync not enabled", Tier.NOT_APPLICABLE)
        else:
            age_cell = _metric_cell(classifier, SYNC_METRIC, status.age_hours)
        sync = {
            "tenant": status.tenant_name or "—",
            "enabled": "—" if status.sync_enabled is None else ("Yes" if status.sync_enabled else "No"),
            "last_sync": status.last_sync.strftime("%Y-%m-%d %H:%M UTC") if status.last_sync else "—",
            "age": age_cell,
        }

    return {
        "available": infra.available,
        "rows": rows,
        "domains": [d.to_dict() for d in infra.domains],
        "sites": infra.sites,
        "global_catalogs": infra.global_catalogs,
        "errors": infra.errors,
        "sync": sync,
    }


def build_report_context(
    results: list[HostProbeResult],
    summary: RunSummary,
    classifier: Classifier,
    infrastructure: Optional[InfrastructureInfo],
    run_id: str,
    generated_at: str,
) -> dict[str, Any]:
    """Everything the template needs, fully formatted and tier-coded."""
    metric_names: list[str] = []
    for result in results:
        for m in result.metrics:
            if m not in metric_names:
                metric_names.append(m)

    hosts = [
        _host_context(i + 1, result, summary.hosts[i], classifier, metric_names)
        for i, result in enumerate(results)
    ]

    return {
        "title": "Domain Controller Health Report",
        "forest": infrastructure.forest_name if infrastructure and infrastructure.forest_name else "",
        "run_id": run_id,
        "generated_at": generated_at,
        "overall": _cell(TIER_LABELS[summary.overall], summary.overall),
        "host_count": summary.host_count,
        "reachable_count": summary.reachable_count,
        "host_status_counts": [
            {"label": TIER_LABELS[t], "count": summary.host_status_counts.get(t.value, 0),
             "css": _TIER_CSS[t]}
            for t in (Tier.PASS, Tier.WARN, Tier.FAIL)
        ],
        "tier_counts": [
            {"label": TIER_LABELS[t], "count": summary.tier_counts.get(t.value, 0), "css": _TIER_CSS[t]}
            for t in Tier
        ],
        "metric_columns": [metric_label(m) for m in metric_names],
        "infrastructure": _infrastructure_context(infrastructure, classifier),
        "hosts": hosts,
        "colours": {_TIER_CSS[t]: c for t, c in TIER_COLOURS.items()},
    }


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_html(
    results: list[HostProbeResult],
    summary: RunSummary,
    classifier: Classifier,
    infrastructure: Optional[InfrastructureInfo],
    run_id: str,
    generated_at: str,
) -> str:
    """Render the report to a string. Output depends only on the arguments."""
    context = build_report_context(
        results, summary, classifier, infrastructure, run_id, generated_at
    )
    return _environment().get_template(TEMPLATE_NAME).render(**context)


def export_html(
    results: list[HostProbeResult],
    summary: RunSummary,
    classifier: Classifier,
    infrastructure: Optional[InfrastructureInfo],
    output_dir: Path,
    run_id: str,
    generated_at: Optional[str] = None,
) -> Path:
    """
    Generate the self-contained HTML health report.

    Returns the Path to the written file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if generated_at is None:
        generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    html_content = render_html(
        results, summary, classifier, infrastructure, run_id, generated_at
    )

    filepath = output_dir / f"ad_health_report_{run_id}.html"
    filepath.write_text(html_content, encoding="utf-8")
    return filepath
