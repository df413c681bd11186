"""HTML rendering: ordering, tier colouring, explanations, determinism."""

import re

import pytest

from ad_health_engine.config import DEFAULT_THRESHOLDS
from ad_health_engine.discovery import DomainInfo, InfrastructureInfo
from ad_health_engine.probes import HostProbeResult
from ad_health_engine.reporting import export_html, render_html
from ad_health_engine.scoring import Classifier, compute_summary


@pytest.fixture
def classifier():
    return Classifier.from_config(DEFAULT_THRESHOLDS)


@pytest.fixture
def infrastructure():
    return InfrastructureInfo(
        forest_name="corp.local",
        forest_mode="Windows2016Forest",
        schema_master="zeta-dc.corp.local",
        domain_naming_master="zeta-dc.corp.local",
        sites=["Default-First-Site-Name"],
        global_catalogs=["zeta-dc.corp.local"],
        domains=[DomainInfo(dns_root="corp.local", netbios_name="CORP")],
    )


def _render(results, classifier, infrastructure=None, generated_at="2026-10-19 10:00:00 UTC"):
    summary = compute_summary(results, classifier)
    return render_html(results, summary, classifier, infrastructure, "run1", generated_at)


def test_rendering_is_deterministic_apart_from_timestamp(sample_results, classifier, infrastructure):
    first = _render(sample_results, classifier, infrastructure, "2026-10-19 10:00:00 UTC")
    second = _render(sample_results, classifier, infrastructure, "2026-10-19 11:30:00 UTC")
    assert first != second
    assert first.replace("2026-10-19 10:00:00 UTC", "TS") == second.replace(
        "2026-10-19 11:30:00 UTC", "TS"
    )
    assert _render(sample_results, classifier, infrastructure) == _render(
        sample_results, classifier, infrastructure
    )


def test_hosts_appear_in_input_order(sample_results, classifier):
    html = _render(sample_results, classifier)
    zeta = html.index('<section class="report-section" id="host-1-zeta-dc-corp-local">')
    alpha = html.index('<section class="report-section" id="host-2-alpha-dc-corp-local">')
    assert zeta < alpha


def test_sub_tests_sorted_case_insensitively(sample_results, classifier):
    html = _render(sample_results[:1], classifier)
    positions = [
        html.index(f"<tr><td>{name}</td>")
        for name in ("Advertising", "connectivity", "FooBarTest", "Replications")
    ]
    assert positions == sorted(positions)


def test_unknown_sub_test_gets_generic_explanation(sample_results, classifier):
    html = _render(sample_results[:1], classifier)
    row = re.search(r"<tr><td>FooBarTest</td>.*?</tr>", html, re.S).group(0)
    assert "Domain controller diagnostic test." in row
    known = re.search(r"<tr><td>Advertising</td>.*?</tr>", html, re.S).group(0)
    assert "advertises itself" in known


def test_inaccessible_rendered_with_fail_tier(sample_results, classifier):
    html = _render(sample_results[:1], classifier)
    assert '<td class="tier-fail">Inaccessible</td>' in html
    assert '<td class="tier-warn">NoData</td>' in html
    assert '<td class="tier-pass">Passed</td>' in html


def test_metric_cells_carry_tiers(sample_results, classifier):
    html = _render(sample_results, classifier)
    assert '<td class="tier-warn" title="">15.00 GB</td>' in html
    assert '<td class="tier-fail" title="host unreachable">Failed</td>' in html


def test_infrastructure_section(sample_results, classifier, infrastructure):
    html = _render(sample_results, classifier, infrastructure)
    assert "Windows2016Forest" in html
    assert "<td>CORP</td>" in html
    assert "Forest corp.local" in html


def test_values_are_escaped(sample_results, classifier):
    sample_results[0].errors.append("<script>alert(1)</script>")
    html = _render(sample_results, classifier)
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_export_writes_file(tmp_path, sample_results, classifier, infrastructure):
    summary = compute_summary(sample_results, classifier)
    path = export_html(
        sample_results, summary, classifier, infrastructure, tmp_path, "run1",
        generated_at="2026-10-19 10:00:00 UTC",
    )
    assert path.name == "ad_health_report_run1.html"
    assert path.read_text(encoding="utf-8") == _render(sample_results, classifier, infrastructure)


def test_host_anchors_stay_unique_for_similar_names(classifier):
    results = [
        HostProbeResult.unreachable("dc-01.corp", ["uptime_hours"], [], []),
        HostProbeResult.unreachable("dc.01.corp", ["uptime_hours"], [], []),
    ]
    html = _render(results, classifier)
    ids = re.findall(r'<section class="report-section" id="([^"]+)">', html)
    assert len(ids) == 2
    assert len(set(ids)) == 2
    for anchor in ids:
        assert f'href="#{anchor}"' in html
