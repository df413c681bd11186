import csv
import json

from ad_health_engine.config import DEFAULT_THRESHOLDS
from ad_health_engine.discovery import InfrastructureInfo
from ad_health_engine.probes import HostProbeResult
from ad_health_engine.reporting import export_csv, export_json
from ad_health_engine.safety.guardian import SafetyGuardian
from ad_health_engine.scoring import Classifier, compute_summary


def _read_csv(path):
    with open(path, newline="", encoding="utf-8-sig") as fh:
        return list(csv.DictReader(fh))


def test_csv_export(tmp_path, sample_results):
    classifier = Classifier.from_config(DEFAULT_THRESHOLDS)
    summary = compute_summary(sample_results, classifier)

    hosts_path, checks_path = export_csv(sample_results, summary, classifier, tmp_path, "run1")

    hosts = _read_csv(hosts_path)
    assert [h["host_name"] for h in hosts] == ["zeta-dc.corp.local", "alpha-dc.corp.local"]
    assert hosts[0]["free_space_gb"] == "15"
    assert hosts[0]["free_space_gb_tier"] == "warn"
    assert hosts[0]["services_failed"] == "DNS"
    assert hosts[1]["free_space_gb"] == "Failed"
    assert hosts[1]["overall"] == "fail"

    checks = _read_csv(checks_path)
    dcdiag = [c["check"] for c in checks if c["host_name"] == "zeta-dc.corp.local" and c["kind"] == "dcdiag"]
    assert dcdiag == ["Advertising", "connectivity", "FooBarTest", "Replications"]
    inaccessible = next(c for c in checks if c["check"] == "connectivity")
    assert inaccessible["value"] == "Inaccessible"
    assert inaccessible["tier"] == "fail"


def test_json_export(tmp_path, sample_results):
    classifier = Classifier.from_config(DEFAULT_THRESHOLDS)
    summary = compute_summary(sample_results, classifier)
    guardian = SafetyGuardian()

    path = export_json(
        sample_results, summary, InfrastructureInfo(forest_name="corp.local"),
        guardian.get_audit_record(), tmp_path, "run1",
    )

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["metadata"]["run_id"] == "run1"
    assert data["summary"]["overall"] == "fail"
    assert data["summary"]["host_count"] == 2
    assert data["infrastructure"]["forest_name"] == "corp.local"
    down = data["hosts"][1]
    assert down["reachable"] is False
    assert down["metrics"]["uptime_hours"] is None
    assert down["metric_failures"]["uptime_hours"] == "host unreachable"
    assert down["sub_tests"]["Replications"] == "Failed"
    assert data["audit"]["safety_guardian"]["status"] == "CLEAN"


def test_csv_keeps_metric_precision(tmp_path):
    results = [
        HostProbeResult(
            "dc01",
            True,
            metrics={
                "free_space_gb": 12345.67,
                "uptime_hours": 1234567.89,
                "clock_offset_seconds": 0.0012345,
            },
        )
    ]
    classifier = Classifier.from_config(DEFAULT_THRESHOLDS)
    summary = compute_summary(results, classifier)

    hosts_path, checks_path = export_csv(results, summary, classifier, tmp_path, "run1")

    [row] = _read_csv(hosts_path)
    assert row["free_space_gb"] == "12345.67"
    assert row["uptime_hours"] == "1234567.89"
    assert row["clock_offset_seconds"] == "0.0012345"
    values = {c["check"]: c["value"] for c in _read_csv(checks_path) if c["kind"] == "metric"}
    assert values["uptime_hours"] == "1234567.89"
