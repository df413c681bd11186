"""End-to-end runs of the orchestrator with the process layer replaced."""

import asyncio
import json
import socket

import pytest

import ad_health_engine.__main__ as cli
from ad_health_engine.config import DEFAULT_SERVICES
from ad_health_engine.shell.runner import CommandError

DCDIAG_OUTPUT = """\
      Starting test: Connectivity
         ......................... DC01 passed test Connectivity
      Starting test: Replications
         ......................... DC01 failed test Replications
"""


def _stdout(args):
    if args[0] == "w32tm":
        return "10:00:00, +00.0012345s\n"
    return DCDIAG_OUTPUT


def _scalar(script):
    if "Win32_OperatingSystem" in script:
        return "120,5"
    return "53687091200"


def _json_rows(script):
    if "Get-Service" in script:
        return [{"Name": name, "Status": "Running"} for name in DEFAULT_SERVICES]
    if "Get-ADForest" in script:
        return [{
            "Name": "corp.local",
            "ForestMode": "Windows2016Forest",
            "Domains": [],
            "Sites": ["Default-First-Site-Name"],
            "GlobalCatalogs": [],
        }]
    return []


@pytest.fixture
def process_layer(monkeypatch, fake_runner):
    """Swap the CommandRunner the orchestrator builds for a scripted one."""
    created = []

    def install(**answers):
        def factory(guardian, **kwargs):
            runner = fake_runner(guardian=guardian, **answers)
            created.append(runner)
            return runner

        monkeypatch.setattr(cli, "CommandRunner", factory)
        return created

    return install


@pytest.fixture
def listening_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen(8)
        yield sock.getsockname()[1]


@pytest.fixture
def closed_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return port


def _config_file(tmp_path, port):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "probes": {"reachability_ports": [port], "connect_timeout_seconds": 2},
    }), encoding="utf-8")
    return path


def _run(*argv):
    return asyncio.run(cli.main_async(list(argv)))


def _load_json_report(out):
    [path] = out.glob("ad_health_*.json")
    return json.loads(path.read_text(encoding="utf-8"))


def test_full_run_writes_every_report(tmp_path, listening_port, process_layer, capsys):
    runners = process_layer(stdout=_stdout, scalar=_scalar, json_rows=_json_rows)
    out = tmp_path / "out"

    code = _run(
        "--config", str(_config_file(tmp_path, listening_port)),
        "--hosts", "127.0.0.1",
        "--tests", "Connectivity", "Replications",
        "--skip-certificate",
        "--output-dir", str(out),
    )

    assert code == 0
    assert len(list(out.glob("ad_health_report_*.html"))) == 1
    assert len(list(out.glob("ad_health_hosts_*.csv"))) == 1
    assert len(list(out.glob("ad_health_checks_*.csv"))) == 1

    data = _load_json_report(out)
    [host] = data["hosts"]
    assert host["reachable"] is True
    assert host["metrics"]["uptime_hours"] == 120.5
    assert host["metrics"]["free_space_gb"] == 50.0
    assert host["sub_tests"] == {"Connectivity": "Passed", "Replications": "Failed"}
    assert data["summary"]["overall"] == "fail"
    assert data["infrastructure"]["forest_name"] == "corp.local"
    assert data["audit"]["safety_guardian"]["status"] == "CLEAN"

    [runner] = runners
    assert ["dcdiag", "/s:127.0.0.1", "/test:Connectivity", "/test:Replications"] in runner.calls

    printed = capsys.readouterr().out
    for phase in ("PHASE 1", "PHASE 2", "PHASE 3", "PHASE 4"):
        assert phase in printed


def test_unreachable_hosts_still_exit_zero(tmp_path, closed_port, process_layer):
    runners = process_layer(stdout=_stdout, scalar=_scalar, json_rows=_json_rows)
    out = tmp_path / "out"

    code = _run(
        "--config", str(_config_file(tmp_path, closed_port)),
        "--hosts", "127.0.0.1", "localhost",
        "--skip-infrastructure",
        "--output-dir", str(out),
        "--formats", "json",
    )

    assert code == 0
    data = _load_json_report(out)
    assert [h["host_name"] for h in data["hosts"]] == ["127.0.0.1", "localhost"]
    assert not any(h["reachable"] for h in data["hosts"])
    assert data["summary"]["overall"] == "fail"
    assert runners[0].calls == []


def test_formats_limit_output(tmp_path, closed_port, process_layer):
    process_layer(stdout=_stdout, scalar=_scalar, json_rows=_json_rows)
    out = tmp_path / "out"

    code = _run(
        "--config", str(_config_file(tmp_path, closed_port)),
        "--hosts", "127.0.0.1",
        "--skip-infrastructure",
        "--output-dir", str(out),
        "--formats", "csv",
    )

    assert code == 0
    assert sorted(p.suffix for p in out.iterdir()) == [".csv", ".csv"]


def test_discovery_failure_exits_one(tmp_path, process_layer, capsys):
    process_layer(json_rows=CommandError("Get-ADForest : Unable to contact the server"))
    out = tmp_path / "out"

    code = _run("--output-dir", str(out))

    assert code == 1
    assert not out.exists()
    assert "Domain controller query failed" in capsys.readouterr().out


def test_missing_hosts_file_exits_one(tmp_path, process_layer):
    process_layer()
    out = tmp_path / "out"

    code = _run("--hosts-file", str(tmp_path / "missing.txt"), "--output-dir", str(out))

    assert code == 1
    assert not out.exists()
