"""Shared fixtures: a scripted stand-in for CommandRunner and sample results."""

from __future__ import annotations

import pytest

from ad_health_engine.probes import HostProbeResult, MetricFailure, Outcome
from ad_health_engine.safety.guardian import SafetyGuardian
from ad_health_engine.shell.runner import CommandOutput


class FakeRunner:
    """
    Replays canned output instead of spawning processes.

    `stdout`/`returncode`/`error` answer run(); `stdout` may be a callable
    taking the argument list. `json_rows` and `scalar` answer the PowerShell
    helpers and may be callables taking the script.
    An Exception instance in any slot is raised.
    """

    def __init__(self, stdout="", returncode=0, error=None, json_rows=None, scalar=None,
                 guardian=None):
        self.guardian = guardian or SafetyGuardian()
        self.stdout = stdout
        self.returncode = returncode
        self.error = error
        self.json_rows = json_rows
        self.scalar = scalar
        self.calls = []
        self.commands_run = 0

    @staticmethod
    def _answer(slot, script):
        value = slot(script) if callable(slot) else slot
        if isinstance(value, Exception):
            raise value
        return value

    async def run(self, args, timeout=None):
        self.guardian.validate_command(args)
        self.calls.append(list(args))
        if self.error is not None:
            raise self.error
        self.commands_run += 1
        stdout = self._answer(self.stdout, list(args))
        return CommandOutput(args=list(args), returncode=self.returncode, stdout=stdout)

    async def powershell_json(self, script, timeout=None):
        self.guardian.validate_command(["powershell", "-Command", script])
        self.calls.append(script)
        return self._answer(self.json_rows, script) or []

    async def powershell_scalar(self, script, timeout=None):
        self.guardian.validate_command(["powershell", "-Command", script])
        self.calls.append(script)
        return self._answer(self.scalar, script)


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture
def sample_results():
    healthy = HostProbeResult(
        host_name="zeta-dc.corp.local",
        reachable=True,
        metrics={
            "uptime_hours": 300.0,
            "free_space_gb": 15.0,
            "clock_offset_seconds": 0.01,
        },
        services={"NTDS": Outcome.PASSED, "DNS": Outcome.FAILED},
        sub_tests={
            "Replications": Outcome.PASSED,
            "Advertising": Outcome.PASSED,
            "connectivity": Outcome.INACCESSIBLE,
            "FooBarTest": Outcome.NO_DATA,
        },
        duration_seconds=4.2,
    )
    down = HostProbeResult.unreachable(
        "alpha-dc.corp.local",
        ["uptime_hours", "free_space_gb", "clock_offset_seconds"],
        ["NTDS", "DNS"],
        ["Replications", "Advertising", "connectivity", "FooBarTest"],
    )
    return [healthy, down]


@pytest.fixture
def failed_metric():
    return MetricFailure("probe timed out")
