import pytest

from ad_health_engine.safety.guardian import SafetyGuardian, SafetyViolation


@pytest.fixture
def guardian():
    return SafetyGuardian()


@pytest.mark.parametrize(
    "args",
    [
        ["dcdiag", "/s:dc01", "/test:Replications"],
        ["C:\\Windows\\System32\\dcdiag.exe", "/s:dc01"],
        ["w32tm", "/stripchart", "/computer:dc01", "/samples:1", "/dataonly"],
        ["powershell", "-NoProfile", "-Command", "Get-Service -ComputerName 'dc01'"],
        # Write verbs inside quoted data are not commands
        ["powershell", "-Command", "Get-ADUser -Filter 'Name -eq \"Set-Password\"'"],
    ],
)
def test_read_only_commands_pass(guardian, args):
    assert guardian.validate_command(args) is True


@pytest.mark.parametrize(
    "args",
    [
        ["cmd", "/c", "dir"],
        ["w32tm", "/resync", "/computer:dc01"],
        ["w32tm", "/config", "/update"],
        ["dcdiag", "/s:dc01", "/fix"],
        ["powershell", "-Command", "Restart-Service NTDS"],
        ["powershell", "-Command", "Get-ADUser x | Set-ADUser -Enabled $false"],
        ["powershell", "-Command", "iex (Get-Content a.ps1)"],
        [],
    ],
)
def test_write_commands_are_blocked(guardian, args):
    with pytest.raises(SafetyViolation):
        guardian.validate_command(args)


@pytest.mark.parametrize("host", ["dc01", "dc01.corp.local", "DC-02.Corp.Local.", "10.0.0.10"])
def test_valid_hosts(guardian, host):
    assert guardian.validate_host(host) == host


@pytest.mark.parametrize("host", ["", "dc01; Stop-Computer", "dc01'", "dc 01", "-dc01"])
def test_invalid_hosts(guardian, host):
    with pytest.raises(SafetyViolation):
        guardian.validate_host(host)


def test_http_requests(guardian):
    assert guardian.validate_request("GET", "https://graph.microsoft.com/v1.0/organization")
    with pytest.raises(SafetyViolation):
        guardian.validate_request("PATCH", "https://graph.microsoft.com/v1.0/organization")


def test_audit_record(guardian):
    guardian.validate_command(["dcdiag", "/s:dc01"])
    with pytest.raises(SafetyViolation):
        guardian.validate_command(["w32tm", "/resync"])

    record = guardian.get_audit_record()["safety_guardian"]
    assert record["checks_performed"] == 2
    assert record["violations_detected"] == 1
    assert record["status"] == "VIOLATIONS_DETECTED"
    assert record["violations"][0]["kind"] == "w32tm"
