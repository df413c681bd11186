import asyncio

import pytest

from ad_health_engine.config import DiscoveryConfig
from ad_health_engine.discovery import (
    DirectoryDiscovery,
    DiscoveryError,
    dedupe_hosts,
    read_hosts_file,
)
from ad_health_engine.shell.runner import CommandError

FOREST = {
    "Name": "corp.local",
    "ForestMode": "Windows2016Forest",
    "SchemaMaster": "dc01.corp.local",
    "DomainNamingMaster": "dc01.corp.local",
    "Domains": ["corp.local", "emea.corp.local"],
    "Sites": ["Munich", "Default-First-Site-Name"],
    "GlobalCatalogs": "dc01.corp.local",
}


def _directory(script):
    if script.startswith("Get-ADForest |"):
        return [FOREST]
    if script.startswith("Get-ADDomain -Server 'emea.corp.local'"):
        return CommandError("The server is not operational")
    if script.startswith("Get-ADDomain -Server"):
        return [{"DNSRoot": "corp.local", "NetBIOSName": "CORP",
                 "DomainMode": "Windows2016Domain", "PDCEmulator": "dc01.corp.local",
                 "RIDMaster": "dc01.corp.local", "InfrastructureMaster": "dc02.corp.local"}]
    return [{"HostName": "dc01.corp.local"}, {"HostName": "DC01.corp.local"},
            {"HostName": "dc02.corp.local"}]


def test_dedupe_keeps_first_seen_order():
    assert dedupe_hosts(["dc02", " DC01 ", "", "dc01", "Dc02", "dc03"]) == ["dc02", "DC01", "dc03"]


def test_read_hosts_file(tmp_path):
    path = tmp_path / "dcs.txt"
    path.write_text("\ufeff# production DCs\ndc01.corp.local\n\ndc02.corp.local  # hub\n",
                    encoding="utf-8")
    assert read_hosts_file(path) == ["dc01.corp.local", "dc02.corp.local"]


def test_explicit_hosts_win(fake_runner, tmp_path):
    runner = fake_runner(json_rows=_directory)
    config = DiscoveryConfig(hosts=["dc09", "dc09"], hosts_file=str(tmp_path / "missing.txt"))
    assert asyncio.run(DirectoryDiscovery(runner, config).enumerate_hosts()) == ["dc09"]
    assert runner.calls == []


def test_hosts_file_used_before_directory(fake_runner, tmp_path):
    path = tmp_path / "dcs.txt"
    path.write_text("dc05\ndc06\n", encoding="utf-8")
    runner = fake_runner(json_rows=_directory)
    config = DiscoveryConfig(hosts_file=str(path))
    assert asyncio.run(DirectoryDiscovery(runner, config).enumerate_hosts()) == ["dc05", "dc06"]


def test_missing_hosts_file_is_fatal(fake_runner, tmp_path):
    config = DiscoveryConfig(hosts_file=str(tmp_path / "missing.txt"))
    with pytest.raises(DiscoveryError):
        asyncio.run(DirectoryDiscovery(fake_runner(), config).enumerate_hosts())


def test_directory_query(fake_runner):
    runner = fake_runner(json_rows=_directory)
    hosts = asyncio.run(DirectoryDiscovery(runner, DiscoveryConfig()).enumerate_hosts())
    assert hosts == ["dc01.corp.local", "dc02.corp.local"]
    assert "Get-ADDomainController" in runner.calls[0]


def test_empty_directory_is_fatal(fake_runner):
    with pytest.raises(DiscoveryError):
        asyncio.run(DirectoryDiscovery(fake_runner(json_rows=[]), DiscoveryConfig()).enumerate_hosts())


def test_failed_directory_query_is_fatal(fake_runner):
    runner = fake_runner(json_rows=CommandError("Unable to contact the server"))
    with pytest.raises(DiscoveryError):
        asyncio.run(DirectoryDiscovery(runner, DiscoveryConfig()).enumerate_hosts())


def test_infrastructure(fake_runner):
    runner = fake_runner(json_rows=_directory)
    info = asyncio.run(DirectoryDiscovery(runner, DiscoveryConfig()).infrastructure())

    assert info.available
    assert info.forest_name == "corp.local"
    assert info.sites == ["Default-First-Site-Name", "Munich"]
    assert info.global_catalogs == ["dc01.corp.local"]
    assert [d.netbios_name for d in info.domains] == ["CORP"]
    assert info.domains[0].infrastructure_master == "dc02.corp.local"
    assert len(info.errors) == 1
    assert "emea.corp.local" in info.errors[0]


def test_infrastructure_failure_is_recorded(fake_runner):
    runner = fake_runner(json_rows=CommandError("Get-ADForest not recognized"))
    info = asyncio.run(DirectoryDiscovery(runner, DiscoveryConfig()).infrastructure())
    assert not info.available
    assert info.errors
