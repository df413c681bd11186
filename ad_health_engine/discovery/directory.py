"""
Directory discovery — Enumerates the domain controllers to check and collects
forest/domain infrastructure facts for the report's summary section.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..config import DiscoveryConfig
from ..safety.guardian import SafetyViolation
from ..shell.runner import CommandError, CommandRunner

logger = logging.getLogger("ad_health_engine.discovery")


class DiscoveryError(Exception):
    """Raised when no host list can be produced at all."""
    pass


@dataclass
class DomainInfo:
    dns_root: str
    netbios_name: str = ""
    domain_mode: str = ""
    pdc_emulator: str = ""
    rid_master: str = ""
    infrastructure_master: str = ""

    def to_dict(self) -> dict:
        return {
            "dns_root": self.dns_root,
            "netbios_name": self.netbios_name,
            "domain_mode": self.domain_mode,
            "pdc_emulator": self.pdc_emulator,
            "rid_master": self.rid_master,
            "infrastructure_master": self.infrastructure_master,
        }


@dataclass
class InfrastructureInfo:
    """Forest-wide facts shown above the per-host sections."""
    forest_name: str = ""
    forest_mode: str = ""
    schema_master: str = ""
    domain_naming_master: str = ""
    sites: list[str] = field(default_factory=list)
    global_catalogs: list[str] = field(default_factory=list)
    domains: list[DomainInfo] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    sync_status: Optional[Any] = None   # SyncStatus when the tenant check ran

    @property
    def available(self) -> bool:
        return bool(self.forest_name)

    def to_dict(self) -> dict:
        return {
            "forest_name": self.forest_name,
            "forest_mode": self.forest_mode,
            "schema_master": self.schema_master,
            "domain_naming_master": self.domain_naming_master,
            "sites": self.sites,
            "global_catalogs": self.global_catalogs,
            "domains": [d.to_dict() for d in self.domains],
            "errors": self.errors,
            "sync_status": self.sync_status.to_dict() if self.sync_status else None,
        }


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def dedupe_hosts(hosts: list[str]) -> list[str]:
    """Strip, drop blanks and case-insensitive duplicates, keep first-seen order."""
    seen = set()
    ordered = []
    for host in hosts:
        host = host.strip()
        if not host or host.casefold() in seen:
            continue
        seen.add(host.casefold())
        ordered.append(host)
    return ordered


def read_hosts_file(path: str | Path) -> list[str]:
    """One host per line; blank lines and # comments are ignored."""
    hosts = []
    for line in Path(path).read_text(encoding="utf-8-sig").splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            hosts.append(line)
    return hosts


class DirectoryDiscovery:
    """
    Produces the ordered host list for a run.

    Explicit hosts win over the hosts file, which wins over an AD query.
    """

    def __init__(self, runner: CommandRunner, config: DiscoveryConfig):
        self.runner = runner
        self.config = config

    async def enumerate_hosts(self) -> list[str]:
        if self.config.hosts:
            hosts = dedupe_hosts(list(self.config.hosts))
            source = "command line"
        elif self.config.hosts_file:
            try:
                hosts = dedupe_hosts(read_hosts_file(self.config.hosts_file))
            except OSError as e:
                raise DiscoveryError(f"Cannot read hosts file {self.config.hosts_file}: {e}") from e
            source = self.config.hosts_file
        else:
            hosts = await self._query_domain_controllers()
            source = "Active Directory"

        if not hosts:
            raise DiscoveryError(f"No domain controllers found ({source})")
        logger.info(f"Enumerated {len(hosts)} hosts from {source}")
        return hosts

    async def _query_domain_controllers(self) -> list[str]:
        if self.config.domain:
            domain = self.runner.guardian.validate_host(self.config.domain)
            script = (
                f"Get-ADDomainController -Filter * -Server '{domain}' | "
                "Sort-Object HostName | Select-Object HostName"
            )
        else:
            script = (
                "(Get-ADForest).Domains | ForEach-Object { "
                "Get-ADDomainController -Filter * -Server $_ | Sort-Object HostName } | "
                "Select-Object HostName"
            )
        try:
            rows = await self.runner.powershell_json(script)
        except CommandError as e:
            raise DiscoveryError(f"Domain controller query failed: {e}") from e
        return dedupe_hosts([str(r.get("HostName") or "") for r in rows])

    async def infrastructure(self) -> InfrastructureInfo:
        """Forest and domain facts; failures are recorded, never raised."""
        info = InfrastructureInfo()
        try:
            forest = await self.runner.powershell_json(
                "Get-ADForest | Select-Object Name,"
                "@{n='ForestMode';e={$_.ForestMode.ToString()}},"
                "SchemaMaster,DomainNamingMaster,"
                "@{n='Domains';e={@($_.Domains)}},"
                "@{n='Sites';e={@($_.Sites)}},"
                "@{n='GlobalCatalogs';e={@($_.GlobalCatalogs)}}"
            )
        except CommandError as e:
            info.errors.append(f"Forest query failed: {e}")
            logger.warning(f"Forest query failed: {e}")
            return info

        if not forest:
            info.errors.append("Forest query returned nothing")
            return info

        f = forest[0]
        info.forest_name = str(f.get("Name", ""))
        info.forest_mode = str(f.get("ForestMode", ""))
        info.schema_master = str(f.get("SchemaMaster", ""))
        info.domain_naming_master = str(f.get("DomainNamingMaster", ""))
        info.sites = sorted(_as_list(f.get("Sites")))
        info.global_catalogs = sorted(_as_list(f.get("GlobalCatalogs")))

        domains = _as_list(f.get("Domains"))
        if self.config.domain:
            domains = [d for d in domains if d.casefold() == self.config.domain.casefold()]
        for name in domains:
            domain = await self._domain_info(name, info)
            if domain:
                info.domains.append(domain)
        return info

    async def _domain_info(self, name: str, info: InfrastructureInfo) -> Optional[DomainInfo]:
        try:
            name = self.runner.guardian.validate_host(name)
            rows = await self.runner.powershell_json(
                f"Get-ADDomain -Server '{name}' | Select-Object DNSRoot,NetBIOSName,"
                "@{n='DomainMode';e={$_.DomainMode.ToString()}},"
                "PDCEmulator,RIDMaster,InfrastructureMaster"
            )
        except (CommandError, SafetyViolation) as e:
            info.errors.append(f"Domain query failed for {name}: {e}")
            logger.warning(f"Domain query failed for {name}: {e}")
            return None
        if not rows:
            return None
        d = rows[0]
        return DomainInfo(
            dns_root=str(d.get("DNSRoot") or name),
            netbios_name=str(d.get("NetBIOSName", "")),
            domain_mode=str(d.get("DomainMode", "")),
            pdc_emulator=str(d.get("PDCEmulator", "")),
            rid_master=str(d.get("RIDMaster", "")),
            infrastructure_master=str(d.get("InfrastructureMaster", "")),
        )
