"""
Configuration module for the AD Health Engine.
Defines all tunable parameters, probe settings, thresholds and output options.
"""

from __future__ import annotations

import os
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone


# ─── Tenant Authentication (directory sync check) ───────────────────────────

@dataclass
class CertificateAuth:
    """Certificate-based app-only authentication configuration."""
    tenant_id: str
    client_id: str
    certificate_path: str          # Path to base64-encoded PFX
    certificate_password: str = "" # Falls back to AD_HEALTH_CERT_PASSWORD

@dataclass
class AuthConfig:
    """Authentication for the optional Microsoft Graph sync-status check."""
    certificate: Optional[CertificateAuth] = None

    @property
    def enabled(self) -> bool:
        return self.certificate is not None


CERT_PASSWORD_ENV = "AD_HEALTH_CERT_PASSWORD"


# ─── Graph API Settings ─────────────────────────────────────────────────────

GRAPH_BASE_URL = "https://graph.microsoft.com"
GRAPH_API_VERSION = "v1.0"
GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]

MAX_RETRIES = 3                   # Retry count for throttled requests
INITIAL_BACKOFF_SECONDS = 2.0     # First retry delay
MAX_BACKOFF_SECONDS = 60.0        # Cap on exponential backoff
BACKOFF_MULTIPLIER = 2.0          # Exponential factor


# ─── Probe Settings ─────────────────────────────────────────────────────────

DEFAULT_SERVICES = [
    "NTDS",
    "Netlogon",
    "DNS",
    "KDC",
    "W32Time",
    "DFSR",
]

# dcdiag sub-tests requested for every host
DEFAULT_DCDIAG_TESTS = [
    "Connectivity",
    "Advertising",
    "DFSREvent",
    "SysVolCheck",
    "KccEvent",
    "KnowsOfRoleHolders",
    "MachineAccount",
    "NCSecDesc",
    "NetLogons",
    "ObjectsReplicated",
    "Replications",
    "RidManager",
    "Services",
    "SystemLog",
    "VerifyReferences",
]

@dataclass
class ProbeConfig:
    """Controls for per-host probing."""
    parallel_hosts: int = 1                   # 1 = strictly sequential
    reachability_ports: list[int] = field(default_factory=lambda: [389])
    connect_timeout_seconds: float = 3.0      # Bound on the reachability check
    command_timeout_seconds: float = 300.0    # dcdiag can be slow on busy DCs
    system_drive: str = "C:"
    services: list[str] = field(default_factory=lambda: list(DEFAULT_SERVICES))
    dcdiag_tests: list[str] = field(default_factory=lambda: list(DEFAULT_DCDIAG_TESTS))
    enable_dcdiag: bool = True
    check_ldaps_certificate: bool = True
    ldaps_port: int = 636
    powershell: str = "powershell"
    fallback_encoding: str = "cp850"          # OEM code page of localized tools


# ─── Discovery Settings ─────────────────────────────────────────────────────

@dataclass
class DiscoveryConfig:
    """Where the list of domain controllers comes from."""
    hosts: list[str] = field(default_factory=list)   # Explicit list wins
    hosts_file: str = ""                             # One host per line
    domain: str = ""                                 # Limit to one domain
    collect_infrastructure: bool = True


# ─── Thresholds ─────────────────────────────────────────────────────────────

HIGHER_IS_BETTER = "higher_is_better"
LOWER_IS_BETTER = "lower_is_better"

# Per-deployment cut points; override any entry via "thresholds" in the
# config file. inclusive=True puts a value sitting on a cut into the worse tier.
DEFAULT_THRESHOLDS = {
    "free_space_gb": {
        "direction": HIGHER_IS_BETTER, "fail": 10, "warn": 20, "inclusive": False,
    },
    "clock_offset_seconds": {
        "direction": LOWER_IS_BETTER, "fail": 2, "warn": None,
        "inclusive": True, "absolute": True,
    },
    "uptime_hours": {
        "direction": HIGHER_IS_BETTER, "fail": None, "warn": 24, "inclusive": True,
    },
    "certificate_days_remaining": {
        "direction": HIGHER_IS_BETTER, "fail": 30, "warn": 60, "inclusive": False,
    },
    "directory_sync_age_hours": {
        "direction": LOWER_IS_BETTER, "fail": 24, "warn": 3, "inclusive": False,
    },
}

METRIC_DISPLAY = {
    "uptime_hours": ("Uptime", "h"),
    "free_space_gb": ("Free Space", "GB"),
    "clock_offset_seconds": ("Clock Offset", "s"),
    "certificate_days_remaining": ("LDAPS Certificate", "days"),
    "directory_sync_age_hours": ("Last Directory Sync", "h ago"),
}


# ─── Output Configuration ───────────────────────────────────────────────────

OUTPUT_FORMATS = ["html", "csv", "json"]

@dataclass
class OutputConfig:
    """Output directory and format settings."""
    base_dir: str = ""
    timestamp: str = ""
    formats: list[str] = field(default_factory=lambda: list(OUTPUT_FORMATS))
    open_report: bool = False

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        if not self.base_dir:
            self.base_dir = os.path.join(os.getcwd(), "ad_health_output")

    @property
    def report_dir(self) -> Path:
        return Path(self.base_dir)


# ─── Master Configuration ───────────────────────────────────────────────────

@dataclass
class EngineConfig:
    """Top-level configuration for the entire engine."""
    auth: AuthConfig = field(default_factory=AuthConfig)
    probes: ProbeConfig = field(default_factory=ProbeConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    thresholds: dict[str, dict] = field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_THRESHOLDS.items()}
    )
    dcdiag_locales: list[dict] = field(default_factory=list)  # Extra locales
    verbose: bool = False

    @classmethod
    def from_file(cls, path: str | Path) -> "EngineConfig":
        """Load configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "EngineConfig":
        config = cls()
        if "auth" in data and "certificate" in data["auth"]:
            c = data["auth"]["certificate"]
            config.auth.certificate = CertificateAuth(
                tenant_id=c["tenant_id"],
                client_id=c["client_id"],
                certificate_path=c.get("certificate_path", "./base64.txt"),
                certificate_password=c.get("certificate_password", ""),
            )
        for section in ("probes", "discovery", "output"):
            target = getattr(config, section)
            for k, v in data.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
        for metric, rule in data.get("thresholds", {}).items():
            config.thresholds.setdefault(metric, {}).update(rule)
        config.dcdiag_locales = list(data.get("dcdiag_locales", []))
        config.verbose = data.get("verbose", False)
        return config
