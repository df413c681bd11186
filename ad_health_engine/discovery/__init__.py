from .directory import (
    DirectoryDiscovery,
    DiscoveryError,
    DomainInfo,
    InfrastructureInfo,
    dedupe_hosts,
    read_hosts_file,
)
from .sync import SYNC_METRIC, SyncStatus, SyncStatusCollector

__all__ = [
    "DirectoryDiscovery",
    "DiscoveryError",
    "DomainInfo",
    "InfrastructureInfo",
    "dedupe_hosts",
    "read_hosts_file",
    "SYNC_METRIC",
    "SyncStatus",
    "SyncStatusCollector",
]
