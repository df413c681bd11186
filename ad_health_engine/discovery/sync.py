"""
Hybrid identity check — reads the tenant's directory synchronisation state
from Microsoft Graph (organization.onPremisesLastSyncDateTime).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from ..graph.client import GraphAPIError, GraphClient
from ..probes.base import MetricFailure, MetricValue

logger = logging.getLogger("ad_health_engine.discovery.sync")

SYNC_METRIC = "directory_sync_age_hours"


@dataclass
class SyncStatus:
    tenant_name: str = ""
    sync_enabled: Optional[bool] = None
    last_sync: Optional[datetime] = None
    age_hours: Optional[MetricValue] = None   # None when sync is not enabled

    def to_dict(self) -> dict:
        return {
            "tenant_name": self.tenant_name,
            "sync_enabled": self.sync_enabled,
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
            "age_hours": None if isinstance(self.age_hours, MetricFailure) else self.age_hours,
            "error": self.age_hours.reason if isinstance(self.age_hours, MetricFailure) else None,
        }


def _parse_graph_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SyncStatusCollector:
    """Collects SyncStatus for the tenant the Graph client is bound to."""

    def __init__(self, graph: GraphClient):
        self.graph = graph

    async def collect(self, now: Optional[datetime] = None) -> SyncStatus:
        now = now or datetime.now(timezone.utc)
        status = SyncStatus()
        try:
            data = await self.graph.get(
                "organization",
                params={"$select": "displayName,onPremisesSyncEnabled,onPremisesLastSyncDateTime"},
            )
        except (GraphAPIError, httpx.HTTPError) as e:
            logger.warning(f"Directory sync query failed: {e}")
            status.age_hours = MetricFailure(str(e))
            return status

        orgs = data.get("value", [])
        if not orgs:
            status.age_hours = MetricFailure("organization not returned")
            return status

        org = orgs[0]
        status.tenant_name = org.get("displayName") or ""
        status.sync_enabled = bool(org.get("onPremisesSyncEnabled"))
        last_sync = org.get("onPremisesLastSyncDateTime")

        if not status.sync_enabled:
            return status
        if not last_sync:
            status.age_hours = MetricFailure("sync enabled but never completed")
            return status

        try:
            status.last_sync = _parse_graph_datetime(last_sync)
        except ValueError as e:
            status.age_hours = MetricFailure(f"unparseable timestamp {last_sync!r}: {e}")
            return status
        status.age_hours = round((now - status.last_sync).total_seconds() / 3600, 2)
        return status
