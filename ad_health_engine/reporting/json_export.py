"""
JSON exporter — Produces the full raw JSON output of a health run.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .. import __version__
from ..discovery.directory import InfrastructureInfo
from ..probes.base import HostProbeResult
from ..scoring.models import RunSummary


def export_json(
    results: list[HostProbeResult],
    summary: RunSummary,
    infrastructure: Optional[InfrastructureInfo],
    audit: dict,
    output_dir: Path,
    run_id: str,
) -> Path:
    """
    Write full run results to a JSON file.

    Returns:
        Path to the created JSON file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    payload = {
        "metadata": {
            "engine": "AD Health Engine",
            "version": __version__,
            "run_id": run_id,
            "generated_utc": datetime.now(timezone.utc).isoformat(),
            "mode": "READ-ONLY",
        },
        "summary": summary.to_dict(),
        "infrastructure": infrastructure.to_dict() if infrastructure else None,
        "hosts": [r.to_dict() for r in results],
        "audit": audit,
    }

    filepath = output_dir / f"ad_health_{run_id}.json"
    with open(filepath, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, default=str, ensure_ascii=False)

    return filepath
