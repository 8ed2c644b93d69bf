"""
proration/export.py
-------------------
Write allocation results to JSON or CSV.

Both writers take the request and the final ``{name: amount}`` mapping
only; they never recompute anything the engine owns.  Files are written
atomically (temp file + rename) so a crash mid-write never leaves a
truncated export behind.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from proration.config import DEFAULT_EXPORT_STEM, EXPORT_TIMESTAMP_FORMAT
from proration.models import ZERO, AllocationRequest

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Claimant Name", "Requested Amount", "Weight", "Allocated Amount"]


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _timestamped(directory: Path, stem: str, suffix: str, now: Optional[datetime]) -> Path:
    stamp = (now or datetime.now()).strftime(EXPORT_TIMESTAMP_FORMAT)
    return Path(directory) / f"{stem}_{stamp}{suffix}"


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


def format_for_export(
    request: AllocationRequest,
    allocations: Mapping[str, Decimal],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Request in fixture wire shape plus ``results`` and ``calculated_at``."""
    data = request.to_dict()
    data["results"] = dict(allocations)
    data["calculated_at"] = (now or datetime.now()).isoformat()
    return data


def export_json(
    data: Dict[str, Any],
    directory: Path,
    stem: str = DEFAULT_EXPORT_STEM,
    now: Optional[datetime] = None,
) -> Path:
    path = _timestamped(directory, stem, ".json", now)
    _atomic_write(path, json.dumps(data, indent=2, default=_json_default))
    logger.info("Exported JSON results to %s", path)
    return path


def build_csv_frame(request: AllocationRequest, allocations: Mapping[str, Decimal]) -> pd.DataFrame:
    """
    One row per claimant, then a blank row, a ``Total`` row and an
    ``Available Capacity`` row.
    """
    rows = [
        [c.name, c.requested, c.weight, allocations.get(c.name, ZERO)]
        for c in request.claimants
    ]
    rows.append(["", "", "", ""])
    rows.append([
        "Total",
        request.total_requested,
        request.total_weight,
        sum(allocations.values(), ZERO),
    ])
    rows.append(["Available Capacity", "", "", request.capacity])
    return pd.DataFrame(rows, columns=CSV_COLUMNS, dtype=object)


def export_csv(
    request: AllocationRequest,
    allocations: Mapping[str, Decimal],
    directory: Path,
    stem: str = DEFAULT_EXPORT_STEM,
    now: Optional[datetime] = None,
) -> Path:
    path = _timestamped(directory, stem, ".csv", now)
    frame = build_csv_frame(request, allocations)
    _atomic_write(path, frame.to_csv(index=False, lineterminator="\n"))
    logger.info("Exported CSV results to %s", path)
    return path
