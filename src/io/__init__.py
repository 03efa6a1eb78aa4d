"""Lightweight I/O helpers.

This module centralises:
- validated CSV reads (`read_csv_validated`) at pipeline boundaries
- the output trip table (`output_trips_to_df`, `write_output_trips`)
- JSON run summaries and input checksums used by the extraction script
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from src.models.schemas import OUTPUT_TRIPS
from src.models.validate import validate_df


def ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_json(obj: Any, path: Path) -> None:
    ensure_parent_dir(path)
    path.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")


def read_csv_validated(
    path: Path,
    *,
    dtype: dict[str, str],
    schema: Any,
) -> pd.DataFrame:
    """Read a CSV (plain or compressed, inferred from the suffix) and validate it.

    We validate by *shape* (required attributes) rather than strict class identity.
    """
    required_attrs = ("name", "required_columns", "optional_columns", "dtypes", "non_null")
    missing = [a for a in required_attrs if not hasattr(schema, a)]
    if missing:
        raise TypeError(f"schema missing required attributes {missing}; got {type(schema)}")

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing required file: {path}")
    df = pd.read_csv(path, dtype=dtype)
    return validate_df(df, schema)


def output_trips_to_df(trips: Iterable[Any]) -> pd.DataFrame:
    """Flatten `OutputTrip` records into the `OUTPUT_TRIPS` table."""
    rows: list[dict[str, object]] = []
    for t in trips:
        rows.append(
            {
                "person_id": t.person_id,
                "source_person_id": t.source_person_id,
                "case": t.case.value,
                "start_activity_type": t.start.activity_type,
                "start_x": float(t.start.coord.x),
                "start_y": float(t.start.coord.y),
                "start_end_time": float(t.start.end_time),
                "leg_mode": t.leg.mode,
                "end_activity_type": t.end.activity_type,
                "end_x": float(t.end.coord.x),
                "end_y": float(t.end.coord.y),
            }
        )
    cols = list(OUTPUT_TRIPS.required_columns) + list(OUTPUT_TRIPS.optional_columns)
    df = pd.DataFrame(rows, columns=cols)
    return validate_df(df, OUTPUT_TRIPS)


def write_output_trips(trips: Iterable[Any], path: Path) -> pd.DataFrame:
    df = output_trips_to_df(trips)
    ensure_parent_dir(path)
    df.to_csv(path, index=False)
    return df


def sha256_file(path: Path) -> str:
    """Return SHA256 hex digest for a file."""
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()
