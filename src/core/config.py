"""Project configuration (paths, constants, run defaults)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

# CRS defaults
CRS_NETWORK: str = "EPSG:5677"  # DHDN / 3-degree Gauss-Kruger zone 3 (E-N)

# Simulated horizon: one day in seconds
HORIZON_S: float = 86400.0

# Plan vocabulary of the emitted stub trips
START_ACTIVITY_TYPE: str = "freight_start"
END_ACTIVITY_TYPE: str = "freight_end"
LEG_MODE: str = "freight"


def project_root() -> Path:
    """Return repository root assuming this file lives in `<root>/src/core/config.py`."""
    return Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class Paths:
    root: Path
    config: Path
    data_raw: Path
    data_processed: Path

    # Inputs: road network tables, travel demand, region geometry
    raw_network: Path
    raw_demand: Path
    raw_boundaries: Path

    # Outputs: extracted stub trips and run metadata
    processed_trips: Path
    processed_meta: Path


def get_paths(root: Path | None = None) -> Paths:
    r = project_root() if root is None else Path(root).resolve()
    data_raw = r / "data" / "raw"
    data_processed = r / "data" / "processed"
    return Paths(
        root=r,
        config=r / "config",
        data_raw=data_raw,
        data_processed=data_processed,
        raw_network=data_raw / "network",
        raw_demand=data_raw / "demand",
        raw_boundaries=data_raw / "boundaries",
        processed_trips=data_processed / "trips",
        processed_meta=data_processed / "_meta",
    )


class ExtractConfig(BaseModel):
    """Run configuration for relevant-trip extraction."""

    crs: str = CRS_NETWORK
    horizon_s: float = Field(default=HORIZON_S, gt=0)
    departure_default: float = 0.0
    n_landmarks: int = Field(default=8, ge=0)
    largest_component: bool = False
    workers: int = Field(default=1, ge=1)
    progress_every: int = Field(default=100, ge=1)
    start_activity_type: str = START_ACTIVITY_TYPE
    end_activity_type: str = END_ACTIVITY_TYPE
    leg_mode: str = LEG_MODE


def load_extract_config(path: Path | None = None) -> ExtractConfig:
    """Load `config/extract_config.yaml` (or `path`); missing keys fall back to defaults."""
    p = get_paths().config / "extract_config.yaml" if path is None else Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing config file: {p}")
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    return ExtractConfig(**(raw.get("extract") or {}))


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
