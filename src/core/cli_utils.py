"""Common CLI utilities for the extraction script."""

from __future__ import annotations

import argparse
import logging
from typing import Any


def create_base_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--config",
        default=None,
        help="YAML run configuration (default: config/extract_config.yaml).",
    )
    parser.add_argument(
        "--checkpoint",
        action="store_true",
        help="Record input/output SHA256 hashes in the run summary.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser


def add_input_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--nodes", default=None, help="Road network node table (CSV).")
    parser.add_argument("--links", default=None, help="Road network link table (CSV).")
    parser.add_argument(
        "plans_positional",
        nargs="?",
        default=None,
        metavar="plans",
        help="Travel demand plan-element table (CSV); same as --plans.",
    )
    parser.add_argument("--plans", default=None, help="Travel demand plan-element table (CSV).")
    parser.add_argument(
        "--shp", default=None, help="Region of interest (Shapefile/GeoPackage/GeoJSON)."
    )
    parser.add_argument("--layer", default=None, help="Layer name inside the region file.")
    parser.add_argument(
        "--largest-component",
        action="store_true",
        help="Restrict the network to its largest weakly connected component.",
    )
    parser.add_argument("--workers", type=int, default=None, help="Classification threads.")


def log_level(name: str) -> int:
    return int(getattr(logging, name.upper()))


class ExtractStats:
    """Simple container for collecting statistics across extraction steps."""

    def __init__(self) -> None:
        self.stats: dict[str, Any] = {}
        self.completed_steps: list[str] = []

    def update(self, step_stats: dict[str, Any]) -> None:
        self.stats.update(step_stats)

    def add_step(self, step_name: str) -> None:
        self.completed_steps.append(step_name)

    def get_summary(self) -> dict[str, Any]:
        return {
            "completed_steps": self.completed_steps,
            "step_count": len(self.completed_steps),
            **self.stats,
        }
