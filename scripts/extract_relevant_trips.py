"""Extract the trips relevant to a region from a nationwide travel-demand set.

Every trip touching the region is clipped to where its free-flow route
crosses the region boundary; trips starting at or after midnight of the
next day are dropped.

Run from repo root:
  uv run python scripts/extract_relevant_trips.py data/raw/demand/plan_elements.csv \
      --nodes data/raw/network/nodes.csv --links data/raw/network/links.csv \
      --shp data/raw/boundaries/region.gpkg --output data/processed/trips/relevant_trips.csv

Outputs:
- data/processed/trips/relevant_trips.csv (default)
- data/processed/_meta/extract_summary.json (default)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure repo root is on sys.path so `import src...` works when executing this file directly.
SCRIPTS_DIR = Path(__file__).resolve().parent
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))
from bootstrap import ensure_repo_root_on_path

ensure_repo_root_on_path(__file__, parents=1)

from src.core.cli_utils import ExtractStats, add_input_flags, create_base_parser, log_level
from src.core.config import configure_logging, get_paths, load_extract_config
from src.core.data_loaders import load_extraction_inputs
from src.io import sha256_file, write_json, write_output_trips
from src.trips.extract import extract

LOGGER = logging.getLogger("extract_relevant_trips")

OUTPUT_TRIPS_FILE = "relevant_trips.csv"
SUMMARY_FILE = "extract_summary.json"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = create_base_parser(
        "Extract region-relevant trips, clipped at the region boundary."
    )
    add_input_flags(parser)
    parser.add_argument("--output", default=None, help="Output trip table (CSV).")
    parser.add_argument("--summary", default=None, help="Run summary (JSON).")
    args = parser.parse_args(argv)
    if args.plans is not None and args.plans_positional is not None:
        parser.error("give the plans table either positionally or with --plans, not both")
    if args.plans is None:
        args.plans = args.plans_positional
    return args


def run(args: argparse.Namespace) -> dict[str, object]:
    """Run one extraction. Returns the run summary."""
    paths = get_paths()
    cfg = load_extract_config(None if args.config is None else Path(args.config))
    workers = cfg.workers if args.workers is None else int(args.workers)
    use_gcc = bool(args.largest_component or cfg.largest_component)

    stats = ExtractStats()
    inputs = load_extraction_inputs(
        paths,
        nodes_csv=args.nodes,
        links_csv=args.links,
        plans_csv=args.plans,
        region_path=args.shp,
        region_layer=args.layer,
        crs=cfg.crs,
        use_gcc=use_gcc,
    )
    stats.update({"inputs": inputs.summary})
    stats.add_step("load")

    LOGGER.info(
        "Start creating the modified plans: there are in total %d persons to be processed",
        len(inputs.plans),
    )
    result = extract(
        inputs.network,
        inputs.region,
        inputs.plans,
        cfg.departure_default,
        workers=workers,
        progress_every=cfg.progress_every,
        horizon_s=cfg.horizon_s,
        n_landmarks=cfg.n_landmarks,
        start_activity_type=cfg.start_activity_type,
        end_activity_type=cfg.end_activity_type,
        leg_mode=cfg.leg_mode,
    )
    stats.update({"extract": result.summary()})
    stats.add_step("extract")

    out_path = (
        paths.processed_trips / OUTPUT_TRIPS_FILE if args.output is None else Path(args.output)
    )
    LOGGER.info("Writing population file...")
    write_output_trips(result.output_trips, out_path)
    LOGGER.info("Wrote %s (%d trips)", out_path, result.emitted)
    stats.update({"output": str(out_path)})
    stats.add_step("write")

    summary = stats.get_summary()
    if args.checkpoint:
        summary["sha256"] = {"output": sha256_file(out_path)}
        for key in ("nodes", "links", "plans", "shp"):
            value = getattr(args, key)
            if value is not None:
                summary["sha256"][key] = sha256_file(Path(value))
        LOGGER.info("CHECKPOINT: %s", summary["sha256"])

    summary_path = (
        paths.processed_meta / SUMMARY_FILE if args.summary is None else Path(args.summary)
    )
    write_json(summary, summary_path)
    LOGGER.info("Wrote %s", summary_path)
    return summary


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(log_level(args.log_level))
    run(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
