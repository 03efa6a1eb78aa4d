from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from src.core.config import CRS_NETWORK, get_paths
from src.geo.region import Region, load_region
from src.io import read_csv_validated
from src.models.schemas import LINKS, NODES, PLAN_ELEMENTS
from src.network.graph import Network, build_network_from_tables
from src.trips.plans import Plan, plans_from_table

LOGGER = logging.getLogger(__name__)

NODES_FILE = "nodes.csv"
LINKS_FILE = "links.csv"
PLAN_ELEMENTS_FILE = "plan_elements.csv"
REGION_FILE = "region.gpkg"


@dataclass(frozen=True)
class ExtractionInputs:
    """Everything one extraction run reads from disk."""

    network: Network
    region: Region
    plans: list[Plan]

    # Summary metadata
    summary: dict[str, object]


def load_extraction_inputs(
    paths=None,
    *,
    nodes_csv: Path | None = None,
    links_csv: Path | None = None,
    plans_csv: Path | None = None,
    region_path: Path | None = None,
    region_layer: str | None = None,
    crs: str = CRS_NETWORK,
    use_gcc: bool = False,
) -> ExtractionInputs:
    """Load and validate network tables, region geometry and plans.

    Unset file arguments default to the standard locations under `data/raw`.
    """
    if paths is None:
        paths = get_paths()
    nodes_csv = paths.raw_network / NODES_FILE if nodes_csv is None else Path(nodes_csv)
    links_csv = paths.raw_network / LINKS_FILE if links_csv is None else Path(links_csv)
    plans_csv = paths.raw_demand / PLAN_ELEMENTS_FILE if plans_csv is None else Path(plans_csv)
    region_path = paths.raw_boundaries / REGION_FILE if region_path is None else Path(region_path)

    LOGGER.info("Loading road network tables...")
    nodes = read_csv_validated(
        nodes_csv, dtype={"node_id": "string"}, schema=NODES
    )
    links = read_csv_validated(
        links_csv,
        dtype={"link_id": "string", "from_node": "string", "to_node": "string"},
        schema=LINKS,
    )
    network = build_network_from_tables(nodes=nodes, links=links, use_gcc=use_gcc)

    LOGGER.info("Loading region geometry...")
    region = load_region(region_path, layer=region_layer, crs=crs)

    LOGGER.info("Loading travel demand...")
    elements = read_csv_validated(
        plans_csv,
        dtype={"person_id": "string", "link_id": "string"},
        schema=PLAN_ELEMENTS,
    )
    plans = plans_from_table(elements)

    summary: dict[str, object] = {
        "n_nodes_input": int(len(nodes)),
        "n_links_input": int(len(links)),
        **network.summary(),
        "use_gcc": bool(use_gcc),
        "crs": str(crs),
        "region_bounds": list(region.bounds),
        "n_persons": int(len(plans)),
    }

    LOGGER.info(
        "Inputs loaded: %d nodes, %d links, %d persons",
        len(network.nodes),
        len(network.links),
        len(plans),
    )
    return ExtractionInputs(network=network, region=region, plans=plans, summary=summary)
