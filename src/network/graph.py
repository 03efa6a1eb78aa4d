"""Road network data model: nodes, directed links and adjacency.

The network is read-only once built. Coordinates are planar, in the CRS of
`src.core.config.CRS_NETWORK`.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field

import networkx as nx
import pandas as pd

from src.models.schemas import LINKS, NODES
from src.models.validate import validate_df

LOGGER = logging.getLogger(__name__)


class NetworkError(ValueError):
    """The network cannot be used for routing (empty, disconnected, dangling links)."""


@dataclass(frozen=True)
class Coord:
    x: float
    y: float


@dataclass(frozen=True)
class Node:
    node_id: str
    coord: Coord


@dataclass(frozen=True)
class Link:
    link_id: str
    from_node: Node
    to_node: Node
    length_m: float
    freespeed_mps: float
    capacity: float | None = None
    modes: frozenset[str] = field(default_factory=frozenset)

    @property
    def coord(self) -> Coord:
        """Representative point: midpoint of the end nodes."""
        a, b = self.from_node.coord, self.to_node.coord
        return Coord((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)

    @property
    def freespeed_travel_time(self) -> float:
        """Free-flow travel time in seconds; `inf` for corrupt length/speed."""
        length, speed = float(self.length_m), float(self.freespeed_mps)
        if not (math.isfinite(length) and math.isfinite(speed)) or speed <= 0 or length < 0:
            return math.inf
        return length / speed


@dataclass(frozen=True)
class Network:
    nodes: Mapping[str, Node]
    links: Mapping[str, Link]
    out_links: Mapping[str, tuple[Link, ...]]

    @classmethod
    def from_links(cls, nodes: Mapping[str, Node], links: Mapping[str, Link]) -> Network:
        missing = sorted(
            {lk.from_node.node_id for lk in links.values()}.union(
                lk.to_node.node_id for lk in links.values()
            )
            - set(nodes)
        )
        if missing:
            raise NetworkError(
                f"links reference unknown node_id(s): {len(missing)} (e.g. {missing[:10]})"
            )
        adjacency: dict[str, list[Link]] = {nid: [] for nid in nodes}
        for lk in links.values():
            adjacency[lk.from_node.node_id].append(lk)
        out_links = {nid: tuple(lks) for nid, lks in adjacency.items()}
        return cls(nodes=dict(nodes), links=dict(links), out_links=out_links)

    def link_graph(self) -> nx.MultiDiGraph:
        """Structural view (one edge per link, keyed by link id) for connectivity checks."""
        G = nx.MultiDiGraph()
        G.add_nodes_from(self.nodes)
        G.add_edges_from(
            (lk.from_node.node_id, lk.to_node.node_id, lk.link_id) for lk in self.links.values()
        )
        return G

    def summary(self) -> dict[str, object]:
        G = self.link_graph()
        comps = list(nx.weakly_connected_components(G)) if G.number_of_nodes() else []
        gcc_n = len(max(comps, key=len)) if comps else 0
        n = len(self.nodes)
        return {
            "n_nodes": n,
            "n_links": len(self.links),
            "n_components": len(comps),
            "gcc_nodes": gcc_n,
            "gcc_share": float(gcc_n / n) if n else 0.0,
        }


def largest_component(network: Network) -> Network:
    """Return the largest weakly connected component as a new network."""
    G = network.link_graph()
    comps = list(nx.weakly_connected_components(G))
    if not comps:
        return network
    gcc = max(comps, key=len)
    nodes = {nid: n for nid, n in network.nodes.items() if nid in gcc}
    links = {
        lid: lk
        for lid, lk in network.links.items()
        if lk.from_node.node_id in gcc and lk.to_node.node_id in gcc
    }
    LOGGER.info(
        "Restricted network to largest component: dropped %d nodes, %d links",
        len(network.nodes) - len(nodes),
        len(network.links) - len(links),
    )
    return Network.from_links(nodes, links)


def validate_network(network: Network) -> None:
    """Fail fast if no trip can be meaningfully routed on `network`."""
    if not network.nodes or not network.links:
        raise NetworkError(
            f"network is empty ({len(network.nodes)} nodes, {len(network.links)} links)"
        )
    G = network.link_graph()
    if not nx.is_weakly_connected(G):
        n_comp = nx.number_weakly_connected_components(G)
        raise NetworkError(
            f"network is disconnected ({n_comp} weakly connected components); "
            "restrict it to the largest component first"
        )


def _split_modes(v: object) -> frozenset[str]:
    if v is None or v is pd.NA or (isinstance(v, float) and math.isnan(v)):
        return frozenset()
    return frozenset(p for p in str(v).split(";") if p)


def build_network_from_tables(
    *,
    nodes: pd.DataFrame,
    links: pd.DataFrame,
    use_gcc: bool = False,
) -> Network:
    """Build a directed road network from node/link tables.

    If `use_gcc` is True, the network is restricted to its largest weakly
    connected component before the connectivity check.
    """
    nodes = validate_df(nodes, NODES)
    links = validate_df(links, LINKS)

    dup = nodes.loc[nodes["node_id"].duplicated(), "node_id"].astype(str).tolist()
    if dup:
        raise NetworkError(f"nodes has duplicate node_id(s) (e.g. {dup[:10]})")
    dup = links.loc[links["link_id"].duplicated(), "link_id"].astype(str).tolist()
    if dup:
        raise NetworkError(f"links has duplicate link_id(s) (e.g. {dup[:10]})")

    node_map: dict[str, Node] = {
        str(nid): Node(str(nid), Coord(float(x), float(y)))
        for nid, x, y in nodes[["node_id", "x", "y"]].itertuples(index=False, name=None)
    }

    bad_u = set(links.loc[~links["from_node"].isin(node_map.keys()), "from_node"].astype(str))
    bad_v = set(links.loc[~links["to_node"].isin(node_map.keys()), "to_node"].astype(str))
    if bad_u or bad_v:
        sample = sorted(bad_u | bad_v)[:10]
        raise NetworkError(
            f"links reference unknown node_id(s): {len(bad_u | bad_v)} (e.g. {sample})"
        )

    link_map: dict[str, Link] = {}
    cols = ["link_id", "from_node", "to_node", "length_m", "freespeed_mps", "capacity", "modes"]
    for lid, u, v, length, speed, cap, modes in links[cols].itertuples(index=False, name=None):
        link_map[str(lid)] = Link(
            link_id=str(lid),
            from_node=node_map[str(u)],
            to_node=node_map[str(v)],
            length_m=float("nan") if pd.isna(length) else float(length),
            freespeed_mps=float("nan") if pd.isna(speed) else float(speed),
            capacity=None if pd.isna(cap) else float(cap),
            modes=_split_modes(modes),
        )

    network = Network.from_links(node_map, link_map)
    if use_gcc:
        network = largest_component(network)
    validate_network(network)

    LOGGER.info("Network built: %d nodes, %d links", len(network.nodes), len(network.links))
    return network
