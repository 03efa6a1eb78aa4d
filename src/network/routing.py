"""Least-cost path search on the road network with static free-flow costs.

`PathEngine` builds its graph and heuristic tables once per network and then
answers any number of `path(from_node, to_node)` queries. The heuristic is
the larger of two lower bounds on remaining travel time:

- straight-line distance divided by the fastest straight-line speed any link
  allows (node-to-node distance over link travel time)
- the ALT (A*, landmarks, triangle inequality) bound from precomputed
  landmark distances

Per-query search state is local to `networkx.astar_path`, so an engine can be
shared read-only between threads.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import networkx as nx

from src.network.graph import Link, Network

LOGGER = logging.getLogger(__name__)

COST_ATTR = "travel_time"


class NoPathFound(LookupError):
    """No route connects the two nodes (or one of them is not in the network)."""


@dataclass(frozen=True)
class Path:
    links: tuple[Link, ...]
    travel_time: float

    @property
    def node_ids(self) -> tuple[str, ...]:
        if not self.links:
            return ()
        return (self.links[0].from_node.node_id,) + tuple(lk.to_node.node_id for lk in self.links)


def build_routing_graph(network: Network) -> nx.DiGraph:
    """Collapse parallel links to the cheapest one per node pair (ties: smallest link id)."""
    G = nx.DiGraph()
    G.add_nodes_from(network.nodes)
    for lid in sorted(network.links):
        lk = network.links[lid]
        u, v = lk.from_node.node_id, lk.to_node.node_id
        cost = lk.freespeed_travel_time
        prev = G.get_edge_data(u, v)
        if prev is None or cost < prev[COST_ATTR]:
            G.add_edge(u, v, **{COST_ATTR: cost, "link_id": lid})
    return G


def _max_crow_speed(network: Network) -> float:
    """Fastest straight-line progress any link allows, in m/s.

    Uses node-to-node distance over link travel time rather than the posted
    speed, since a link's length may be shorter than the gap between its nodes.
    Infinite when a zero-cost link joins two distinct points.
    """
    best = 0.0
    for lk in network.links.values():
        cost = lk.freespeed_travel_time
        if not math.isfinite(cost) or cost < 0:
            continue
        a, b = lk.from_node.coord, lk.to_node.coord
        dist = math.hypot(b.x - a.x, b.y - a.y)
        if dist == 0.0:
            continue
        if cost == 0.0:
            return math.inf
        best = max(best, dist / cost)
    return best


def select_landmarks(network: Network, k: int) -> list[str]:
    """Deterministic farthest-point landmark selection on node coordinates."""
    if k <= 0 or not network.nodes:
        return []
    ids = sorted(network.nodes)
    xs = [network.nodes[n].coord.x for n in ids]
    ys = [network.nodes[n].coord.y for n in ids]
    cx, cy = sum(xs) / len(xs), sum(ys) / len(ys)

    def _d2(i: int, x: float, y: float) -> float:
        return (xs[i] - x) ** 2 + (ys[i] - y) ** 2

    first = max(range(len(ids)), key=lambda i: (_d2(i, cx, cy), -i))
    chosen = [first]
    nearest = [_d2(i, xs[first], ys[first]) for i in range(len(ids))]
    while len(chosen) < min(k, len(ids)):
        nxt = max(range(len(ids)), key=lambda i: (nearest[i], -i))
        if nearest[nxt] <= 0.0:
            break
        chosen.append(nxt)
        nearest = [min(nearest[i], _d2(i, xs[nxt], ys[nxt])) for i in range(len(ids))]
    return [ids[i] for i in chosen]


class PathEngine:
    """A* least-cost path calculator over free-flow travel times."""

    def __init__(self, network: Network, *, n_landmarks: int = 8) -> None:
        self.network = network
        self.graph = build_routing_graph(network)
        self.max_speed = _max_crow_speed(network)

        # Landmark tables: d(L, v) forward and d(v, L) via the reversed graph.
        self.landmarks = select_landmarks(network, n_landmarks)
        self._from_landmark: list[dict[str, float]] = []
        self._to_landmark: list[dict[str, float]] = []
        reverse = self.graph.reverse(copy=False)
        for lm in self.landmarks:
            self._from_landmark.append(
                nx.single_source_dijkstra_path_length(self.graph, lm, weight=COST_ATTR)
            )
            self._to_landmark.append(
                nx.single_source_dijkstra_path_length(reverse, lm, weight=COST_ATTR)
            )
        LOGGER.info(
            "Path engine ready: %d nodes, %d edges, %d landmarks, speed bound %.2f m/s",
            self.graph.number_of_nodes(),
            self.graph.number_of_edges(),
            len(self.landmarks),
            self.max_speed,
        )

    def heuristic(self, u: str, target: str) -> float:
        """Admissible lower bound on travel time from `u` to `target`."""
        best = 0.0
        if 0.0 < self.max_speed < math.inf:
            a = self.network.nodes[u].coord
            b = self.network.nodes[target].coord
            best = math.hypot(b.x - a.x, b.y - a.y) / self.max_speed
        for fwd, bwd in zip(self._from_landmark, self._to_landmark, strict=True):
            # d(L,t) - d(L,u) <= d(u,t) and d(u,L) - d(t,L) <= d(u,t)
            if u in fwd and target in fwd:
                lb = fwd[target] - fwd[u]
                if math.isfinite(lb) and lb > best:
                    best = lb
            if u in bwd and target in bwd:
                lb = bwd[u] - bwd[target]
                if math.isfinite(lb) and lb > best:
                    best = lb
        return best

    def path(self, from_node: str, to_node: str) -> Path:
        """Least-cost path from `from_node` to `to_node`.

        Raises `NoPathFound` if either node is unknown or `to_node` is unreachable.
        """
        if from_node not in self.graph or to_node not in self.graph:
            raise NoPathFound(f"node not in network: {from_node!r} -> {to_node!r}")
        if from_node == to_node:
            return Path(links=(), travel_time=0.0)
        try:
            node_ids = nx.astar_path(
                self.graph, from_node, to_node, heuristic=self.heuristic, weight=COST_ATTR
            )
        except nx.NetworkXNoPath as exc:
            raise NoPathFound(f"no path from {from_node!r} to {to_node!r}") from exc

        links: list[Link] = []
        cost = 0.0
        for u, v in zip(node_ids[:-1], node_ids[1:], strict=True):
            data = self.graph.edges[u, v]
            links.append(self.network.links[data["link_id"]])
            cost += data[COST_ATTR]
        return Path(links=tuple(links), travel_time=cost)
