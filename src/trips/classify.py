"""Classify a trip against the region and clip it to its boundary crossings.

Each trip falls in exactly one case, decided by origin/destination containment:

- interior: both inside; kept as is, no routing
- outgoing: origin inside; ends at the first boundary link on the route
- incoming: destination inside; starts at the first boundary link on the route,
  departing once the links before it have been driven
- through: both outside; starts at the first boundary link and ends at the next

Link traversal time is `floor(length / freespeed) + 1` seconds, summed over
the links driven before the entry link.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from src.geo.region import Region
from src.network.graph import Coord, Link, Network
from src.network.routing import PathEngine
from src.trips.plans import Trip


class TripCase(str, Enum):
    INTERIOR = "interior"
    OUTGOING = "outgoing"
    INCOMING = "incoming"
    THROUGH = "through"


class ScanState(Enum):
    SEARCHING_ENTRY = "searching_entry"
    SEARCHING_EXIT = "searching_exit"
    DONE = "done"


class InvalidTravelTime(ValueError):
    """A link on the route yields a negative or non-finite traversal time."""


class UnknownLinkError(KeyError):
    """A trip references a link the network does not have."""


class NoCrossingFound(LookupError):
    """The route never reaches the boundary link(s) the case needs."""

    def __init__(self, case: TripCase, reason: str) -> None:
        super().__init__(f"{case.value}: {reason}")
        self.case = case
        self.reason = reason


@dataclass(frozen=True)
class Crossing:
    link: Link
    elapsed: float  # seconds driven before entering `link`


@dataclass(frozen=True)
class StubTrip:
    case: TripCase
    start: Coord
    start_time: float
    end: Coord


def link_traversal_time(link: Link) -> float:
    length, speed = float(link.length_m), float(link.freespeed_mps)
    if not (math.isfinite(length) and math.isfinite(speed)) or speed <= 0 or length < 0:
        raise InvalidTravelTime(
            f"link {link.link_id!r}: length={link.length_m} freespeed={link.freespeed_mps}"
        )
    return float(math.floor(length / speed) + 1)


def classify_case(origin_inside: bool, destination_inside: bool) -> TripCase:
    if origin_inside:
        return TripCase.INTERIOR if destination_inside else TripCase.OUTGOING
    return TripCase.INCOMING if destination_inside else TripCase.THROUGH


def scan_crossings(
    links: Iterable[Link],
    boundary: frozenset[str] | set[str],
    *,
    want_exit: bool,
    timed: bool = True,
) -> list[Crossing]:
    """Walk a route once and return its entry crossing and, if `want_exit`, its exit crossing.

    Elapsed time is accumulated only while looking for the entry; it is
    unused afterwards. With `timed=False` no traversal time is computed.
    """
    state = ScanState.SEARCHING_ENTRY
    elapsed = 0.0
    found: list[Crossing] = []
    for link in links:
        if link.link_id in boundary:
            found.append(Crossing(link=link, elapsed=elapsed))
            if state is ScanState.SEARCHING_ENTRY and want_exit:
                state = ScanState.SEARCHING_EXIT
            else:
                state = ScanState.DONE
        if state is ScanState.DONE:
            break
        if timed and state is ScanState.SEARCHING_ENTRY:
            elapsed += link_traversal_time(link)
    return found


def _route(trip: Trip, network: Network, engine: PathEngine) -> tuple[Link, ...]:
    try:
        origin = network.links[trip.origin_link]
        destination = network.links[trip.destination_link]
    except KeyError as exc:
        raise UnknownLinkError(f"person {trip.person_id!r}: unknown link {exc.args[0]!r}") from exc
    return engine.path(origin.to_node.node_id, destination.to_node.node_id).links


def classify_trip(
    trip: Trip,
    *,
    network: Network,
    region: Region,
    boundary: frozenset[str] | set[str],
    engine: PathEngine,
    departure_default: float = 0.0,
) -> StubTrip:
    """Clip `trip` to the region.

    Raises `NoCrossingFound` when the trip is irrelevant to the region,
    `UnknownLinkError`/`NoPathFound` when it cannot be routed and
    `InvalidTravelTime` when the route carries corrupt link attributes.
    """
    case = classify_case(
        region.contains_coord(trip.origin), region.contains_coord(trip.destination)
    )
    departure = float(departure_default if trip.departure_time is None else trip.departure_time)

    if case is TripCase.INTERIOR:
        return StubTrip(case, trip.origin, departure, trip.destination)

    links = _route(trip, network, engine)

    if case is TripCase.OUTGOING:
        found = scan_crossings(links, boundary, want_exit=False, timed=False)
        if not found:
            raise NoCrossingFound(case, "no_crossing")
        return StubTrip(case, trip.origin, departure, found[0].link.coord)

    if case is TripCase.INCOMING:
        found = scan_crossings(links, boundary, want_exit=False)
        if not found:
            raise NoCrossingFound(case, "no_crossing")
        entry = found[0]
        return StubTrip(case, entry.link.coord, departure + entry.elapsed, trip.destination)

    found = scan_crossings(links, boundary, want_exit=True)
    if not found:
        raise NoCrossingFound(case, "no_crossing")
    if len(found) < 2:
        raise NoCrossingFound(case, "no_exit_crossing")
    entry, exit_ = found
    return StubTrip(case, entry.link.coord, departure + entry.elapsed, exit_.link.coord)
