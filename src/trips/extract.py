"""Extract the trips relevant to a region and clip them to its boundary.

`extract()` is the single entry point: it validates the network and region,
detects boundary links once, classifies every trip (optionally on a thread
pool) and assembles the surviving stub trips with sequential person ids.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from src.core.config import END_ACTIVITY_TYPE, HORIZON_S, LEG_MODE, START_ACTIVITY_TYPE
from src.geo.region import Region, detect_boundary_links
from src.network.graph import Network, validate_network
from src.network.routing import NoPathFound, PathEngine
from src.trips.classify import (
    InvalidTravelTime,
    NoCrossingFound,
    StubTrip,
    TripCase,
    UnknownLinkError,
    classify_trip,
)
from src.trips.plans import Activity, Leg, MalformedPlanError, Plan, Trip

LOGGER = logging.getLogger(__name__)

SKIP_MALFORMED_PLAN = "malformed_plan"
SKIP_UNKNOWN_LINK = "unknown_link"
SKIP_NO_PATH = "no_path"
SKIP_INVALID_TIME = "invalid_travel_time"
SKIP_BEYOND_HORIZON = "beyond_horizon"


@dataclass(frozen=True)
class OutputTrip:
    person_id: str
    source_person_id: str
    case: TripCase
    start: Activity
    leg: Leg
    end: Activity


@dataclass
class ExtractResult:
    output_trips: list[OutputTrip]
    processed: int
    emitted: int
    skipped: Counter[str] = field(default_factory=Counter)
    cases: Counter[str] = field(default_factory=Counter)
    boundary_links: frozenset[str] = frozenset()

    def __iter__(self) -> Iterator[object]:
        # unpacks as (output_trips, processed, emitted)
        return iter((self.output_trips, self.processed, self.emitted))

    def summary(self) -> dict[str, object]:
        return {
            "processed": int(self.processed),
            "emitted": int(self.emitted),
            "n_boundary_links": len(self.boundary_links),
            "cases": {k: int(v) for k, v in sorted(self.cases.items())},
            "skipped": {k: int(v) for k, v in sorted(self.skipped.items())},
        }


@dataclass(frozen=True)
class _Outcome:
    source_person_id: str
    stub: StubTrip | None
    skip_reason: str | None = None


class TripExtractor:
    """Per-run state shared read-only by all trip classifications."""

    def __init__(
        self,
        network: Network,
        region: Region,
        *,
        engine: PathEngine | None = None,
        boundary: frozenset[str] | None = None,
        departure_default: float = 0.0,
        horizon_s: float = HORIZON_S,
        n_landmarks: int = 8,
    ) -> None:
        validate_network(network)
        self.network = network
        self.region = region
        self.boundary = detect_boundary_links(network, region) if boundary is None else boundary
        self.engine = PathEngine(network, n_landmarks=n_landmarks) if engine is None else engine
        self.departure_default = float(departure_default)
        self.horizon_s = float(horizon_s)

    def classify(self, item: Trip | Plan) -> _Outcome:
        if isinstance(item, Plan):
            try:
                trip = Trip.from_plan(item)
            except MalformedPlanError as exc:
                LOGGER.warning("Skipping malformed plan: %s", exc)
                return _Outcome(item.person_id, None, SKIP_MALFORMED_PLAN)
        else:
            trip = item

        try:
            stub = classify_trip(
                trip,
                network=self.network,
                region=self.region,
                boundary=self.boundary,
                engine=self.engine,
                departure_default=self.departure_default,
            )
        except NoCrossingFound as exc:
            return _Outcome(trip.person_id, None, exc.reason)
        except UnknownLinkError as exc:
            LOGGER.debug("Skipping trip: %s", exc)
            return _Outcome(trip.person_id, None, SKIP_UNKNOWN_LINK)
        except NoPathFound as exc:
            LOGGER.debug("Skipping person %r: %s", trip.person_id, exc)
            return _Outcome(trip.person_id, None, SKIP_NO_PATH)
        except InvalidTravelTime as exc:
            LOGGER.debug("Skipping person %r: %s", trip.person_id, exc)
            return _Outcome(trip.person_id, None, SKIP_INVALID_TIME)

        if not math.isfinite(stub.start_time) or stub.start_time < 0:
            return _Outcome(trip.person_id, None, SKIP_INVALID_TIME)
        if not stub.start_time < self.horizon_s:
            return _Outcome(trip.person_id, None, SKIP_BEYOND_HORIZON)
        return _Outcome(trip.person_id, stub)

    def run(
        self,
        trips: Iterable[Trip | Plan],
        *,
        workers: int = 1,
        progress_every: int = 100,
        start_activity_type: str = START_ACTIVITY_TYPE,
        end_activity_type: str = END_ACTIVITY_TYPE,
        leg_mode: str = LEG_MODE,
    ) -> ExtractResult:
        if progress_every < 1:
            raise ValueError(f"progress_every must be >= 1, got {progress_every}")
        result = ExtractResult(output_trips=[], processed=0, emitted=0, boundary_links=self.boundary)

        if workers > 1:
            executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="extract")
            outcomes: Iterable[_Outcome] = executor.map(self.classify, trips)
        else:
            executor = None
            outcomes = map(self.classify, trips)

        try:
            # Single writer: ids follow input order whatever the worker count.
            for outcome in outcomes:
                result.processed += 1
                if outcome.stub is None:
                    result.skipped[outcome.skip_reason] += 1
                else:
                    stub = outcome.stub
                    result.cases[stub.case.value] += 1
                    result.output_trips.append(
                        OutputTrip(
                            person_id=str(result.emitted),
                            source_person_id=outcome.source_person_id,
                            case=stub.case,
                            start=Activity(start_activity_type, stub.start, end_time=stub.start_time),
                            leg=Leg(leg_mode),
                            end=Activity(end_activity_type, stub.end),
                        )
                    )
                    result.emitted += 1
                if result.processed % progress_every == 0:
                    LOGGER.info("Processing: %d persons have been processed", result.processed)
        finally:
            if executor is not None:
                executor.shutdown(wait=True, cancel_futures=True)

        LOGGER.info(
            "Extraction complete: processed=%d emitted=%d skipped=%s",
            result.processed,
            result.emitted,
            dict(sorted(result.skipped.items())),
        )
        return result


def extract(
    network: Network,
    region: Region,
    trips: Iterable[Trip | Plan],
    departure_default: float = 0.0,
    *,
    engine: PathEngine | None = None,
    boundary: frozenset[str] | None = None,
    workers: int = 1,
    progress_every: int = 100,
    horizon_s: float = HORIZON_S,
    n_landmarks: int = 8,
    start_activity_type: str = START_ACTIVITY_TYPE,
    end_activity_type: str = END_ACTIVITY_TYPE,
    leg_mode: str = LEG_MODE,
) -> ExtractResult:
    """Clip every trip relevant to `region` to its boundary crossings.

    Returns an `ExtractResult`, which also unpacks as
    `(output_trips, processed, emitted)`.
    """
    extractor = TripExtractor(
        network,
        region,
        engine=engine,
        boundary=boundary,
        departure_default=departure_default,
        horizon_s=horizon_s,
        n_landmarks=n_landmarks,
    )
    return extractor.run(
        trips,
        workers=workers,
        progress_every=progress_every,
        start_activity_type=start_activity_type,
        end_activity_type=end_activity_type,
        leg_mode=leg_mode,
    )
