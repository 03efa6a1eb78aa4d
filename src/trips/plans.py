"""Travel-demand records: plans (activity/leg sequences) and single-leg trips."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from src.models.schemas import PLAN_ELEMENTS
from src.models.validate import validate_df
from src.network.graph import Coord

LOGGER = logging.getLogger(__name__)

ELEMENT_ACTIVITY = "activity"
ELEMENT_LEG = "leg"


class MalformedPlanError(ValueError):
    """A plan does not have the (activity, leg, activity) shape."""


@dataclass(frozen=True)
class Activity:
    activity_type: str
    coord: Coord | None
    link_id: str | None = None
    end_time: float | None = None


@dataclass(frozen=True)
class Leg:
    mode: str


@dataclass(frozen=True)
class Plan:
    person_id: str
    elements: tuple[Activity | Leg, ...]


@dataclass(frozen=True)
class Trip:
    person_id: str
    origin_link: str
    destination_link: str
    origin: Coord
    destination: Coord
    departure_time: float | None = None  # None: start activity has no end time

    @classmethod
    def from_plan(cls, plan: Plan) -> Trip:
        """Build a trip from a start-activity / leg / end-activity plan."""
        shape = tuple(type(e).__name__.lower() for e in plan.elements)
        if shape != (ELEMENT_ACTIVITY, ELEMENT_LEG, ELEMENT_ACTIVITY):
            raise MalformedPlanError(f"person {plan.person_id!r}: unexpected plan shape {shape}")
        start, _, end = plan.elements
        for act in (start, end):
            if act.link_id is None or act.coord is None:
                raise MalformedPlanError(
                    f"person {plan.person_id!r}: activity {act.activity_type!r} "
                    "needs both a link and a coordinate"
                )
        return cls(
            person_id=plan.person_id,
            origin_link=start.link_id,
            destination_link=end.link_id,
            origin=start.coord,
            destination=end.coord,
            departure_time=start.end_time,
        )


def _opt_str(v: object) -> str | None:
    return None if pd.isna(v) else str(v)


def _opt_float(v: object) -> float | None:
    return None if pd.isna(v) else float(v)


def plans_from_table(df: pd.DataFrame) -> list[Plan]:
    """Group a long-form plan-element table into plans.

    Persons keep their first-appearance order; elements are ordered by
    `element_index`. An `element_type` other than activity/leg fails the whole
    table.
    """
    df = validate_df(df, PLAN_ELEMENTS)
    kinds = set(df["element_type"].astype(str).str.lower())
    unknown = sorted(kinds - {ELEMENT_ACTIVITY, ELEMENT_LEG})
    if unknown:
        raise ValueError(f"{PLAN_ELEMENTS.name}: unknown element_type value(s): {unknown}")

    order = pd.unique(df["person_id"].astype(str))
    df = df.sort_values(["element_index"], kind="mergesort")
    grouped = {str(pid): g for pid, g in df.groupby("person_id", sort=False)}

    plans: list[Plan] = []
    for pid in order:
        elements: list[Activity | Leg] = []
        for row in grouped[pid].itertuples(index=False):
            if str(row.element_type).lower() == ELEMENT_LEG:
                elements.append(Leg(mode=_opt_str(row.mode) or ""))
                continue
            x, y = _opt_float(row.x), _opt_float(row.y)
            elements.append(
                Activity(
                    activity_type=_opt_str(row.activity_type) or "",
                    coord=None if x is None or y is None else Coord(x, y),
                    link_id=_opt_str(row.link_id),
                    end_time=_opt_float(row.end_time),
                )
            )
        plans.append(Plan(person_id=pid, elements=tuple(elements)))

    LOGGER.info("Plans parsed: %d persons, %d elements", len(plans), len(df))
    return plans
