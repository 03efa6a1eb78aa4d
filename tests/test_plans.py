import pandas as pd
import pytest

from src.network.graph import Coord
from src.trips.plans import Activity, Leg, MalformedPlanError, Plan, Trip, plans_from_table


def _rows(pid, start_end_time=None):
    return [
        {"person_id": pid, "element_index": 0, "element_type": "activity", "activity_type": "freight_start",
         "link_id": "0_1", "x": 0.0, "y": 0.0, "end_time": start_end_time},
        {"person_id": pid, "element_index": 1, "element_type": "leg", "mode": "freight"},
        {"person_id": pid, "element_index": 2, "element_type": "activity", "activity_type": "freight_end",
         "link_id": "3_4", "x": 25.0, "y": 0.0},
    ]


def test_plans_keep_person_order_and_element_order():
    rows = _rows("b", 3600.0) + _rows("a")
    df = pd.DataFrame(list(reversed(rows)))
    plans = plans_from_table(df)
    assert [p.person_id for p in plans] == ["a", "b"]
    b = plans[1]
    assert [type(e) for e in b.elements] == [Activity, Leg, Activity]
    assert b.elements[0] == Activity("freight_start", Coord(0.0, 0.0), "0_1", 3600.0)
    assert b.elements[1] == Leg("freight")
    assert b.elements[2].end_time is None


def test_trip_from_plan():
    plan = plans_from_table(pd.DataFrame(_rows("p", 120.0)))[0]
    trip = Trip.from_plan(plan)
    assert trip == Trip("p", "0_1", "3_4", Coord(0.0, 0.0), Coord(25.0, 0.0), 120.0)


def test_trip_from_plan_without_departure_keeps_it_unset():
    trip = Trip.from_plan(plans_from_table(pd.DataFrame(_rows("p")))[0])
    assert trip.departure_time is None


@pytest.mark.parametrize(
    "elements",
    [
        (),
        (Activity("a", Coord(0, 0), "l"), Leg("car")),
        (Activity("a", Coord(0, 0), "l"), Leg("car"), Activity("b", Coord(1, 1), "l"), Leg("car"),
         Activity("c", Coord(2, 2), "l")),
        (Activity("a", Coord(0, 0), "l"), Activity("b", Coord(1, 1), "l"), Activity("c", Coord(2, 2), "l")),
        (Activity("a", None, "l"), Leg("car"), Activity("b", Coord(1, 1), "l")),
        (Activity("a", Coord(0, 0), None), Leg("car"), Activity("b", Coord(1, 1), "l")),
    ],
)
def test_malformed_plans_are_rejected(elements):
    with pytest.raises(MalformedPlanError):
        Trip.from_plan(Plan("p", elements))


def test_unknown_element_type_fails_the_table():
    df = pd.DataFrame(_rows("p"))
    df.loc[1, "element_type"] = "ride"
    with pytest.raises(ValueError, match="unknown element_type"):
        plans_from_table(df)


def test_missing_person_id_fails_the_table():
    df = pd.DataFrame(_rows("p"))
    df.loc[0, "person_id"] = None
    with pytest.raises(ValueError, match="non-null"):
        plans_from_table(df)
