import pandas as pd
import pytest
from shapely.geometry import box

from src.geo.region import Region
from src.network.graph import Coord, build_network_from_tables
from src.network.routing import PathEngine
from src.trips.plans import Trip

# Line network along y=0, region covers x in (-1, 10):
#
#   N0(-10) -- N1(0) -- N2(5) -- N3(15) -- N4(25)
#   outside    inside   inside   outside   outside
#
# Links run both ways; 0_1/1_0 and 2_3/3_2 cross the boundary.

NODE_XY = {"N0": (-10.0, 0.0), "N1": (0.0, 0.0), "N2": (5.0, 0.0), "N3": (15.0, 0.0), "N4": (25.0, 0.0)}

# (from, to, length_m) at 5 m/s
SEGMENTS = [("N0", "N1", 10.0), ("N1", "N2", 5.0), ("N2", "N3", 10.0), ("N3", "N4", 10.0)]


def _link_rows(speed: float = 5.0) -> list[dict[str, object]]:
    rows = []
    for u, v, length in SEGMENTS:
        for a, b in ((u, v), (v, u)):
            rows.append(
                {
                    "link_id": f"{a[1:]}_{b[1:]}",
                    "from_node": a,
                    "to_node": b,
                    "length_m": length,
                    "freespeed_mps": speed,
                    "capacity": 1800.0,
                    "modes": "car;freight",
                }
            )
    return rows


@pytest.fixture
def nodes_df() -> pd.DataFrame:
    return pd.DataFrame(
        [{"node_id": n, "x": x, "y": y} for n, (x, y) in NODE_XY.items()]
    )


@pytest.fixture
def links_df() -> pd.DataFrame:
    return pd.DataFrame(_link_rows())


@pytest.fixture
def network(nodes_df, links_df):
    return build_network_from_tables(nodes=nodes_df, links=links_df)


@pytest.fixture
def region() -> Region:
    return Region(box(-1.0, -5.0, 10.0, 5.0))


@pytest.fixture
def engine(network) -> PathEngine:
    return PathEngine(network, n_landmarks=2)


@pytest.fixture
def make_trip():
    """Trip factory: origin/destination at node coordinates, reached via the given links."""

    def _make(pid, origin, origin_link, destination, destination_link, departure=None):
        ox, oy = NODE_XY[origin] if isinstance(origin, str) else origin
        dx, dy = NODE_XY[destination] if isinstance(destination, str) else destination
        return Trip(
            person_id=pid,
            origin_link=origin_link,
            destination_link=destination_link,
            origin=Coord(ox, oy),
            destination=Coord(dx, dy),
            departure_time=departure,
        )

    return _make
