import geopandas as gpd
import pytest
from shapely.geometry import LineString, MultiPolygon, Polygon, box

from src.geo.region import Region, RegionError, detect_boundary_links, load_region
from src.network.graph import Coord

# ---------- Containment


def test_interior_points_are_contained(region):
    for x, y in [(0.0, 0.0), (5.0, 0.0), (9.9, 4.9), (-0.5, -4.5)]:
        assert region.contains(x, y)


def test_points_outside_bounding_box_are_not_contained(region):
    minx, miny, maxx, maxy = region.bounds
    for x, y in [(minx - 1, 0.0), (maxx + 1, 0.0), (0.0, miny - 1), (0.0, maxy + 1), (1e9, -1e9)]:
        assert not region.contains(x, y)


def test_boundary_points_are_outside(region):
    assert not region.contains(10.0, 0.0)
    assert not region.contains_coord(Coord(-1.0, 0.0))


def test_multipolygon_region():
    r = Region(MultiPolygon([box(0, 0, 1, 1), box(5, 5, 6, 6)]))
    assert r.contains(0.5, 0.5)
    assert r.contains(5.5, 5.5)
    assert not r.contains(3.0, 3.0)


def test_empty_or_non_areal_geometry_is_rejected():
    with pytest.raises(RegionError):
        Region(Polygon())
    with pytest.raises(RegionError):
        Region(LineString([(0, 0), (1, 1)]))


# ---------- Boundary links


def test_boundary_links_are_the_crossing_links(network, region):
    assert detect_boundary_links(network, region) == frozenset({"0_1", "1_0", "2_3", "3_2"})


def test_boundary_links_are_stable(network, region):
    assert detect_boundary_links(network, region) == detect_boundary_links(network, region)


def test_region_covering_everything_has_no_boundary_links(network):
    assert detect_boundary_links(network, Region(box(-100, -100, 100, 100))) == frozenset()


# ---------- Loading from vector files


def test_load_region_unions_features(tmp_path):
    gdf = gpd.GeoDataFrame(
        {"name": ["west", "east"]},
        geometry=[box(0, 0, 10, 10), box(10, 0, 20, 10)],
        crs="EPSG:5677",
    )
    path = tmp_path / "region.gpkg"
    gdf.to_file(path, layer="area", driver="GPKG")

    region = load_region(path, layer="area")
    assert region.contains(15.0, 5.0)
    assert region.contains(10.0, 5.0)  # shared edge is interior after the union
    assert region.bounds == (0.0, 0.0, 20.0, 10.0)


def test_load_region_reprojects_to_network_crs(tmp_path):
    wgs84 = gpd.GeoDataFrame(geometry=[box(8.0, 50.0, 9.0, 51.0)], crs="EPSG:4326")
    path = tmp_path / "region_wgs84.gpkg"
    wgs84.to_file(path, driver="GPKG")

    region = load_region(path)
    projected = wgs84.to_crs("EPSG:5677").geometry.iloc[0].centroid
    assert region.bounds[0] > 1000.0
    assert region.contains(projected.x, projected.y)


def test_load_region_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_region(tmp_path / "nope.gpkg")

