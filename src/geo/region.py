"""Region geometry: point containment, region loading and boundary-link detection."""

from __future__ import annotations

import logging
from pathlib import Path

import geopandas as gpd
from pyproj import CRS
from shapely.geometry import MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep

from src.core.config import CRS_NETWORK
from src.network.graph import Coord, Network

LOGGER = logging.getLogger(__name__)


class RegionError(ValueError):
    """The region geometry is missing, empty or not areal."""


class Region:
    """Immutable (multi)polygon answering `contains(x, y)` queries.

    Containment is strict: points on the boundary are outside.
    """

    def __init__(self, geometry: BaseGeometry) -> None:
        if geometry is None or geometry.is_empty:
            raise RegionError("region geometry is empty")
        if not isinstance(geometry, (Polygon, MultiPolygon)):
            raise RegionError(
                f"region geometry must be Polygon/MultiPolygon, got {geometry.geom_type}"
            )
        self._geometry = geometry
        self._prepared = prep(geometry)

    @property
    def geometry(self) -> BaseGeometry:
        return self._geometry

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return tuple(float(v) for v in self._geometry.bounds)

    def contains(self, x: float, y: float) -> bool:
        return bool(self._prepared.contains(Point(float(x), float(y))))

    def contains_coord(self, coord: Coord) -> bool:
        return self.contains(coord.x, coord.y)


def load_region(path: Path, *, layer: str | None = None, crs: str = CRS_NETWORK) -> Region:
    """Read a vector file (Shapefile/GeoPackage/GeoJSON) and union its features into a Region.

    Features are reprojected to `crs` if the file uses another CRS.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Region file not found at {path}")
    target = CRS.from_user_input(crs)

    gdf = gpd.read_file(path, layer=layer) if layer is not None else gpd.read_file(path)
    if gdf.empty:
        raise RegionError(f"{path} contains 0 features")
    if gdf.crs is None:
        raise RegionError(f"{path} has no CRS; expected {crs}")
    if not gdf.crs.equals(target):
        LOGGER.warning("Reprojecting region from %s to %s", gdf.crs, crs)
        gdf = gdf.to_crs(target)

    geom = gdf.geometry.dropna()
    geom = geom[~geom.is_empty]
    if geom.empty:
        raise RegionError(f"{path} contains no usable geometry")
    region = Region(geom.union_all())
    LOGGER.info("Region loaded from %s: %d features, bounds=%s", path, len(gdf), region.bounds)
    return region


def detect_boundary_links(network: Network, region: Region) -> frozenset[str]:
    """Link ids whose end nodes lie on opposite sides of the region boundary."""
    out = frozenset(
        lid
        for lid, lk in network.links.items()
        if region.contains_coord(lk.from_node.coord) ^ region.contains_coord(lk.to_node.coord)
    )
    LOGGER.info("Boundary links: %d of %d", len(out), len(network.links))
    return out
