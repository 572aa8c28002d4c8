"""Geodesic measurement and boundary conversion.

Coordinates are WGS84 ``(longitude, latitude)`` degrees throughout. Lengths
and areas are computed on the ellipsoid with :class:`pyproj.Geod`, so they
need no projection and stay comparable across latitudes.
"""

from __future__ import annotations

import functools
from collections.abc import Collection

import shapely
from pyproj import Geod
from shapely.errors import GEOSException
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry
from shapely.validation import make_valid

from axoncity._constants import DEFAULT_BBOX_BUFFER_DEG
from axoncity.exceptions import GeometryError
from axoncity.models.feature import Feature
from axoncity.models.polygon import BoundaryPolygon

_GEOD = Geod(ellps="WGS84")

_LINE_TYPES = frozenset({"LineString", "MultiLineString"})
_POLYGON_TYPES = frozenset({"Polygon", "MultiPolygon"})


@functools.lru_cache(maxsize=64)
def boundary_shape(polygon: BoundaryPolygon) -> BaseGeometry:
    """Return the (prepared) shapely geometry of *polygon*.

    Self-intersecting rings are repaired with ``make_valid`` and only the
    polygonal part is kept. Results are cached per polygon value; callers
    must not mutate the returned object.
    """
    geom = shapely.Polygon(polygon.ring)
    if not geom.is_valid:
        geom = polygonal_part(make_valid(geom))
        if geom is None:
            raise GeometryError("boundary polygon has no area after repair")
    shapely.prepare(geom)
    return geom


def polygonal_part(geom: BaseGeometry) -> BaseGeometry | None:
    """Extract the Polygon/MultiPolygon content of *geom* (``None`` if empty)."""
    if geom.is_empty:
        return None
    if geom.geom_type in _POLYGON_TYPES:
        return geom
    parts = [g for g in getattr(geom, "geoms", ()) if g.geom_type in _POLYGON_TYPES and not g.is_empty]
    if not parts:
        return None
    polygons = []
    for part in parts:
        polygons.extend(part.geoms if part.geom_type == "MultiPolygon" else (part,))
    if len(polygons) == 1:
        return polygons[0]
    return shapely.MultiPolygon(polygons)


def feature_shape(feature: Feature, allowed_types: Collection[str]) -> BaseGeometry:
    """Convert a feature geometry to shapely.

    Raises
    ------
    GeometryError
        If the feature has no geometry, an unexpected geometry type, or
        coordinates shapely cannot build a geometry from.
    """
    geometry_type = feature.geometry_type
    if geometry_type is None:
        raise GeometryError(f"feature {feature.id!r} has no geometry")
    if geometry_type not in allowed_types:
        raise GeometryError(f"feature {feature.id!r} has unexpected geometry type {geometry_type}")
    try:
        geom = shape(feature.geometry)
    except (ValueError, TypeError, KeyError, IndexError, GEOSException) as exc:
        raise GeometryError(f"feature {feature.id!r} has malformed geometry: {exc}") from exc
    if geom.is_empty:
        raise GeometryError(f"feature {feature.id!r} has an empty geometry")
    return geom


def geodesic_length_m(geom: BaseGeometry) -> float:
    """Length in metres of a LineString or MultiLineString on the WGS84 ellipsoid."""
    if geom.geom_type not in _LINE_TYPES:
        raise GeometryError(f"cannot measure length of {geom.geom_type}")
    return float(_GEOD.geometry_length(geom))


def geodesic_area_m2(geom: BaseGeometry) -> float:
    """Area in m² of a Polygon or MultiPolygon; always non-negative (ring orientation is ignored)."""
    if geom.geom_type == "Polygon":
        area, _ = _GEOD.geometry_area_perimeter(geom)
        return abs(float(area))
    if geom.geom_type == "MultiPolygon":
        return float(sum(abs(_GEOD.geometry_area_perimeter(p)[0]) for p in geom.geoms))
    raise GeometryError(f"cannot measure area of {geom.geom_type}")


def polygon_area_km2(polygon: BoundaryPolygon) -> float:
    """Geodesic area of a boundary polygon in km²."""
    return geodesic_area_m2(boundary_shape(polygon)) / 1_000_000.0


def bbox_from_polygon(
    polygon: BoundaryPolygon,
    buffer: float = DEFAULT_BBOX_BUFFER_DEG,
) -> tuple[float, float, float, float]:
    """Coordinate extrema of *polygon* grown by *buffer* degrees on every side.

    Returns ``(min_lon, min_lat, max_lon, max_lat)``.
    """
    min_lon, min_lat, max_lon, max_lat = polygon.bounds()
    return min_lon - buffer, min_lat - buffer, max_lon + buffer, max_lat + buffer
