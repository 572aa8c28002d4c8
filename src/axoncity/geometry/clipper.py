"""Clip provider features to a selection boundary.

Each geometry family has its own rule:

- polygons are intersected with the boundary (invalid inputs repaired);
- lines are split at the boundary ring and only pieces whose midpoint lies
  strictly inside are kept;
- points are kept when the boundary covers them, so points exactly on the
  edge are included.

A feature that already lies inside the boundary (within a relative
tolerance of its length or area) is returned unchanged, which makes
clipping idempotent: clipping a clipped collection again is a no-op.
"""

from __future__ import annotations

import logging
from typing import Any

import shapely
from shapely.errors import GEOSException
from shapely.geometry import mapping
from shapely.geometry.base import BaseGeometry
from shapely.ops import split
from shapely.validation import make_valid

from axoncity.exceptions import GeometryError
from axoncity.geometry.measure import boundary_shape, feature_shape, polygonal_part
from axoncity.models._base import GeometryKind
from axoncity.models.feature import Feature, FeatureCollection
from axoncity.models.polygon import BoundaryPolygon

_logger = logging.getLogger(__name__)

CONTAINMENT_TOLERANCE = 1e-9
"""Share of a feature's length/area allowed outside the boundary before it is clipped."""

_POLYGON_TYPES = ("Polygon", "MultiPolygon")
_LINE_TYPES = ("LineString", "MultiLineString")
_POINT_TYPES = ("Point", "MultiPoint")


def _outside_share_negligible(geom: BaseGeometry, boundary: BaseGeometry, measure: str) -> bool:
    total = getattr(geom, measure)
    if total <= 0:
        return False
    outside = getattr(geom.difference(boundary), measure)
    return outside <= CONTAINMENT_TOLERANCE * total


def _clip_polygon(feature: Feature, boundary: BaseGeometry) -> Feature | None:
    geom = feature_shape(feature, _POLYGON_TYPES)
    if not geom.is_valid:
        geom = polygonal_part(make_valid(geom))
        if geom is None:
            return None
    if boundary.covers(geom) or _outside_share_negligible(geom, boundary, "area"):
        return feature
    clipped = polygonal_part(geom.intersection(boundary))
    if clipped is None:
        return None
    return feature.with_geometry(_as_geojson(clipped))


def _line_pieces(geom: BaseGeometry) -> list[BaseGeometry]:
    if geom.geom_type == "LineString":
        return [geom]
    if geom.geom_type == "MultiLineString":
        return list(geom.geoms)
    return [g for g in getattr(geom, "geoms", ()) if g.geom_type == "LineString"]


def _clip_line(feature: Feature, boundary: BaseGeometry) -> Feature | None:
    geom = feature_shape(feature, _LINE_TYPES)
    if not boundary.intersects(geom):
        return None
    if boundary.covers(geom) or _outside_share_negligible(geom, boundary, "length"):
        return feature

    try:
        pieces = _line_pieces(split(geom, boundary.boundary))
    except ValueError:
        # split() refuses lines that run along the boundary ring
        _logger.debug("Falling back to intersection for feature %s", feature.id)
        inside = geom.intersection(boundary).difference(boundary.boundary)
        pieces = [p for p in _line_pieces(inside) if not p.is_empty]
    kept = [p for p in pieces if p.length > 0 and boundary.contains(p.interpolate(0.5, normalized=True))]

    if not kept:
        return None
    if len(kept) == 1:
        return feature.with_geometry(_as_geojson(kept[0]))
    return feature.with_geometry(_as_geojson(shapely.MultiLineString(kept)))


def _clip_point(feature: Feature, boundary: BaseGeometry) -> Feature | None:
    geom = feature_shape(feature, _POINT_TYPES)
    if boundary.covers(geom):
        return feature
    return None


_CLIPPERS = {
    GeometryKind.POLYGON: _clip_polygon,
    GeometryKind.LINE: _clip_line,
    GeometryKind.POINT: _clip_point,
}


def _as_geojson(geom: BaseGeometry) -> dict[str, Any]:
    # mapping() yields nested tuples; features carry plain JSON lists
    def _listify(value: Any) -> Any:
        if isinstance(value, (tuple, list)):
            return [_listify(v) for v in value]
        return value

    data = mapping(geom)
    return {"type": data["type"], "coordinates": _listify(data["coordinates"])}


def clip_features(
    features: FeatureCollection,
    boundary: BoundaryPolygon,
    geometry_kind: GeometryKind,
) -> FeatureCollection:
    """Return the features of *features* truncated to *boundary*.

    Parameters
    ----------
    features : FeatureCollection
        Raw provider features. Never modified; clipped features are new
        copies with their geometry replaced.
    boundary : BoundaryPolygon
        The selection boundary.
    geometry_kind : GeometryKind
        Geometry family of the layer, which selects the clipping rule.

    Features whose geometry is missing, malformed or of the wrong family
    are logged and skipped.
    """
    clipper = _CLIPPERS[GeometryKind(geometry_kind)]
    boundary_geom = boundary_shape(boundary)

    kept: list[Feature] = []
    for feature in features.features:
        try:
            clipped = clipper(feature, boundary_geom)
        except (GeometryError, GEOSException, ValueError) as exc:
            _logger.warning("Skipping feature %s that failed to clip: %s", feature.id, exc, exc_info=True)
            continue
        if clipped is not None:
            kept.append(clipped)

    return FeatureCollection(features=tuple(kept))
