"""Overpass QL query building and response conversion.

It is internal to axoncity and may change at any time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from axoncity.models._base import GeometryKind
from axoncity.models.feature import Feature, FeatureCollection
from axoncity.models.layer import LayerSpec

_logger = logging.getLogger(__name__)

_ELEMENT_PREFIXES = ("node", "way", "relation")


def split_query_parts(fragment: str) -> list[str]:
    """Split a layer query on ``|`` separators that are not inside double quotes.

    ``node["amenity"~"cafe|bar"]|way["amenity"~"cafe|bar"]`` yields two
    parts; the regex alternations stay intact.
    """
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in fragment:
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == "|" and not in_quotes:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
        else:
            current.append(char)
    part = "".join(current).strip()
    if part:
        parts.append(part)
    return parts


def format_bbox(bbox: tuple[float, float, float, float]) -> str:
    """Overpass bbox filter body: ``south,west,north,east``."""
    min_lon, min_lat, max_lon, max_lat = bbox
    return f"{min_lat},{min_lon},{max_lat},{max_lon}"


def build_overpass_query(layer: LayerSpec, bbox: tuple[float, float, float, float]) -> str:
    """Build the full Overpass QL request for *layer* inside *bbox*.

    Parts that do not start with an element type are ignored.
    """
    bbox_str = format_bbox(bbox)
    lines = ["[out:json][timeout:30];", "("]
    for part in split_query_parts(layer.query):
        if part.startswith(_ELEMENT_PREFIXES):
            lines.append(f"  {part}({bbox_str});")
    lines.append(");")
    if layer.geometry_kind in (GeometryKind.POLYGON, GeometryKind.LINE):
        lines.append("out body geom;")
    else:
        lines.append("out body;")
    return "\n".join(lines) + "\n"


def _properties(element: Mapping[str, Any]) -> dict[str, Any]:
    props: dict[str, Any] = {"id": element.get("id"), "type": element.get("type")}
    tags = element.get("tags")
    if isinstance(tags, Mapping):
        props.update(tags)
    return props


def _way_coordinates(element: Mapping[str, Any]) -> list[list[float]]:
    coords: list[list[float]] = []
    for node in element.get("geometry") or ():
        if not isinstance(node, Mapping):
            continue
        lon, lat = node.get("lon"), node.get("lat")
        if isinstance(lon, (int, float)) and isinstance(lat, (int, float)):
            coords.append([float(lon), float(lat)])
    return coords


def element_to_feature(element: Mapping[str, Any], geometry_kind: GeometryKind) -> Feature | None:
    """Convert one Overpass element; ``None`` when it does not fit the layer."""
    element_type = element.get("type")

    if element_type == "node" and geometry_kind == GeometryKind.POINT:
        lon, lat = element.get("lon"), element.get("lat")
        if not isinstance(lon, (int, float)) or not isinstance(lat, (int, float)):
            return None
        return Feature(
            id=element.get("id"),
            geometry={"type": "Point", "coordinates": [float(lon), float(lat)]},
            properties=_properties(element),
        )

    if element_type == "way" and element.get("geometry"):
        coords = _way_coordinates(element)
        if geometry_kind == GeometryKind.LINE:
            if len(coords) < 2:
                return None
            return Feature(
                id=element.get("id"),
                geometry={"type": "LineString", "coordinates": coords},
                properties=_properties(element),
            )
        if geometry_kind == GeometryKind.POLYGON:
            if coords and coords[0] != coords[-1]:
                coords.append(list(coords[0]))
            if len(coords) < 4:
                return None
            return Feature(
                id=element.get("id"),
                geometry={"type": "Polygon", "coordinates": [coords]},
                properties=_properties(element),
            )

    return None


def elements_to_features(payload: Mapping[str, Any], layer: LayerSpec) -> FeatureCollection:
    """Convert an Overpass JSON response into a feature collection for *layer*."""
    elements = payload.get("elements")
    if not isinstance(elements, list):
        return FeatureCollection.empty()
    features = []
    for element in elements:
        if not isinstance(element, Mapping):
            continue
        try:
            feature = element_to_feature(element, layer.geometry_kind)
        except ValidationError as exc:
            _logger.warning(
                "Skipping malformed %s element %r for layer %s (%d validation errors)",
                element.get("type"),
                element.get("id"),
                layer.id,
                exc.error_count(),
            )
            continue
        if feature is not None:
            features.append(feature)
    return FeatureCollection(features=tuple(features))
