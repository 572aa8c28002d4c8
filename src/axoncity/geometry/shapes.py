"""Ring builders for the rectangle and circle drawing modes."""

from __future__ import annotations

import math

from axoncity.models._base import Coordinate

CIRCLE_SEGMENTS = 64


def rectangle_from_points(corner: Coordinate, opposite: Coordinate) -> list[Coordinate]:
    """Closed axis-aligned ring spanned by two opposite corners."""
    lng1, lat1 = corner
    lng2, lat2 = opposite
    return [(lng1, lat1), (lng2, lat1), (lng2, lat2), (lng1, lat2), (lng1, lat1)]


def circle_from_points(
    center: Coordinate,
    edge: Coordinate,
    segments: int = CIRCLE_SEGMENTS,
) -> list[Coordinate]:
    """Closed ring approximating a circle through *edge* around *center*.

    The radius is measured in degrees; longitude offsets are stretched by
    ``1 / cos(latitude)`` so the shape stays round on a Web Mercator map.
    """
    if segments < 3:
        raise ValueError(f"a circle needs at least 3 segments, got {segments}")
    c_lng, c_lat = center
    radius = math.hypot(edge[0] - c_lng, edge[1] - c_lat)
    lat_scale = math.cos(math.radians(c_lat)) or 1.0

    ring: list[Coordinate] = []
    for i in range(segments):
        angle = 2 * math.pi * i / segments
        ring.append((c_lng + radius * math.cos(angle) / lat_scale, c_lat + radius * math.sin(angle)))
    ring.append(ring[0])
    return ring
