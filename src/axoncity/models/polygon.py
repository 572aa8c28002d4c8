"""Boundary polygon model."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import ValidationError, field_validator

from axoncity.exceptions import InvalidPolygonError
from axoncity.models._base import AxonBaseModel, Coordinate

#: Minimum ring length: three distinct vertices plus the closing point.
MIN_RING_POINTS = 4


class BoundaryPolygon(AxonBaseModel):
    """A closed ring of ``(longitude, latitude)`` pairs.

    The first and last coordinates are identical and the ring holds at
    least three distinct vertices. Instances compare and hash by value,
    which is what cache validity checks rely on.
    """

    ring: tuple[Coordinate, ...]

    @field_validator("ring")
    @classmethod
    def _validate_ring(cls, value: tuple[Coordinate, ...]) -> tuple[Coordinate, ...]:
        if len(value) < MIN_RING_POINTS:
            raise ValueError(f"ring needs at least {MIN_RING_POINTS} points, got {len(value)}")
        if value[0] != value[-1]:
            raise ValueError("ring is not closed (first point differs from last)")
        if len(set(value[:-1])) < 3:
            raise ValueError("ring needs at least 3 distinct vertices")
        return value

    @classmethod
    def from_ring(cls, ring: Iterable[Sequence[float]]) -> BoundaryPolygon:
        """Build from an already closed ring.

        Raises
        ------
        InvalidPolygonError
            If the ring is open, too short or has non-finite coordinates.
        """
        try:
            return cls(ring=tuple((float(p[0]), float(p[1])) for p in ring))
        except (ValidationError, IndexError, TypeError, ValueError) as exc:
            raise InvalidPolygonError(f"invalid boundary ring: {exc}") from exc

    @classmethod
    def from_vertices(cls, vertices: Iterable[Sequence[float]]) -> BoundaryPolygon:
        """Build from an open vertex list, appending the closing point.

        A list that is already closed is accepted as-is.
        """
        points = [(float(p[0]), float(p[1])) for p in vertices]
        if len(points) >= 2 and points[0] == points[-1]:
            return cls.from_ring(points)
        if points:
            points.append(points[0])
        return cls.from_ring(points)

    @classmethod
    def from_geojson(cls, geometry: dict[str, Any]) -> BoundaryPolygon:
        """Build from a GeoJSON ``Polygon`` (exterior ring only)."""
        if geometry.get("type") != "Polygon":
            raise InvalidPolygonError(f"expected a Polygon geometry, got {geometry.get('type')!r}")
        rings = geometry.get("coordinates") or []
        if not rings:
            raise InvalidPolygonError("Polygon geometry has no rings")
        return cls.from_ring(rings[0])

    @property
    def vertices(self) -> tuple[Coordinate, ...]:
        """The open ring (closing point removed)."""
        return self.ring[:-1]

    def bounds(self) -> tuple[float, float, float, float]:
        """``(min_lon, min_lat, max_lon, max_lat)`` of the ring."""
        lons = [p[0] for p in self.ring]
        lats = [p[1] for p in self.ring]
        return min(lons), min(lats), max(lons), max(lats)

    def to_geojson(self) -> dict[str, Any]:
        return {"type": "Polygon", "coordinates": [[list(p) for p in self.ring]]}
