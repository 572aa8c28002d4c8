"""Provider-agnostic feature models (GeoJSON shaped)."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from axoncity.models._base import AxonBaseModel


class Feature(AxonBaseModel):
    """A single map feature.

    Parameters
    ----------
    id : int, str or None
        Provider identifier (OSM element id).
    geometry : dict or None
        GeoJSON geometry object (``Point``, ``LineString``,
        ``MultiLineString``, ``Polygon`` or ``MultiPolygon``).
    properties : dict
        Provider tags plus ``id`` and ``type``.
    """

    type: Literal["Feature"] = "Feature"
    id: int | str | None = None
    geometry: dict[str, Any] | None = None
    properties: dict[str, Any] = Field(default_factory=dict)

    @property
    def geometry_type(self) -> str | None:
        if not self.geometry:
            return None
        value = self.geometry.get("type")
        return value if isinstance(value, str) else None

    def with_geometry(self, geometry: dict[str, Any]) -> Feature:
        """Copy of this feature with *geometry* swapped in; the original is untouched."""
        return self.model_copy(update={"geometry": geometry})


class FeatureCollection(AxonBaseModel):
    """An ordered, immutable collection of features."""

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: tuple[Feature, ...] = ()

    @classmethod
    def empty(cls) -> FeatureCollection:
        return cls()

    @property
    def count(self) -> int:
        return len(self.features)

    def to_geojson(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
