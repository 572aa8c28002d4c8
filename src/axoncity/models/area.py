"""Selection area models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from axoncity.models._base import AxonBaseModel, Rgba
from axoncity.models.polygon import BoundaryPolygon
from axoncity.models.stats import LayerData


class SelectionArea(BaseModel):
    """Mutable store record for one user-drawn region.

    Only :class:`axoncity.state.store.AreaStore` mutates these.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    color: Rgba
    polygon: BoundaryPolygon
    area_km2: float = 0.0
    layer_data: dict[str, LayerData] = Field(default_factory=dict)


class AreaSnapshot(AxonBaseModel):
    """Read-only view of an area handed to renderers."""

    id: str
    name: str
    color: Rgba
    polygon: BoundaryPolygon
    area_km2: float
    layers: dict[str, LayerData] = Field(default_factory=dict)

    @classmethod
    def from_area(cls, area: SelectionArea) -> AreaSnapshot:
        return cls(
            id=area.id,
            name=area.name,
            color=area.color,
            polygon=area.polygon,
            area_km2=area.area_km2,
            layers=dict(area.layer_data),
        )
