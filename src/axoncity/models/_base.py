"""Base model and enums shared by axoncity models.

Layer definitions in JSON manifests use camelCase keys such as
``geometryType`` and ``statsRecipes``.
:class:`AxonBaseModel` maps those automatically to snake_case fields
via ``alias_generator=to_camel`` while still accepting field names.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class GeometryKind(StrEnum):
    """Geometry family of a layer; decides the clipping algorithm."""

    POLYGON = "polygon"
    LINE = "line"
    POINT = "point"


class StatsRecipe(StrEnum):
    """Statistics a layer asks for (``count`` is always computed)."""

    COUNT = "count"
    DENSITY = "density"
    LENGTH = "length"
    AREA = "area"
    AREA_SHARE = "area_share"


def _require_finite(value: float) -> float:
    if not math.isfinite(value):
        raise ValueError(f"coordinate must be finite, got {value}")
    return value


FiniteFloat = Annotated[float, AfterValidator(_require_finite)]
"""A float that rejects NaN and infinities."""

Coordinate = tuple[FiniteFloat, FiniteFloat]
"""A ``(longitude, latitude)`` pair in degrees."""

Rgba = tuple[int, int, int, int]


class AxonBaseModel(BaseModel):
    """Frozen base model accepting camelCase or snake_case keys."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible dict using snake_case keys."""
        return self.model_dump(mode="json")
