"""Layer definition model."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from axoncity.models._base import AxonBaseModel, GeometryKind, StatsRecipe


class LayerSpec(AxonBaseModel):
    """Immutable description of one thematic layer.

    Parameters
    ----------
    id : str
        Stable layer identifier (e.g. ``"roads-primary"``).
    geometry_kind : GeometryKind
        ``polygon``, ``line`` or ``point``. Accepts the ``geometryType``
        key used by JSON manifests.
    query : str
        Overpass QL fragment; several element queries may be joined with
        ``|`` (e.g. ``node["shop"]|way["shop"]``). Accepts ``osmQuery``.
    stats_recipes : tuple of StatsRecipe
        Statistics requested for the layer.
    """

    id: str
    name: str = ""
    group: str = "custom"
    geometry_kind: GeometryKind = Field(validation_alias=AliasChoices("geometry_kind", "geometryKind", "geometryType"))
    query: str = Field(default="", validation_alias=AliasChoices("query", "osmQuery"))
    stats_recipes: tuple[StatsRecipe, ...] = (StatsRecipe.COUNT,)
    description: str | None = None

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        layer_id = value.strip()
        if not layer_id:
            raise ValueError("layer id must be non-empty")
        return layer_id

    def wants(self, recipe: StatsRecipe) -> bool:
        return recipe in self.stats_recipes
