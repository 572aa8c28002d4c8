"""Commands consumed by the fetch coordinator.

Every user-triggered change that can start, supersede or cancel a fetch is
expressed as one of these immutable commands. The coordinator processes
them one at a time, in submission order.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from axoncity.models.polygon import BoundaryPolygon


class Command(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


def _normalize_layer_ids(value: tuple[str, ...]) -> tuple[str, ...]:
    seen: list[str] = []
    for raw in value:
        layer_id = raw.strip()
        if not layer_id:
            raise ValueError("layer ids must be non-empty")
        if layer_id not in seen:
            seen.append(layer_id)
    return tuple(seen)


class BoundaryCompleted(Command):
    """A new boundary was drawn; creates an area and fetches every active layer."""

    polygon: BoundaryPolygon


class PolygonEdited(Command):
    """An existing area's boundary was replaced."""

    area_id: str
    polygon: BoundaryPolygon


class ActiveAreaSwitched(Command):
    """The active-area pointer moved. Never fetches."""

    area_id: str | None


class LayersActivated(Command):
    """Layers were switched on; missing ones are fetched for the active area."""

    layer_ids: tuple[str, ...]

    @field_validator("layer_ids")
    @classmethod
    def _normalize(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _normalize_layer_ids(value)


class LayersDeactivated(Command):
    """Layers were switched off; cached data is kept."""

    layer_ids: tuple[str, ...]

    @field_validator("layer_ids")
    @classmethod
    def _normalize(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _normalize_layer_ids(value)


class AreaRemoved(Command):
    area_id: str


class AreasCleared(Command):
    pass


class FetchCancelRequested(Command):
    """The user cancelled fetching for one area (the active area when ``None``)."""

    area_id: str | None = None


CoordinatorCommand = (
    BoundaryCompleted
    | PolygonEdited
    | ActiveAreaSwitched
    | LayersActivated
    | LayersDeactivated
    | AreaRemoved
    | AreasCleared
    | FetchCancelRequested
)
