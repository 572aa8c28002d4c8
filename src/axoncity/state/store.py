"""In-memory store of selection areas and their layer caches.

This is the only component that mutates :class:`SelectionArea` records.
Writes are funnelled through the fetch coordinator so they are serialized
per area.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable

from axoncity._constants import MAX_AREAS, area_color, area_name
from axoncity.exceptions import AreaNotFoundError, GeometryError
from axoncity.geometry.measure import polygon_area_km2
from axoncity.models.area import AreaSnapshot, SelectionArea
from axoncity.models.polygon import BoundaryPolygon
from axoncity.models.stats import LayerData
from axoncity.session import FetchSession
from axoncity.state.policy import polygons_equal

_logger = logging.getLogger(__name__)


def _area_km2(polygon: BoundaryPolygon) -> float:
    try:
        return polygon_area_km2(polygon)
    except GeometryError as exc:
        _logger.warning("Boundary encloses no area (%s); recording 0 km2", exc)
        return 0.0


class AreaStore:
    """Selection areas keyed by id, in creation order.

    A cache entry is valid only while the polygon it was fetched for
    equals the area's current polygon; entries of a replaced polygon stay
    in place until overwritten but are never reported as valid.
    """

    def __init__(self, *, max_areas: int = MAX_AREAS) -> None:
        self._max_areas = max_areas
        self._areas: dict[str, SelectionArea] = {}
        self._active_area_id: str | None = None
        self._sessions: dict[str, FetchSession] = {}
        self._unwinding: dict[str, FetchSession] = {}
        self._ids = itertools.count(1)

    @property
    def max_areas(self) -> int:
        return self._max_areas

    @property
    def areas(self) -> tuple[SelectionArea, ...]:
        return tuple(self._areas.values())

    @property
    def active_area_id(self) -> str | None:
        return self._active_area_id

    def __len__(self) -> int:
        return len(self._areas)

    def __contains__(self, area_id: object) -> bool:
        return area_id in self._areas

    # ------------------------------------------------------------------
    # Area lifecycle
    # ------------------------------------------------------------------

    def add_area(self, polygon: BoundaryPolygon) -> str | None:
        """Create an area for *polygon* and make it active.

        Returns the new area id, or ``None`` without touching any state
        when the store is full.
        """
        if len(self._areas) >= self._max_areas:
            _logger.info("Area limit of %d reached; not adding area", self._max_areas)
            return None

        used = {area.name for area in self._areas.values()}
        slot = next(i for i in itertools.count() if area_name(i) not in used)
        area_id = f"area-{next(self._ids)}"
        self._areas[area_id] = SelectionArea(
            id=area_id,
            name=area_name(slot),
            color=area_color(slot),
            polygon=polygon,
            area_km2=_area_km2(polygon),
        )
        self._active_area_id = area_id
        _logger.debug("Added %s (%s)", area_id, area_name(slot))
        return area_id

    def update_area_polygon(self, area_id: str, polygon: BoundaryPolygon) -> None:
        area = self.get_area(area_id)
        area_km2 = _area_km2(polygon)
        area.polygon = polygon
        area.area_km2 = area_km2

    def update_area_layer_data(self, area_id: str, layer_id: str, data: LayerData) -> None:
        """Write one layer's cache entry, leaving the other layers untouched."""
        area = self.get_area(area_id)
        area.layer_data[layer_id] = data

    def remove_area(self, area_id: str) -> None:
        """Remove an area, cancelling its fetch session.

        If it was active, the first remaining area becomes active.
        """
        if area_id not in self._areas:
            raise AreaNotFoundError(area_id)
        self.cancel_session(area_id)
        del self._areas[area_id]
        if self._active_area_id == area_id:
            self._active_area_id = next(iter(self._areas), None)

    def set_active_area_id(self, area_id: str | None) -> None:
        """Move the active-area pointer; nothing else changes."""
        if area_id is not None and area_id not in self._areas:
            raise AreaNotFoundError(area_id)
        self._active_area_id = area_id

    def clear_areas(self) -> None:
        for area_id in list(self._sessions):
            self.cancel_session(area_id)
        self._areas.clear()
        self._active_area_id = None

    def rename_area(self, area_id: str, name: str) -> None:
        self.get_area(area_id).name = name

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_area(self, area_id: str) -> SelectionArea:
        area = self._areas.get(area_id)
        if area is None:
            raise AreaNotFoundError(area_id)
        return area

    def get_active_area(self) -> SelectionArea | None:
        if self._active_area_id is None:
            return None
        return self._areas.get(self._active_area_id)

    def is_layer_cache_valid(self, area_id: str, layer_id: str) -> bool:
        area = self._areas.get(area_id)
        if area is None:
            return False
        data = area.layer_data.get(layer_id)
        return data is not None and polygons_equal(data.polygon, area.polygon)

    def missing_layers(self, area_id: str, layer_ids: Iterable[str]) -> list[str]:
        """Layers of *layer_ids* without a valid cache entry, in the given order."""
        return [layer_id for layer_id in dict.fromkeys(layer_ids) if not self.is_layer_cache_valid(area_id, layer_id)]

    def snapshot(self, area_id: str) -> AreaSnapshot:
        """Read-only view of an area exposing only its valid cache entries."""
        area = self.get_area(area_id)
        snapshot = AreaSnapshot.from_area(area)
        valid = {k: v for k, v in snapshot.layers.items() if polygons_equal(v.polygon, area.polygon)}
        return snapshot.model_copy(update={"layers": valid})

    # ------------------------------------------------------------------
    # Fetch sessions
    # ------------------------------------------------------------------

    def begin_session(self, session: FetchSession) -> FetchSession | None:
        """Register *session* as the area's current session.

        A session already registered for the area is cancelled and linked
        as ``session.predecessor``; it is returned. Without one, a session
        cancelled through :meth:`cancel_session` whose task has not finished
        yet becomes the predecessor instead.
        """
        self.get_area(session.area_id)
        previous = self._sessions.get(session.area_id)
        unwinding = self._unwinding.pop(session.area_id, None)
        if previous is None and unwinding is not None and not unwinding.done:
            session.predecessor = unwinding
        if previous is not None:
            previous.cancel()
            session.predecessor = previous
            _logger.debug(
                "Session %d for %s superseded by session %d",
                previous.session_id,
                session.area_id,
                session.session_id,
            )
        self._sessions[session.area_id] = session
        return previous

    def session_for(self, area_id: str) -> FetchSession | None:
        return self._sessions.get(area_id)

    def cancel_session(self, area_id: str) -> FetchSession | None:
        session = self._sessions.pop(area_id, None)
        if session is not None:
            session.cancel()
            self._unwinding[area_id] = session
        return session

    def end_session(self, session: FetchSession) -> None:
        """Forget *session* if it is still the area's current session."""
        if self._sessions.get(session.area_id) is session:
            del self._sessions[session.area_id]
        if self._unwinding.get(session.area_id) is session:
            del self._unwinding[session.area_id]

    def sessions(self) -> tuple[FetchSession, ...]:
        return tuple(self._sessions.values())
