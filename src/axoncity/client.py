"""High-level async client tying drawing, fetching and comparison together."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import aiohttp

from axoncity._transport import OverpassTransport, Transport
from axoncity.codec.link import decode_state, encode_state
from axoncity.config import AxonConfig
from axoncity.coordinator import AreaProgressCallback, FetchCoordinator
from axoncity.editor import BoundaryEditor, DrawMode
from axoncity.exceptions import AxonError, GeometryError, InvalidPolygonError
from axoncity.geometry.measure import boundary_shape
from axoncity.layers import DEFAULT_LAYERS
from axoncity.metrics import calculate_area_metrics
from axoncity.models.area import AreaSnapshot
from axoncity.models.layer import LayerSpec
from axoncity.models.metrics import AreaMetrics
from axoncity.models.polygon import MIN_RING_POINTS, BoundaryPolygon
from axoncity.models.share import EncodedArea, ShareableState
from axoncity.state.commands import (
    ActiveAreaSwitched,
    AreaRemoved,
    AreasCleared,
    BoundaryCompleted,
    FetchCancelRequested,
    LayersActivated,
    LayersDeactivated,
    PolygonEdited,
)
from axoncity.state.store import AreaStore

_logger = logging.getLogger(__name__)


class AxonClient:
    """Async client for drawing selection areas and comparing their layers.

    Usage::

        async with AxonClient(AxonConfig.from_env(), active_layers=["parks"]) as client:
            client.start_drawing()
            for point in points:
                client.add_point(point)
            area_id = await client.complete_drawing()
            await client.wait_idle()
            snapshot = client.area_snapshot(area_id)

    Parameters
    ----------
    config : AxonConfig, optional
        Defaults to :meth:`AxonConfig.from_env`.
    session : aiohttp.ClientSession, optional
        Externally managed HTTP session; it is not closed on exit.
    transport : Transport, optional
        Replaces the Overpass transport entirely (test doubles, caches).
    layers : iterable of LayerSpec
        Layers that may be activated; defaults to the built-in catalogue.
    active_layers : iterable of str
        Initially active layer ids.
    on_progress : callable, optional
        ``on_progress(area_id, layer_id, completed, total)``.
    """

    def __init__(
        self,
        config: AxonConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        layers: Iterable[LayerSpec] = DEFAULT_LAYERS,
        active_layers: Iterable[str] = (),
        on_progress: AreaProgressCallback | None = None,
    ) -> None:
        self._config = config if config is not None else AxonConfig.from_env()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._layers = tuple(layers)
        self._initial_layers = tuple(active_layers)
        self._on_progress = on_progress
        self._store = AreaStore(max_areas=self._config.max_areas)
        self._editor = BoundaryEditor()
        self._coordinator: FetchCoordinator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AxonClient:
        transport = self._transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = OverpassTransport(self._config, self._http_session)
        self._coordinator = FetchCoordinator(
            self._config,
            transport,
            self._store,
            self._layers,
            active_layers=self._initial_layers,
            on_progress=self._on_progress,
        )
        self._coordinator.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._coordinator is not None:
            self._initial_layers = self._coordinator.active_layers
            await self._coordinator.close()
            self._coordinator = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_coordinator(self) -> FetchCoordinator:
        if self._coordinator is None:
            raise AxonError("Client not initialized. Use 'async with AxonClient(...) as client:'")
        return self._coordinator

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def config(self) -> AxonConfig:
        return self._config

    @property
    def store(self) -> AreaStore:
        return self._store

    @property
    def editor(self) -> BoundaryEditor:
        return self._editor

    @property
    def active_area_id(self) -> str | None:
        return self._store.active_area_id

    @property
    def active_layers(self) -> tuple[str, ...]:
        if self._coordinator is None:
            return self._initial_layers
        return self._coordinator.active_layers

    def area_snapshot(self, area_id: str) -> AreaSnapshot:
        """Renderer view of one area (only cache entries valid for its polygon)."""
        return self._store.snapshot(area_id)

    def snapshots(self) -> list[AreaSnapshot]:
        return [self._store.snapshot(area.id) for area in self._store.areas]

    def area_metrics(self, area_id: str) -> AreaMetrics:
        return calculate_area_metrics(self.area_snapshot(area_id))

    # ------------------------------------------------------------------
    # Drawing and editing
    # ------------------------------------------------------------------

    def start_drawing(self, mode: DrawMode = DrawMode.POLYGON) -> None:
        self._editor.start(mode)

    def add_point(self, point: Sequence[float]) -> None:
        self._editor.add_point(point)

    def undo_point(self) -> None:
        self._editor.undo_last()

    def cancel_drawing(self) -> None:
        self._editor.cancel()

    async def complete_drawing(self) -> str | None:
        """Finish the drawing and create an area for it.

        Returns
        -------
        str or None
            The new area id, or ``None`` while the drawing is incomplete.

        Raises
        ------
        CapacityError
            If the maximum number of areas already exists.
        """
        coordinator = self._require_coordinator()
        polygon = self._editor.complete()
        if polygon is None:
            return None
        area_id: str = await coordinator.execute(BoundaryCompleted(polygon=polygon))
        return area_id

    def begin_edit(self, area_id: str) -> None:
        self._editor.begin_edit(area_id, self._store.get_area(area_id).polygon)

    async def commit_edit(self) -> bool:
        """Apply the vertex edit; ``True`` when the area is being refetched."""
        coordinator = self._require_coordinator()
        edit = self._editor.commit_edit()
        return bool(await coordinator.execute(PolygonEdited(area_id=edit.area_id, polygon=edit.polygon)))

    async def edit_area(self, area_id: str, polygon: BoundaryPolygon) -> bool:
        coordinator = self._require_coordinator()
        return bool(await coordinator.execute(PolygonEdited(area_id=area_id, polygon=polygon)))

    # ------------------------------------------------------------------
    # Areas and layers
    # ------------------------------------------------------------------

    async def switch_area(self, area_id: str | None) -> None:
        await self._require_coordinator().execute(ActiveAreaSwitched(area_id=area_id))

    async def activate_layers(self, *layer_ids: str) -> list[str]:
        """Activate layers; returns the ids that will be fetched for the active area."""
        result: list[str] = await self._require_coordinator().execute(LayersActivated(layer_ids=layer_ids))
        return result

    async def deactivate_layers(self, *layer_ids: str) -> None:
        await self._require_coordinator().execute(LayersDeactivated(layer_ids=layer_ids))

    async def remove_area(self, area_id: str) -> None:
        await self._require_coordinator().execute(AreaRemoved(area_id=area_id))

    async def clear_areas(self) -> None:
        await self._require_coordinator().execute(AreasCleared())

    async def cancel_fetch(self, area_id: str | None = None) -> bool:
        """Cancel fetching for *area_id* (the active area by default)."""
        return bool(await self._require_coordinator().execute(FetchCancelRequested(area_id=area_id)))

    async def wait_idle(self) -> None:
        await self._require_coordinator().wait_idle()

    # ------------------------------------------------------------------
    # Share links
    # ------------------------------------------------------------------

    def share_query(
        self,
        center: tuple[float, float],
        zoom: float,
        *,
        pitch: float = 45,
        bearing: float = 0,
        preset_id: str | None = None,
        exploded_view: bool = False,
        map_style: str | None = None,
    ) -> str:
        """Encode the current areas and the given view as a share-link query."""
        state = ShareableState(
            center=center,
            zoom=zoom,
            pitch=pitch,
            bearing=bearing,
            areas=tuple(EncodedArea(name=area.name, coordinates=area.polygon.ring) for area in self._store.areas),
            preset_id=preset_id,
            exploded_view=exploded_view,
            map_style=map_style,
        )
        return encode_state(state)

    async def restore_from_query(self, query: str) -> ShareableState | None:
        """Decode a share link and recreate its areas.

        Areas are only restored into an empty store. Rings are closed if
        needed and skipped when shorter than four points or enclosing no
        area. Each restored
        area starts a full fetch of the active layers.

        Returns the decoded state (view settings are left to the caller),
        or ``None`` if the query is not a valid share link.
        """
        coordinator = self._require_coordinator()
        state = decode_state(query)
        if state is None or not state.areas or len(self._store):
            return state

        for encoded in state.areas:
            if len(self._store) >= self._store.max_areas:
                _logger.warning("Area limit reached; ignoring remaining shared areas")
                break
            coords = list(encoded.coordinates)
            if len(coords) > 2 and coords[0] != coords[-1]:
                coords.append(coords[0])
            if len(coords) < MIN_RING_POINTS:
                continue
            try:
                polygon = BoundaryPolygon.from_ring(coords)
                boundary_shape(polygon)
            except (InvalidPolygonError, GeometryError) as exc:
                _logger.warning("Skipping shared area %r: %s", encoded.name, exc)
                continue
            area_id: str = await coordinator.execute(BoundaryCompleted(polygon=polygon))
            if len(encoded.name) > 1:
                self._store.rename_area(area_id, encoded.name)
        return state
