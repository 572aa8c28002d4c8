"""Serial command processing and per-area fetch sessions.

The coordinator is the single writer of layer caches. Commands are queued
and handled one at a time; fetching itself runs in per-area session tasks
so that a slow fetch never blocks later commands. The race policy lives in
:mod:`axoncity.state.policy`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any

from axoncity._api.fetch import fetch_multiple_layers
from axoncity._transport import Transport
from axoncity.config import AxonConfig
from axoncity.exceptions import AxonError, CapacityError, FetchCancelled, GeometryError
from axoncity.geometry.measure import bbox_from_polygon, polygon_area_km2
from axoncity.layers import layer_index
from axoncity.models.feature import FeatureCollection
from axoncity.models.layer import LayerSpec
from axoncity.models.polygon import BoundaryPolygon
from axoncity.pipeline import build_layer_data
from axoncity.session import FetchSession, SessionKind
from axoncity.state.commands import (
    ActiveAreaSwitched,
    AreaRemoved,
    AreasCleared,
    BoundaryCompleted,
    CoordinatorCommand,
    FetchCancelRequested,
    LayersActivated,
    LayersDeactivated,
    PolygonEdited,
)
from axoncity.state.policy import (
    ActivationAction,
    RefreshAction,
    full_refresh_action,
    layer_activation_action,
    merge_layer_ids,
    polygons_equal,
)
from axoncity.state.store import AreaStore

_logger = logging.getLogger(__name__)

AreaProgressCallback = Callable[[str, str, int, int], None]
"""``(area_id, layer_id, completed, total)``"""


class FetchCoordinator:
    """Decides, per command, whether to create, refresh or extend an area's cache.

    Usage::

        async with FetchCoordinator(config, transport, store, layers) as coordinator:
            area_id = await coordinator.execute(BoundaryCompleted(polygon=polygon))
            await coordinator.wait_idle()

    Parameters
    ----------
    config : AxonConfig
        Retry, pacing and bbox settings for the fetches.
    transport : Transport
        Provider transport.
    store : AreaStore
        The store the coordinator writes to.
    layers : iterable of LayerSpec
        Layers that may be activated.
    active_layers : iterable of str
        Initially active layer ids.
    on_progress : callable, optional
        ``on_progress(area_id, layer_id, completed, total)`` for every
        layer a live session resolves.
    """

    def __init__(
        self,
        config: AxonConfig,
        transport: Transport,
        store: AreaStore,
        layers: Iterable[LayerSpec],
        *,
        active_layers: Iterable[str] = (),
        on_progress: AreaProgressCallback | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._store = store
        self._layers = layer_index(layers)
        self._active_layers: list[str] = merge_layer_ids([], self._require_known(active_layers))
        self._on_progress = on_progress
        self._queue: asyncio.Queue[tuple[CoordinatorCommand, asyncio.Future[Any]]] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._last_fetched: dict[str, BoundaryPolygon] = {}
        self._deferred: dict[str, list[str]] = {}
        self._closing = False
        self._handlers: dict[type, Callable[[Any], Any]] = {
            BoundaryCompleted: self._on_boundary_completed,
            PolygonEdited: self._on_polygon_edited,
            ActiveAreaSwitched: self._on_active_area_switched,
            LayersActivated: self._on_layers_activated,
            LayersDeactivated: self._on_layers_deactivated,
            AreaRemoved: self._on_area_removed,
            AreasCleared: self._on_areas_cleared,
            FetchCancelRequested: self._on_fetch_cancel_requested,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FetchCoordinator:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def start(self) -> None:
        if self._worker is not None:
            return
        self._closing = False
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._consume(), name="axoncity-coordinator")

    async def close(self) -> None:
        """Stop processing commands and cancel every fetch session."""
        self._closing = True
        for session in self._store.sessions():
            session.cancel()
        if self._worker is not None:
            self._worker.cancel()
            await asyncio.wait({self._worker})
            self._worker = None
        if self._queue is not None:
            while not self._queue.empty():
                _, future = self._queue.get_nowait()
                if not future.done():
                    future.cancel()
            self._queue = None
        if self._tasks:
            await asyncio.wait(set(self._tasks))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def store(self) -> AreaStore:
        return self._store

    @property
    def active_layers(self) -> tuple[str, ...]:
        return tuple(self._active_layers)

    @property
    def layers(self) -> dict[str, LayerSpec]:
        return dict(self._layers)

    def last_fetched_polygon(self, area_id: str) -> BoundaryPolygon | None:
        """Polygon the most recent full refresh of *area_id* targeted."""
        return self._last_fetched.get(area_id)

    def deferred_layers(self, area_id: str) -> tuple[str, ...]:
        return tuple(self._deferred.get(area_id, ()))

    @property
    def busy(self) -> bool:
        return bool(self._tasks) or (self._queue is not None and self._queue.qsize() > 0)

    # ------------------------------------------------------------------
    # Command intake
    # ------------------------------------------------------------------

    def submit(self, command: CoordinatorCommand) -> asyncio.Future[Any]:
        """Queue *command*; the returned future resolves once it was handled.

        The future carries the handler's result (the new area id for
        :class:`BoundaryCompleted`) or its exception, e.g.
        :class:`CapacityError`.
        """
        if self._queue is None:
            raise AxonError("Coordinator not started. Use 'async with FetchCoordinator(...)'")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((command, future))
        return future

    async def execute(self, command: CoordinatorCommand) -> Any:
        """Submit *command* and wait for its handler to finish (not for the fetch)."""
        return await self.submit(command)

    async def wait_idle(self) -> None:
        """Wait until the queue is drained and no session task is running."""
        while True:
            if self._queue is not None:
                await self._queue.join()
            if not self._tasks:
                return
            await asyncio.wait(set(self._tasks))

    async def _consume(self) -> None:
        assert self._queue is not None  # noqa: S101
        queue = self._queue
        while True:
            command, future = await queue.get()
            try:
                handler = self._handlers[type(command)]
                result = handler(command)
            except Exception as exc:  # noqa: BLE001 - handed to the submitter
                _logger.debug("%s failed: %s", type(command).__name__, exc)
                if not future.done():
                    future.set_exception(exc)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                queue.task_done()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _require_known(self, layer_ids: Iterable[str]) -> list[str]:
        ids = list(layer_ids)
        unknown = [layer_id for layer_id in ids if layer_id not in self._layers]
        if unknown:
            raise ValueError(f"Unknown layer ids: {', '.join(unknown)}")
        return ids

    def _on_boundary_completed(self, command: BoundaryCompleted) -> str:
        area_id = self._store.add_area(command.polygon)
        if area_id is None:
            limit = self._store.max_areas
            raise CapacityError(f"At most {limit} areas can be compared at once", limit=limit)
        self._start_session(area_id, command.polygon, self._active_layers, SessionKind.FULL)
        return area_id

    def _on_polygon_edited(self, command: PolygonEdited) -> bool:
        area = self._store.get_area(command.area_id)
        action = full_refresh_action(
            current_polygon=area.polygon,
            new_polygon=command.polygon,
            last_fetched=self._last_fetched.get(area.id),
            in_flight=self._store.session_for(area.id) is not None,
        )
        if action == RefreshAction.NOOP:
            _logger.debug("Edit of %s left the polygon unchanged", area.id)
            return False
        self._store.update_area_polygon(area.id, command.polygon)
        self._start_session(area.id, command.polygon, self._active_layers, SessionKind.FULL)
        return True

    def _on_active_area_switched(self, command: ActiveAreaSwitched) -> None:
        self._store.set_active_area_id(command.area_id)
        if command.area_id is not None:
            self._last_fetched[command.area_id] = self._store.get_area(command.area_id).polygon

    def _on_layers_activated(self, command: LayersActivated) -> list[str]:
        self._active_layers = merge_layer_ids(self._active_layers, self._require_known(command.layer_ids))
        area = self._store.get_active_area()
        if area is None:
            return []

        missing = self._store.missing_layers(area.id, command.layer_ids)
        action = layer_activation_action(missing=missing, in_flight=self._store.session_for(area.id) is not None)
        if action == ActivationAction.DEFER:
            self._deferred[area.id] = merge_layer_ids(self._deferred.get(area.id, ()), missing)
            _logger.debug("Deferred layers %s for %s until the running fetch ends", missing, area.id)
        elif action == ActivationAction.FETCH:
            self._start_session(area.id, area.polygon, missing, SessionKind.INCREMENTAL)
        return missing

    def _on_layers_deactivated(self, command: LayersDeactivated) -> None:
        removed = set(command.layer_ids)
        self._active_layers = [layer_id for layer_id in self._active_layers if layer_id not in removed]
        for area_id, pending in list(self._deferred.items()):
            remaining = [layer_id for layer_id in pending if layer_id not in removed]
            if remaining:
                self._deferred[area_id] = remaining
            else:
                del self._deferred[area_id]

    def _on_area_removed(self, command: AreaRemoved) -> None:
        self._store.remove_area(command.area_id)
        self._last_fetched.pop(command.area_id, None)
        self._deferred.pop(command.area_id, None)

    def _on_areas_cleared(self, command: AreasCleared) -> None:
        self._store.clear_areas()
        self._last_fetched.clear()
        self._deferred.clear()

    def _on_fetch_cancel_requested(self, command: FetchCancelRequested) -> bool:
        area_id = command.area_id if command.area_id is not None else self._store.active_area_id
        if area_id is None:
            return False
        self._deferred.pop(area_id, None)
        session = self._store.cancel_session(area_id)
        if session is not None:
            _logger.info("Fetch for %s cancelled by user", area_id)
        return session is not None

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def _start_session(
        self,
        area_id: str,
        polygon: BoundaryPolygon,
        layer_ids: Iterable[str],
        kind: SessionKind,
    ) -> FetchSession:
        session = FetchSession(area_id=area_id, polygon=polygon, layer_ids=tuple(layer_ids), kind=kind)
        self._store.begin_session(session)
        if kind == SessionKind.FULL:
            self._last_fetched[area_id] = polygon
            self._deferred.pop(area_id, None)

        task = asyncio.create_task(
            self._run_session(session),
            name=f"axoncity-fetch-{area_id}-{session.session_id}",
        )
        session.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        _logger.debug(
            "Started %s session %d for %s with %d layers",
            kind.value,
            session.session_id,
            area_id,
            len(session.layer_ids),
        )
        return session

    async def _run_session(self, session: FetchSession) -> None:
        try:
            predecessor, session.predecessor = session.predecessor, None
            if predecessor is not None:
                await predecessor.wait()
            session.token.raise_if_cancelled()

            layers = [self._layers[layer_id] for layer_id in session.layer_ids]
            if not layers:
                return
            try:
                area_km2 = polygon_area_km2(session.polygon)
            except GeometryError as exc:
                _logger.warning("Not fetching for %s: %s", session.area_id, exc)
                return

            def on_layer(layer_id: str, features: FeatureCollection) -> None:
                self._write_layer(session, self._layers[layer_id], features, area_km2)

            def on_progress(layer_id: str, completed: int, total: int) -> None:
                if self._on_progress is not None and not session.cancelled:
                    self._on_progress(session.area_id, layer_id, completed, total)

            await fetch_multiple_layers(
                self._config,
                self._transport,
                layers,
                bbox_from_polygon(session.polygon, self._config.bbox_buffer),
                on_progress=on_progress,
                on_layer=on_layer,
                cancel_token=session.token,
            )
            _logger.debug("Session %d for %s finished", session.session_id, session.area_id)
        except FetchCancelled as exc:
            _logger.debug(
                "Session %d for %s cancelled after %d layers",
                session.session_id,
                session.area_id,
                len(exc.partial),
            )
        except Exception:  # noqa: BLE001 - a session task has no awaiter to report to
            _logger.error(
                "Session %d for %s failed",
                session.session_id,
                session.area_id,
                exc_info=True,
            )
        finally:
            self._store.end_session(session)
            if not session.cancelled and not self._closing:
                self._start_follow_up(session.area_id)

    def _write_layer(
        self,
        session: FetchSession,
        layer: LayerSpec,
        features: FeatureCollection,
        area_km2: float,
    ) -> None:
        if session.cancelled or self._store.session_for(session.area_id) is not session:
            _logger.debug("Dropping %s from stale session %d", layer.id, session.session_id)
            return
        area = self._store.get_area(session.area_id)
        if not polygons_equal(area.polygon, session.polygon):
            return
        try:
            data = build_layer_data(layer, features, session.polygon, area_km2)
        except GeometryError as exc:
            _logger.warning("Could not process layer %s for %s: %s", layer.id, session.area_id, exc)
            return
        self._store.update_area_layer_data(session.area_id, layer.id, data)

    def _start_follow_up(self, area_id: str) -> None:
        deferred = self._deferred.pop(area_id, None)
        if not deferred or area_id not in self._store or self._store.session_for(area_id) is not None:
            return
        wanted = [layer_id for layer_id in deferred if layer_id in self._active_layers]
        missing = self._store.missing_layers(area_id, wanted)
        if missing:
            area = self._store.get_area(area_id)
            self._start_session(area_id, area.polygon, missing, SessionKind.INCREMENTAL)
