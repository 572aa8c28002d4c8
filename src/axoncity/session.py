"""Fetch session handles."""

from __future__ import annotations

import asyncio
import itertools
import time
from dataclasses import dataclass, field
from enum import StrEnum

from axoncity.cancel import CancelToken
from axoncity.models.polygon import BoundaryPolygon

_session_ids = itertools.count(1)


class SessionKind(StrEnum):
    FULL = "full"
    """Every active layer, overwriting the area's cache."""

    INCREMENTAL = "incremental"
    """Only layers without a valid cache entry, merged into the cache."""


@dataclass(slots=True, eq=False)
class FetchSession:
    """One cancellable fetch run for a single area.

    Parameters
    ----------
    area_id : str
        Area whose cache the session writes.
    polygon : BoundaryPolygon
        Boundary the session fetches for; cache entries it writes are
        tagged with it.
    layer_ids : tuple of str
        Layers to fetch, in order.
    kind : SessionKind
        Full refresh or incremental layer fetch.
    predecessor : FetchSession or None
        Superseded session the task waits for before fetching, so at most
        one session per area is ever fetching.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) of creation.
    """

    area_id: str
    polygon: BoundaryPolygon
    layer_ids: tuple[str, ...]
    kind: SessionKind = SessionKind.FULL
    token: CancelToken = field(default_factory=CancelToken)
    task: asyncio.Task[None] | None = None
    predecessor: FetchSession | None = None
    session_id: int = field(default_factory=lambda: next(_session_ids))
    created_at: float = field(default_factory=time.monotonic)

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()

    @property
    def age(self) -> float:
        """Seconds since the session was created."""
        return time.monotonic() - self.created_at

    def cancel(self) -> None:
        self.token.cancel()

    async def wait(self) -> None:
        """Wait for the session task to finish, whatever its outcome."""
        if self.task is not None and not self.task.done():
            await asyncio.wait({self.task})
