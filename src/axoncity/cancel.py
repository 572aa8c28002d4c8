"""Cooperative cancellation for fetch sessions."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from axoncity.exceptions import FetchCancelled

T = TypeVar("T")


class CancelToken:
    """One-shot cancellation signal shared by a session and its fetches.

    The orchestrator checks the token before every network attempt and
    every wait; :meth:`sleep` and :meth:`guard` additionally race the
    pending operation against the signal so they resolve as soon as the
    token fires.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise FetchCancelled()

    async def sleep(self, delay: float) -> None:
        """Wait *delay* seconds unless cancelled first.

        Raises
        ------
        FetchCancelled
            If the token fires before or during the wait.
        """
        self.raise_if_cancelled()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except TimeoutError:
            return
        raise FetchCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable*, abandoning it if the token fires first."""
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()
        if task.done():
            return task.result()
        task.cancel()
        # let the abandoned request unwind before the caller moves on
        await asyncio.wait({task})
        if not task.cancelled():
            task.exception()
        raise FetchCancelled()
