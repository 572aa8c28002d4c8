"""Custom exception hierarchy for axoncity."""

from __future__ import annotations

from typing import Any


class AxonError(Exception):
    """Base exception for all axoncity errors."""


class AxonConfigError(AxonError):
    """Invalid or missing configuration."""


class ProviderError(AxonError):
    """The feature provider answered with a non-success outcome."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        layer_id: str = "",
    ) -> None:
        self.status_code = status_code
        self.layer_id = layer_id
        super().__init__(message)


class TransientProviderError(ProviderError):
    """Retryable provider failure (throttling, timeouts, dropped connections)."""


class RateLimitedError(TransientProviderError):
    """Provider returned HTTP 429 (too many requests)."""


class GatewayTimeoutError(TransientProviderError):
    """Provider returned HTTP 504, or the request timed out client-side."""


class FatalProviderError(ProviderError):
    """Non-retryable provider failure (malformed query, bad payload, other status).

    Contained to the single layer being fetched, which yields an empty
    feature collection.
    """


class GeometryError(AxonError):
    """A feature geometry could not be clipped or measured."""


class InvalidPolygonError(AxonError, ValueError):
    """A boundary ring is not a closed ring of at least three distinct vertices."""


class CapacityError(AxonError):
    """The maximum number of selection areas is already reached."""

    def __init__(self, message: str, *, limit: int) -> None:
        self.limit = limit
        super().__init__(message)


class AreaNotFoundError(AxonError, KeyError):
    """No selection area exists with the given id."""

    def __init__(self, area_id: str) -> None:
        self.area_id = area_id
        super().__init__(f"Unknown area: {area_id}")

    def __str__(self) -> str:
        return str(self.args[0])


class EditorStateError(AxonError):
    """A boundary editor operation is not valid in the current state."""


class FetchCancelled(Exception):  # noqa: N818
    """A fetch session was cancelled.

    Not an :class:`AxonError`: cancellation is a normal
    outcome that callers swallow. ``partial`` holds the layers that
    completed before the cancellation was observed.
    """

    def __init__(self, message: str = "fetch cancelled", *, partial: dict[str, Any] | None = None) -> None:
        self.partial: dict[str, Any] = partial if partial is not None else {}
        super().__init__(message)
