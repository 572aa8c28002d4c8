"""Layer fetching with bounded retries, pacing and cancellation.

Layers are fetched strictly one at a time. Each layer degrades to an empty
feature collection on failure, so one bad layer never aborts a batch. Only
cancellation interrupts a batch, as :class:`FetchCancelled` carrying the
layers that completed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from axoncity._api.overpass import build_overpass_query, elements_to_features
from axoncity._transport import Transport
from axoncity.cancel import CancelToken
from axoncity.config import AxonConfig
from axoncity.exceptions import FatalProviderError, FetchCancelled, RateLimitedError, TransientProviderError
from axoncity.geometry.measure import bbox_from_polygon
from axoncity.models.feature import FeatureCollection
from axoncity.models.layer import LayerSpec

_logger = logging.getLogger(__name__)

__all__ = ["ProgressCallback", "LayerCallback", "bbox_from_polygon", "fetch_layer_data", "fetch_multiple_layers"]

ProgressCallback = Callable[[str, int, int], None]
LayerCallback = Callable[[str, FeatureCollection], None]

BBox = tuple[float, float, float, float]


def _backoff_delay(config: AxonConfig, exc: TransientProviderError, attempt: int) -> float:
    if isinstance(exc, RateLimitedError):
        return config.rate_limit_backoff_base * 2**attempt
    return config.timeout_backoff_base * 2**attempt


async def fetch_layer_data(
    config: AxonConfig,
    transport: Transport,
    layer: LayerSpec,
    bbox: BBox,
    *,
    cancel_token: CancelToken | None = None,
) -> FeatureCollection:
    """Fetch one layer inside *bbox*.

    Makes up to ``config.max_retries`` attempts. Throttling (429) backs off
    ``rate_limit_backoff_base * 2**attempt`` seconds; gateway timeouts, client
    timeouts and dropped connections back off ``timeout_backoff_base *
    2**attempt``. There is no wait after the last attempt.

    Returns
    -------
    FeatureCollection
        The converted features, or an empty collection when the provider
        failed fatally or every attempt was transient-failed.

    Raises
    ------
    FetchCancelled
        If *cancel_token* fires before an attempt, during a request or
        during a backoff wait.
    """
    token = cancel_token if cancel_token is not None else CancelToken()
    query = build_overpass_query(layer, bbox)

    for attempt in range(config.max_retries):
        token.raise_if_cancelled()
        try:
            payload = await token.guard(transport.post_query(query))
        except TransientProviderError as exc:
            delay = _backoff_delay(config, exc, attempt)
            if attempt + 1 >= config.max_retries:
                _logger.warning(
                    "Layer %s failed after %d attempts (%s); using empty result",
                    layer.id,
                    config.max_retries,
                    exc,
                )
                break
            _logger.warning(
                "Attempt %d/%d for layer %s failed (%s); retrying in %.1fs",
                attempt + 1,
                config.max_retries,
                layer.id,
                exc,
                delay,
            )
            await token.sleep(delay)
            continue
        except FatalProviderError as exc:
            _logger.warning("Layer %s failed: %s; using empty result", layer.id, exc)
            return FeatureCollection.empty()

        features = elements_to_features(payload, layer)
        _logger.debug("Layer %s returned %d features", layer.id, features.count)
        return features

    return FeatureCollection.empty()


async def fetch_multiple_layers(
    config: AxonConfig,
    transport: Transport,
    layers: Sequence[LayerSpec],
    bbox: BBox,
    *,
    on_progress: ProgressCallback | None = None,
    on_layer: LayerCallback | None = None,
    cancel_token: CancelToken | None = None,
) -> dict[str, FeatureCollection]:
    """Fetch *layers* sequentially, pausing ``config.inter_layer_delay`` between requests.

    Parameters
    ----------
    on_layer : callable, optional
        ``on_layer(layer_id, features)`` fires as soon as a layer resolves,
        before ``on_progress``, so callers can persist partial progress.
    on_progress : callable, optional
        ``on_progress(layer_id, completed, total)`` fires once per layer.

    Raises
    ------
    FetchCancelled
        If *cancel_token* fires; ``partial`` holds the layers fetched so far.
    """
    token = cancel_token if cancel_token is not None else CancelToken()
    results: dict[str, FeatureCollection] = {}
    total = len(layers)

    try:
        for index, layer in enumerate(layers):
            features = await fetch_layer_data(config, transport, layer, bbox, cancel_token=token)
            results[layer.id] = features
            if on_layer is not None:
                on_layer(layer.id, features)
            if on_progress is not None:
                on_progress(layer.id, len(results), total)
            if index < total - 1:
                await token.sleep(config.inter_layer_delay)
    except FetchCancelled as exc:
        raise FetchCancelled(partial=dict(results)) from exc

    return results
