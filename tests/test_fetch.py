from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from axoncity._api.fetch import _backoff_delay, fetch_layer_data, fetch_multiple_layers
from axoncity.cancel import CancelToken
from axoncity.config import AxonConfig
from axoncity.exceptions import (
    FatalProviderError,
    FetchCancelled,
    GatewayTimeoutError,
    ProviderError,
    RateLimitedError,
)
from axoncity.models import LayerSpec

_BBOX = (13.0, 52.0, 13.1, 52.1)
_NODE = {"type": "node", "id": 1, "lat": 52.05, "lon": 13.05, "tags": {"amenity": "cafe"}}


@dataclass
class ScriptedTransport:
    """Returns (or raises) the scripted outcomes in order; the last one repeats."""

    outcomes: list[dict[str, Any] | ProviderError]
    queries: list[str] = field(default_factory=list)

    async def post_query(self, query: str) -> dict[str, Any]:
        self.queries.append(query)
        outcome = self.outcomes[min(len(self.queries), len(self.outcomes)) - 1]
        if isinstance(outcome, ProviderError):
            raise outcome
        return outcome


@pytest.fixture
def config() -> AxonConfig:
    return AxonConfig(
        max_retries=3,
        inter_layer_delay=0,
        rate_limit_backoff_base=0,
        timeout_backoff_base=0,
    )


@pytest.fixture
def layer() -> LayerSpec:
    return LayerSpec(id="cafes", geometry_kind="point", query='node["amenity"="cafe"]')


@pytest.mark.asyncio
async def test_success_converts_elements(config: AxonConfig, layer: LayerSpec) -> None:
    transport = ScriptedTransport([{"elements": [_NODE]}])

    features = await fetch_layer_data(config, transport, layer, _BBOX)

    assert features.count == 1
    assert len(transport.queries) == 1
    assert "(52.0,13.0,52.1,13.1)" in transport.queries[0]


@pytest.mark.asyncio
async def test_rate_limit_every_attempt_gives_up_after_max_retries(config: AxonConfig, layer: LayerSpec) -> None:
    transport = ScriptedTransport([RateLimitedError("busy", status_code=429)])

    features = await fetch_layer_data(config, transport, layer, _BBOX)

    assert features.count == 0
    assert len(transport.queries) == config.max_retries


@pytest.mark.asyncio
async def test_transient_failure_then_success(config: AxonConfig, layer: LayerSpec) -> None:
    transport = ScriptedTransport([GatewayTimeoutError("slow", status_code=504), {"elements": [_NODE]}])

    features = await fetch_layer_data(config, transport, layer, _BBOX)

    assert features.count == 1
    assert len(transport.queries) == 2


@pytest.mark.asyncio
async def test_fatal_error_is_not_retried(config: AxonConfig, layer: LayerSpec) -> None:
    transport = ScriptedTransport([FatalProviderError("bad query", status_code=400)])

    features = await fetch_layer_data(config, transport, layer, _BBOX)

    assert features.count == 0
    assert len(transport.queries) == 1


def test_backoff_schedule() -> None:
    config = AxonConfig()

    assert [_backoff_delay(config, RateLimitedError("x"), n) for n in range(3)] == [2.0, 4.0, 8.0]
    assert [_backoff_delay(config, GatewayTimeoutError("x"), n) for n in range(3)] == [1.0, 2.0, 4.0]


@pytest.mark.asyncio
async def test_no_wait_after_last_attempt(monkeypatch: pytest.MonkeyPatch, layer: LayerSpec) -> None:
    delays: list[float] = []

    async def fake_sleep(self: CancelToken, delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr("axoncity.cancel.CancelToken.sleep", fake_sleep)
    transport = ScriptedTransport([RateLimitedError("busy", status_code=429)])

    await fetch_layer_data(AxonConfig(), transport, layer, _BBOX)

    assert delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_multiple_layers_are_paced_and_reported_in_order(monkeypatch: pytest.MonkeyPatch) -> None:
    delays: list[float] = []
    events: list[str] = []

    async def fake_sleep(self: CancelToken, delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr("axoncity.cancel.CancelToken.sleep", fake_sleep)
    layers = [LayerSpec(id=f"l{i}", geometry_kind="point", query="node") for i in range(3)]
    transport = ScriptedTransport([{"elements": [_NODE]}])

    results = await fetch_multiple_layers(
        AxonConfig(inter_layer_delay=1.5),
        transport,
        layers,
        _BBOX,
        on_layer=lambda layer_id, features: events.append(f"layer:{layer_id}"),
        on_progress=lambda layer_id, done, total: events.append(f"progress:{layer_id}:{done}/{total}"),
    )

    assert list(results) == ["l0", "l1", "l2"]
    assert delays == [1.5, 1.5]
    assert events == [
        "layer:l0",
        "progress:l0:1/3",
        "layer:l1",
        "progress:l1:2/3",
        "layer:l2",
        "progress:l2:3/3",
    ]


@pytest.mark.asyncio
async def test_one_failing_layer_does_not_abort_batch(config: AxonConfig) -> None:
    layers = [LayerSpec(id=f"l{i}", geometry_kind="point", query="node") for i in range(2)]
    transport = ScriptedTransport([FatalProviderError("boom", status_code=400), {"elements": [_NODE]}])

    results = await fetch_multiple_layers(config, transport, layers, _BBOX)

    assert results["l0"].count == 0
    assert results["l1"].count == 1


@pytest.mark.asyncio
async def test_malformed_elements_do_not_abort_batch(config: AxonConfig) -> None:
    layers = [LayerSpec(id=f"l{i}", geometry_kind="point", query="node") for i in range(2)]
    malformed = {"type": "node", "id": {"x": 1}, "lat": 52.05, "lon": 13.05}
    transport = ScriptedTransport([{"elements": [malformed, _NODE]}, {"elements": [_NODE]}])

    results = await fetch_multiple_layers(config, transport, layers, _BBOX)

    assert len(transport.queries) == 2
    assert results["l0"].count == 1
    assert results["l1"].count == 1


@pytest.mark.asyncio
async def test_cancellation_between_layers_keeps_partial_results(config: AxonConfig) -> None:
    layers = [LayerSpec(id=f"l{i}", geometry_kind="point", query="node") for i in range(3)]
    transport = ScriptedTransport([{"elements": [_NODE]}])
    token = CancelToken()

    with pytest.raises(FetchCancelled) as exc_info:
        await fetch_multiple_layers(
            config,
            transport,
            layers,
            _BBOX,
            on_layer=lambda layer_id, features: token.cancel(),
            cancel_token=token,
        )

    assert list(exc_info.value.partial) == ["l0"]
    assert len(transport.queries) == 1


@dataclass
class BlockingTransport:
    started: asyncio.Event = field(default_factory=asyncio.Event)
    abandoned: bool = False

    async def post_query(self, query: str) -> dict[str, Any]:
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.abandoned = True
            raise
        return {}


@pytest.mark.asyncio
async def test_cancellation_abandons_in_flight_request(config: AxonConfig, layer: LayerSpec) -> None:
    transport = BlockingTransport()
    token = CancelToken()
    task = asyncio.create_task(fetch_layer_data(config, transport, layer, _BBOX, cancel_token=token))
    await transport.started.wait()

    token.cancel()

    with pytest.raises(FetchCancelled):
        await task
    assert transport.abandoned


@pytest.mark.asyncio
async def test_cancel_token_sleep_wakes_early() -> None:
    token = CancelToken()
    loop = asyncio.get_running_loop()
    loop.call_later(0.01, token.cancel)

    started = loop.time()
    with pytest.raises(FetchCancelled):
        await token.sleep(30)

    assert loop.time() - started < 5
