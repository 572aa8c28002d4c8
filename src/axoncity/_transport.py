"""HTTP transport for the Overpass API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import aiohttp

from axoncity._constants import GATEWAY_TIMEOUT_STATUS, RATE_LIMITED_STATUS
from axoncity._redact import truncate_for_log
from axoncity.config import AxonConfig
from axoncity.exceptions import (
    FatalProviderError,
    GatewayTimeoutError,
    ProviderError,
    RateLimitedError,
    TransientProviderError,
)

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the fetch orchestrator.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`OverpassTransport`) concrete.
    """

    async def post_query(self, query: str) -> dict[str, Any]:
        ...


class OverpassTransport:
    """Posts Overpass QL queries and maps HTTP outcomes to provider errors."""

    def __init__(self, config: AxonConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def post_query(self, query: str) -> dict[str, Any]:
        """Run *query* and return the decoded JSON body.

        Raises
        ------
        RateLimitedError
            HTTP 429.
        GatewayTimeoutError
            HTTP 504 or a client-side timeout.
        TransientProviderError
            The connection failed before a response arrived.
        FatalProviderError
            Any other non-200 status, or a body that is not a JSON object.
        """
        url = self._config.overpass_url
        headers = {
            "accept": "application/json",
            "user-agent": self._config.user_agent,
        }
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout or None)

        if self._config.api_trace_enabled:
            _logger.debug("POST %s query=%s", url, truncate_for_log(query))

        try:
            async with self._http.post(url, data={"data": query}, headers=headers, timeout=timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise _status_error(resp.status, text)
        except ProviderError:
            raise
        except asyncio.TimeoutError as exc:
            raise GatewayTimeoutError(
                f"Request to {url} timed out after {self._config.request_timeout}s",
                status_code=GATEWAY_TIMEOUT_STATUS,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransientProviderError(f"Request to {url} failed: {exc}") from exc

        if self._config.api_trace_enabled:
            _logger.debug("Response %s body=%s", url, truncate_for_log(text))

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FatalProviderError(
                f"Invalid JSON from {url}: {truncate_for_log(text, max_length=200)}",
                status_code=200,
            ) from exc

        if not isinstance(body, dict):
            raise FatalProviderError(f"Unexpected payload type from {url}: {type(body).__name__}", status_code=200)
        return body


def _status_error(status: int, text: str) -> ProviderError:
    message = f"HTTP {status} from Overpass: {truncate_for_log(text, max_length=200)}"
    if status == RATE_LIMITED_STATUS:
        return RateLimitedError(message, status_code=status)
    if status == GATEWAY_TIMEOUT_STATUS:
        return GatewayTimeoutError(message, status_code=status)
    return FatalProviderError(message, status_code=status)
