"""Client configuration for axoncity."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any

from axoncity._constants import (
    DEFAULT_BBOX_BUFFER_DEG,
    DEFAULT_MAX_RETRIES,
    MAX_AREAS,
    OVERPASS_URL,
    USER_AGENT,
)
from axoncity.exceptions import AxonConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class AxonConfig:
    """Client configuration.

    Parameters
    ----------
    overpass_url : str
        Overpass API interpreter endpoint.
    user_agent : str
        ``User-Agent`` header sent with every provider request.
    max_retries : int
        Attempts per layer before the layer degrades to an empty result.
    request_timeout : float
        Total seconds allowed for one provider request. A timeout is
        treated like a gateway timeout (retryable).
    inter_layer_delay : float
        Seconds to wait between two consecutive layer requests of one
        fetch session.
    rate_limit_backoff_base : float
        Backoff base after a 429 response; attempt ``n`` (0-based) waits
        ``base * 2**n`` seconds (2 s, 4 s, 8 s by default).
    timeout_backoff_base : float
        Backoff base after a 504 response or a client-side timeout
        (1 s, 2 s, 4 s by default).
    bbox_buffer : float
        Degrees added around the polygon extrema when building the
        provider bounding box.
    max_areas : int
        Maximum number of selection areas kept at once.
    api_trace_enabled : bool
        Log provider queries and truncated responses at DEBUG level.
    """

    overpass_url: str = OVERPASS_URL
    user_agent: str = USER_AGENT
    max_retries: int = DEFAULT_MAX_RETRIES
    request_timeout: float = 60.0
    inter_layer_delay: float = 1.0
    rate_limit_backoff_base: float = 2.0
    timeout_backoff_base: float = 1.0
    bbox_buffer: float = DEFAULT_BBOX_BUFFER_DEG
    max_areas: int = MAX_AREAS
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise AxonConfigError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.max_areas < 1:
            raise AxonConfigError(f"max_areas must be >= 1, got {self.max_areas}")
        for name in ("request_timeout", "inter_layer_delay", "rate_limit_backoff_base", "timeout_backoff_base"):
            if getattr(self, name) < 0:
                raise AxonConfigError(f"{name} must not be negative")
        if self.bbox_buffer < 0:
            raise AxonConfigError("bbox_buffer must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> AxonConfig:
        """Create configuration from environment variables.

        Reads optional ``AXON_*`` variables. Explicit keyword arguments
        override environment values.

        Raises
        ------
        AxonConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "AXON_OVERPASS_URL": ("overpass_url", str),
            "AXON_USER_AGENT": ("user_agent", str),
            "AXON_MAX_RETRIES": ("max_retries", int),
            "AXON_REQUEST_TIMEOUT": ("request_timeout", float),
            "AXON_INTER_LAYER_DELAY": ("inter_layer_delay", float),
            "AXON_RATE_LIMIT_BACKOFF_BASE": ("rate_limit_backoff_base", float),
            "AXON_TIMEOUT_BACKOFF_BASE": ("timeout_backoff_base", float),
            "AXON_BBOX_BUFFER": ("bbox_buffer", float),
            "AXON_MAX_AREAS": ("max_areas", int),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, parse) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = parse(val.strip())
            except ValueError as exc:
                raise AxonConfigError(f"{env_key} has an invalid value: {val!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("AXON_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
