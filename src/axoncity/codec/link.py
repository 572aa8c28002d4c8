"""Share-link query string encoding.

Parameters:

``c``
    ``lng,lat,zoom`` with 3-decimal coordinates and integer zoom. Required.
``p``
    ``pitch,bearing`` as integers; omitted for the default ``45,0``.
``a``
    ``name~polyline`` per area, joined by ``|``. Names longer than two
    characters are shortened to their first character.
``s``
    Two-letter story preset code (``bi``, ``aa``, ``bf``, ``gb``, ``dn``).
``e``
    ``1`` when the exploded view is on.
``m``
    Map style code, ``l`` (light) or ``s`` (satellite); dark is the default.
"""

from __future__ import annotations

import logging
import math
from urllib.parse import parse_qs, urlencode

from axoncity._constants import (
    DEFAULT_BEARING,
    DEFAULT_MAP_STYLE,
    DEFAULT_PITCH,
    MAP_STYLE_CODES,
    MAP_STYLES,
    PRESET_CODES,
    PRESET_IDS,
    area_name,
)
from axoncity.codec.polyline import decode_polyline, encode_polyline
from axoncity.models.share import EncodedArea, ShareableState

_logger = logging.getLogger(__name__)


def _short_name(name: str) -> str:
    return name if len(name) <= 2 else name[:1]


def encode_areas(areas: tuple[EncodedArea, ...] | list[EncodedArea]) -> str:
    return "|".join(f"{_short_name(area.name)}~{encode_polyline(area.coordinates)}" for area in areas)


def decode_areas(encoded: str) -> list[EncodedArea]:
    """Decode the ``a`` parameter; any malformed part yields no areas at all."""
    if not encoded:
        return []
    areas: list[EncodedArea] = []
    try:
        for index, part in enumerate(encoded.split("|")):
            name, _, polyline = part.partition("~")
            areas.append(EncodedArea(name=name or area_name(index), coordinates=tuple(decode_polyline(polyline))))
    except ValueError as exc:
        _logger.debug("Ignoring undecodable areas parameter: %s", exc)
        return []
    return areas


def encode_state(state: ShareableState) -> str:
    """Encode *state* as a URL query string (without the leading ``?``)."""
    lng, lat = state.center
    params: list[tuple[str, str]] = [("c", f"{lng:.3f},{lat:.3f},{round(state.zoom)}")]

    if state.pitch != DEFAULT_PITCH or state.bearing != DEFAULT_BEARING:
        params.append(("p", f"{round(state.pitch)},{round(state.bearing)}"))

    if state.areas:
        params.append(("a", encode_areas(state.areas)))

    if state.preset_id:
        params.append(("s", PRESET_CODES.get(state.preset_id, state.preset_id[:2])))

    if state.exploded_view:
        params.append(("e", "1"))

    if state.map_style and state.map_style != DEFAULT_MAP_STYLE:
        params.append(("m", MAP_STYLE_CODES.get(state.map_style, state.map_style[:1])))

    return urlencode(params, safe=",")


def _parse_finite(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def decode_state(query: str) -> ShareableState | None:
    """Decode a query string produced by :func:`encode_state`.

    Returns ``None`` when ``c`` is missing or malformed; every other
    parameter is optional and falls back to its default.
    """
    params = {key: values[0] for key, values in parse_qs(query.lstrip("?"), keep_blank_values=True).items()}

    center = params.get("c")
    if not center:
        return None
    parts = [_parse_finite(part) for part in center.split(",")]
    if len(parts) < 3 or any(part is None for part in parts[:3]):
        return None
    lng, lat, zoom = parts[0], parts[1], parts[2]
    assert lng is not None and lat is not None and zoom is not None  # noqa: S101

    pitch: float = DEFAULT_PITCH
    bearing: float = DEFAULT_BEARING
    if params.get("p"):
        raw_pitch, _, raw_bearing = params["p"].partition(",")
        parsed_pitch, parsed_bearing = _parse_finite(raw_pitch), _parse_finite(raw_bearing)
        if parsed_pitch is not None:
            pitch = parsed_pitch
        if parsed_bearing is not None:
            bearing = parsed_bearing

    preset_code = params.get("s")
    preset_id = PRESET_IDS.get(preset_code, preset_code) if preset_code else None

    return ShareableState(
        center=(lng, lat),
        zoom=zoom,
        pitch=pitch,
        bearing=bearing,
        areas=tuple(decode_areas(params.get("a", ""))),
        preset_id=preset_id,
        active_layers=None,
        exploded_view=params.get("e") == "1",
        map_style=MAP_STYLES.get(params["m"]) if params.get("m") else None,
    )
