"""Polyline coordinate encoding.

The format is the classic polyline algorithm at 1e-4 degree precision
(about 11 m): each ``(longitude, latitude)`` pair is written latitude
first as the zig-zag encoded delta to the previous pair, split into 5-bit
groups offset by 63 so every character is printable.

Coordinates are rounded to the precision grid *before* taking deltas, so
decoding never accumulates rounding drift along a ring.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

PRECISION = 4
_FACTOR = 10**PRECISION

_CHAR_OFFSET = 63
_CONTINUATION = 0x20
_CHUNK_MASK = 0x1F


def _encode_signed(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chars: list[str] = []
    while value >= _CONTINUATION:
        chars.append(chr((_CONTINUATION | (value & _CHUNK_MASK)) + _CHAR_OFFSET))
        value >>= 5
    chars.append(chr(value + _CHAR_OFFSET))
    return "".join(chars)


def _decode_signed(encoded: str, index: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise ValueError("truncated polyline")
        chunk = ord(encoded[index]) - _CHAR_OFFSET
        if not 0 <= chunk < 64:
            raise ValueError(f"invalid polyline character {encoded[index]!r} at {index}")
        index += 1
        result |= (chunk & _CHUNK_MASK) << shift
        shift += 5
        if chunk < _CONTINUATION:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def encode_polyline(coordinates: Iterable[Sequence[float]]) -> str:
    """Encode ``(longitude, latitude)`` pairs."""
    parts: list[str] = []
    prev_lat = prev_lng = 0
    for coord in coordinates:
        lng = round(coord[0] * _FACTOR)
        lat = round(coord[1] * _FACTOR)
        parts.append(_encode_signed(lat - prev_lat))
        parts.append(_encode_signed(lng - prev_lng))
        prev_lat, prev_lng = lat, lng
    return "".join(parts)


def decode_polyline(encoded: str) -> list[tuple[float, float]]:
    """Decode into ``(longitude, latitude)`` pairs rounded to the precision.

    Raises
    ------
    ValueError
        On truncated input, a dangling latitude or characters outside the
        polyline alphabet.
    """
    coordinates: list[tuple[float, float]] = []
    index = 0
    lat = lng = 0
    while index < len(encoded):
        d_lat, index = _decode_signed(encoded, index)
        if index >= len(encoded):
            raise ValueError("polyline ends after a latitude")
        d_lng, index = _decode_signed(encoded, index)
        lat += d_lat
        lng += d_lng
        coordinates.append((round(lng / _FACTOR, PRECISION), round(lat / _FACTOR, PRECISION)))
    return coordinates
