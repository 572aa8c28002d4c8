"""Compact encodings for share links."""

from axoncity.codec.link import decode_state, encode_state
from axoncity.codec.polyline import decode_polyline, encode_polyline

__all__ = ["decode_polyline", "decode_state", "encode_polyline", "encode_state"]
