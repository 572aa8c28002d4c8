"""Size limits for debug logging.

Overpass queries are short, but responses for a dense city block can run to
megabytes of JSON. :func:`truncate_for_log` shortens both before they reach
a DEBUG log line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_MAX_SEQUENCE_ITEMS = 20
_MAX_DEPTH = 20


def truncate_for_log(value: Any, *, max_length: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with long strings cut and long lists capped.

    Scalars pass through unchanged; unknown objects are replaced by their
    ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        overflow = len(value) - max_length
        return value if overflow <= 0 else f"{value[:max_length]}…<truncated {overflow} chars>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    def _child(item: Any) -> Any:
        return truncate_for_log(item, max_length=max_length, _depth=_depth + 1)

    if isinstance(value, Mapping):
        return {str(key): _child(item) for key, item in value.items()}

    if isinstance(value, Sequence):
        items = [_child(item) for item in value[:_MAX_SEQUENCE_ITEMS]]
        hidden = len(value) - _MAX_SEQUENCE_ITEMS
        if hidden > 0:
            items.append(f"<{hidden} more>")
        return items

    return repr(value)
