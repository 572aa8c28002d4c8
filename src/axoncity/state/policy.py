"""Deterministic fetch race policy.

This module intentionally contains *no* I/O or store access. The
coordinator asks it what to do and carries the decision out.

Policy:
- A full refresh (new boundary or edited boundary) while a session is in
  flight for the same area supersedes that session: last edit wins.
- Layer activation while a session is in flight is deferred to a
  follow-up session that starts when the current one ends.
- At most one session per area is ever fetching.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import StrEnum

from axoncity.models.polygon import BoundaryPolygon


class RefreshAction(StrEnum):
    NOOP = "noop"
    START = "start"
    SUPERSEDE = "supersede"


class ActivationAction(StrEnum):
    SKIP = "skip"
    FETCH = "fetch"
    DEFER = "defer"


def polygons_equal(a: BoundaryPolygon | None, b: BoundaryPolygon | None) -> bool:
    """Value equality of two boundaries (``None`` only equals ``None``)."""
    if a is None or b is None:
        return a is b
    return a.ring == b.ring


def full_refresh_action(
    *,
    current_polygon: BoundaryPolygon | None,
    new_polygon: BoundaryPolygon,
    last_fetched: BoundaryPolygon | None,
    in_flight: bool,
) -> RefreshAction:
    """Decide how to handle a boundary that (re)targets an area.

    An edit that leaves the polygon unchanged is a no-op as long as a fetch
    for that polygon was already started.
    """
    if polygons_equal(current_polygon, new_polygon) and polygons_equal(last_fetched, new_polygon):
        return RefreshAction.NOOP
    return RefreshAction.SUPERSEDE if in_flight else RefreshAction.START


def layer_activation_action(*, missing: Sequence[str], in_flight: bool) -> ActivationAction:
    if not missing:
        return ActivationAction.SKIP
    return ActivationAction.DEFER if in_flight else ActivationAction.FETCH


def merge_layer_ids(current: Iterable[str], extra: Iterable[str]) -> list[str]:
    """Ordered union keeping first occurrences."""
    merged = list(dict.fromkeys(current))
    for layer_id in extra:
        if layer_id not in merged:
            merged.append(layer_id)
    return merged
