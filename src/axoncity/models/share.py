"""Shareable session state (what a share link carries)."""

from __future__ import annotations

from pydantic import Field

from axoncity._constants import DEFAULT_BEARING, DEFAULT_PITCH
from axoncity.models._base import AxonBaseModel, Coordinate


class EncodedArea(AxonBaseModel):
    """An area as it travels in a link: a name and its ring coordinates."""

    name: str
    coordinates: tuple[Coordinate, ...] = ()


class ShareableState(AxonBaseModel):
    """Camera, areas and display options that a share link reconstructs.

    Parameters
    ----------
    center : tuple of float
        ``(longitude, latitude)`` of the camera.
    zoom : float
        Map zoom level (encoded as an integer).
    pitch, bearing : float
        Camera angles; omitted from links when equal to ``(45, 0)``.
    areas : tuple of EncodedArea
        Selection areas in display order.
    preset_id : str or None
        Story preset identifier (``"green-balance"`` ...).
    active_layers : tuple of str or None
        Active layer ids; not part of the link format.
    exploded_view : bool
        Whether the exploded visualisation is on.
    map_style : str or None
        ``"light"`` or ``"satellite"``; ``None`` means the default style.
    """

    center: Coordinate
    zoom: float
    pitch: float = DEFAULT_PITCH
    bearing: float = DEFAULT_BEARING
    areas: tuple[EncodedArea, ...] = Field(default_factory=tuple)
    preset_id: str | None = None
    active_layers: tuple[str, ...] | None = None
    exploded_view: bool = False
    map_style: str | None = None
