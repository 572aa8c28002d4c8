"""Boundary drawing and vertex editing state machine."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from axoncity.exceptions import EditorStateError, GeometryError, InvalidPolygonError
from axoncity.geometry.measure import boundary_shape
from axoncity.geometry.shapes import circle_from_points, rectangle_from_points
from axoncity.models._base import Coordinate
from axoncity.models.polygon import BoundaryPolygon

_logger = logging.getLogger(__name__)

_MIN_VERTICES = 3


class DrawMode(StrEnum):
    POLYGON = "polygon"
    RECTANGLE = "rectangle"
    CIRCLE = "circle"


class EditorState(StrEnum):
    IDLE = "idle"
    DRAWING = "drawing"
    EDITING = "editing"


@dataclass(frozen=True, slots=True)
class PolygonEdit:
    """A committed vertex edit: *polygon* replaces the boundary of *area_id*."""

    area_id: str
    polygon: BoundaryPolygon


def _coordinate(point: Sequence[float]) -> Coordinate:
    lng, lat = float(point[0]), float(point[1])
    if not (math.isfinite(lng) and math.isfinite(lat)):
        raise ValueError(f"coordinate must be finite, got {point!r}")
    return lng, lat


def _spanning_polygon(polygon: BoundaryPolygon) -> BoundaryPolygon:
    try:
        boundary_shape(polygon)
    except GeometryError as exc:
        raise InvalidPolygonError(f"boundary encloses no area: {exc}") from exc
    return polygon


class BoundaryEditor:
    """Collects user clicks into a closed :class:`BoundaryPolygon`.

    ``IDLE -> DRAWING -> IDLE`` produces a new boundary through
    :meth:`complete`; ``IDLE -> EDITING -> IDLE`` reshapes an existing
    area's boundary through :meth:`commit_edit`. While drawing, a
    transient closed ring is exposed as :attr:`preview` once enough points
    exist; it is never committed on its own.
    """

    def __init__(self) -> None:
        self._state = EditorState.IDLE
        self._mode = DrawMode.POLYGON
        self._points: list[Coordinate] = []
        self._preview: BoundaryPolygon | None = None
        self._edit_area_id: str | None = None
        self._vertices: list[Coordinate] = []

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def mode(self) -> DrawMode:
        return self._mode

    @property
    def points(self) -> tuple[Coordinate, ...]:
        return tuple(self._points)

    @property
    def preview(self) -> BoundaryPolygon | None:
        return self._preview

    @property
    def edit_area_id(self) -> str | None:
        return self._edit_area_id

    @property
    def vertices(self) -> tuple[Coordinate, ...]:
        """Open vertex list of the boundary being edited."""
        return tuple(self._vertices)

    def _require(self, *states: EditorState) -> None:
        if self._state not in states:
            allowed = ", ".join(s.value for s in states)
            raise EditorStateError(f"operation requires state {allowed}, editor is {self._state.value}")

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def start(self, mode: DrawMode = DrawMode.POLYGON) -> None:
        """Begin (or restart) drawing a new boundary."""
        self._require(EditorState.IDLE, EditorState.DRAWING)
        self._mode = DrawMode(mode)
        self._points = []
        self._preview = None
        self._state = EditorState.DRAWING
        _logger.debug("Drawing started in %s mode", self._mode.value)

    def add_point(self, point: Sequence[float]) -> None:
        self._require(EditorState.DRAWING)
        coord = _coordinate(point)
        if self._mode != DrawMode.POLYGON and len(self._points) >= 2:
            self._points[-1] = coord
        else:
            self._points.append(coord)
        self._preview = self._build_polygon()

    def undo_last(self) -> None:
        self._require(EditorState.DRAWING)
        if self._points:
            self._points.pop()
        self._preview = self._build_polygon()

    def complete(self) -> BoundaryPolygon | None:
        """Close the ring and return the boundary.

        Returns ``None`` (and keeps drawing) while too few points exist or
        the points do not span an area.
        """
        self._require(EditorState.DRAWING)
        polygon = self._build_polygon()
        if polygon is None:
            return None
        self._reset()
        _logger.debug("Drawing completed with %d vertices", len(polygon.vertices))
        return polygon

    def _build_polygon(self) -> BoundaryPolygon | None:
        try:
            if self._mode == DrawMode.POLYGON:
                if len(self._points) < _MIN_VERTICES:
                    return None
                return _spanning_polygon(BoundaryPolygon.from_vertices(self._points))
            if len(self._points) < 2:
                return None
            first, second = self._points[0], self._points[1]
            if self._mode == DrawMode.RECTANGLE:
                return _spanning_polygon(BoundaryPolygon.from_ring(rectangle_from_points(first, second)))
            return _spanning_polygon(BoundaryPolygon.from_ring(circle_from_points(first, second)))
        except InvalidPolygonError:
            return None

    # ------------------------------------------------------------------
    # Vertex editing
    # ------------------------------------------------------------------

    def begin_edit(self, area_id: str, polygon: BoundaryPolygon) -> None:
        self._require(EditorState.IDLE)
        self._edit_area_id = area_id
        self._vertices = list(polygon.vertices)
        self._state = EditorState.EDITING
        _logger.debug("Editing area %s (%d vertices)", area_id, len(self._vertices))

    def move_vertex(self, index: int, point: Sequence[float]) -> None:
        self._require(EditorState.EDITING)
        self._vertices[index] = _coordinate(point)

    def insert_vertex(self, after_index: int, point: Sequence[float]) -> None:
        """Insert *point* between vertex *after_index* and its successor."""
        self._require(EditorState.EDITING)
        if not -len(self._vertices) <= after_index < len(self._vertices):
            raise IndexError(f"vertex index {after_index} out of range")
        position = after_index % len(self._vertices) + 1
        self._vertices.insert(position, _coordinate(point))

    def remove_vertex(self, index: int) -> None:
        self._require(EditorState.EDITING)
        if len(self._vertices) <= _MIN_VERTICES:
            raise EditorStateError(f"a boundary needs at least {_MIN_VERTICES} vertices")
        del self._vertices[index]

    @property
    def edited_polygon(self) -> BoundaryPolygon | None:
        """The boundary as currently edited, or ``None`` if it is degenerate."""
        if self._state != EditorState.EDITING:
            return None
        try:
            return _spanning_polygon(BoundaryPolygon.from_vertices(self._vertices))
        except InvalidPolygonError:
            return None

    def commit_edit(self) -> PolygonEdit:
        """Finish editing and return the replacement boundary.

        Raises
        ------
        InvalidPolygonError
            If the edited vertices no longer form a valid ring or enclose
            no area (all collinear, for example); the editor
            stays in EDITING so the user can fix it.
        """
        self._require(EditorState.EDITING)
        assert self._edit_area_id is not None  # noqa: S101
        edit = PolygonEdit(self._edit_area_id, _spanning_polygon(BoundaryPolygon.from_vertices(self._vertices)))
        self._reset()
        return edit

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Abandon the current drawing or edit; a no-op when idle."""
        if self._state != EditorState.IDLE:
            _logger.debug("Editor cancelled while %s", self._state.value)
        self._reset()

    def _reset(self) -> None:
        self._state = EditorState.IDLE
        self._points = []
        self._preview = None
        self._edit_area_id = None
        self._vertices = []
