from __future__ import annotations

import pytest
from shapely.geometry import shape

from axoncity.geometry.clipper import clip_features
from axoncity.models import BoundaryPolygon, Feature, FeatureCollection, GeometryKind, LayerSpec
from axoncity.stats import calculate_layer_stats


@pytest.fixture
def triangle() -> BoundaryPolygon:
    return BoundaryPolygon.from_vertices([(0, 0), (1, 0), (0, 1)])


def _points(*coords: tuple[float, float]) -> FeatureCollection:
    return FeatureCollection(
        features=tuple(
            Feature(id=i, geometry={"type": "Point", "coordinates": list(c)}) for i, c in enumerate(coords)
        )
    )


def _lines(*lines: list[tuple[float, float]]) -> FeatureCollection:
    return FeatureCollection(
        features=tuple(
            Feature(id=i, geometry={"type": "LineString", "coordinates": [list(c) for c in line]})
            for i, line in enumerate(lines)
        )
    )


def test_triangle_scenario_counts(triangle: BoundaryPolygon) -> None:
    points = _points(*[(0.05 * (i + 1), 0.1) for i in range(10)])
    lines = _lines(
        [(2, 2), (3, 3)],
        [(-1, -1), (-2, -0.5)],
        [(0.1, 0.1), (0.2, 0.2)],
        [(-0.5, 0.2), (0.5, 0.2)],
        [(-0.5, 0.3), (1.5, 0.3)],
    )

    clipped_points = clip_features(points, triangle, GeometryKind.POINT)
    clipped_lines = clip_features(lines, triangle, GeometryKind.LINE)

    assert clipped_points.count == 10
    assert clipped_lines.count <= 3
    assert sorted(f.id for f in clipped_lines.features) == [2, 3, 4]

    layer = LayerSpec(id="a", geometry_kind="point", stats_recipes=("count", "density"))
    assert calculate_layer_stats(clipped_points, layer, 100.0).count == 10


def test_clipping_is_idempotent(triangle: BoundaryPolygon) -> None:
    lines = _lines(
        [(-0.5, 0.2), (0.5, 0.2)],
        [(-0.5, 0.3), (1.5, 0.3)],
        [(0.1, 0.1), (0.2, 0.2)],
    )
    polygons = FeatureCollection(
        features=(
            Feature(
                id="sq",
                geometry={"type": "Polygon", "coordinates": [[[-0.5, -0.5], [0.5, -0.5], [0.5, 0.5], [-0.5, 0.5], [-0.5, -0.5]]]},
            ),
        )
    )

    once_lines = clip_features(lines, triangle, GeometryKind.LINE)
    once_polygons = clip_features(polygons, triangle, GeometryKind.POLYGON)

    assert clip_features(once_lines, triangle, GeometryKind.LINE) == once_lines
    assert clip_features(once_polygons, triangle, GeometryKind.POLYGON) == once_polygons


def test_crossing_line_is_truncated_to_inside_piece(triangle: BoundaryPolygon) -> None:
    clipped = clip_features(_lines([(-0.5, 0.2), (0.5, 0.2)]), triangle, GeometryKind.LINE)

    geom = shape(clipped.features[0].geometry)
    assert geom.geom_type == "LineString"
    assert geom.length == pytest.approx(0.5)
    assert min(x for x, _ in geom.coords) == pytest.approx(0.0)


def test_line_leaving_and_reentering_becomes_multilinestring(triangle: BoundaryPolygon) -> None:
    zigzag = [(-0.1, 0.1), (0.3, 0.1), (0.3, -0.1), (0.5, -0.1), (0.5, 0.1), (0.6, 0.1)]

    clipped = clip_features(_lines(zigzag), triangle, GeometryKind.LINE)

    geom = shape(clipped.features[0].geometry)
    assert geom.geom_type == "MultiLineString"
    assert len(geom.geoms) == 2
    assert geom.length == pytest.approx(0.6)


def test_points_inside_outside_and_on_edge(triangle: BoundaryPolygon) -> None:
    points = _points((0.2, 0.2), (1.0, 1.0), (0.5, 0.0))

    results = [clip_features(points, triangle, GeometryKind.POINT) for _ in range(3)]

    for clipped in results:
        assert [f.id for f in clipped.features] == [0, 2]


def test_polygon_is_intersected_and_source_untouched(triangle: BoundaryPolygon) -> None:
    square = [[-0.5, -0.5], [0.5, -0.5], [0.5, 0.5], [-0.5, 0.5], [-0.5, -0.5]]
    features = FeatureCollection(features=(Feature(id=1, geometry={"type": "Polygon", "coordinates": [square]}),))

    clipped = clip_features(features, triangle, GeometryKind.POLYGON)

    assert shape(clipped.features[0].geometry).area == pytest.approx(0.25)
    assert features.features[0].geometry == {"type": "Polygon", "coordinates": [square]}


def test_polygon_inside_is_returned_unchanged(triangle: BoundaryPolygon) -> None:
    inner = Feature(id=1, geometry={"type": "Polygon", "coordinates": [[[0.1, 0.1], [0.2, 0.1], [0.2, 0.2], [0.1, 0.1]]]})

    clipped = clip_features(FeatureCollection(features=(inner,)), triangle, GeometryKind.POLYGON)

    assert clipped.features == (inner,)


def test_polygon_outside_is_dropped(triangle: BoundaryPolygon) -> None:
    outside = Feature(id=1, geometry={"type": "Polygon", "coordinates": [[[2, 2], [3, 2], [3, 3], [2, 2]]]})

    assert clip_features(FeatureCollection(features=(outside,)), triangle, GeometryKind.POLYGON).count == 0


def test_malformed_features_are_skipped(triangle: BoundaryPolygon, caplog: pytest.LogCaptureFixture) -> None:
    features = FeatureCollection(
        features=(
            Feature(id="no-geometry"),
            Feature(id="wrong-type", geometry={"type": "LineString", "coordinates": [[0.1, 0.1], [0.2, 0.2]]}),
            Feature(id="ok", geometry={"type": "Point", "coordinates": [0.1, 0.1]}),
        )
    )

    with caplog.at_level("WARNING", logger="axoncity.geometry.clipper"):
        clipped = clip_features(features, triangle, GeometryKind.POINT)

    assert [f.id for f in clipped.features] == ["ok"]
    assert "no-geometry" in caplog.text
    assert "wrong-type" in caplog.text


def test_line_running_along_edge_keeps_only_inside_piece(triangle: BoundaryPolygon) -> None:
    line = _lines([(-0.5, 0), (0.5, 0), (0.5, 0.3)])

    clipped = clip_features(line, triangle, GeometryKind.LINE)

    assert clipped.count == 1
    geom = shape(clipped.features[0].geometry)
    assert geom.length == pytest.approx(0.3)
    assert geom.bounds == pytest.approx((0.5, 0.0, 0.5, 0.3))
