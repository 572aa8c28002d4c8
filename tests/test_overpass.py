from __future__ import annotations

from axoncity._api.overpass import (
    build_overpass_query,
    element_to_feature,
    elements_to_features,
    format_bbox,
    split_query_parts,
)
from axoncity.layers import DEFAULT_LAYERS, layer_index
from axoncity.models import GeometryKind, LayerSpec


def test_split_respects_quoted_alternations() -> None:
    parts = split_query_parts('node["amenity"~"cafe|bar"]|way["amenity"~"cafe|bar"]')

    assert parts == ['node["amenity"~"cafe|bar"]', 'way["amenity"~"cafe|bar"]']


def test_split_drops_empty_parts() -> None:
    assert split_query_parts(' node["shop"] || ') == ['node["shop"]']


def test_bbox_is_south_west_north_east() -> None:
    assert format_bbox((13.1, 52.4, 13.2, 52.5)) == "52.4,13.1,52.5,13.2"


def test_query_for_line_layer_requests_geometry() -> None:
    layer = LayerSpec(id="roads", geometry_kind="line", query='way["highway"="primary"]|way["highway"="trunk"]')

    query = build_overpass_query(layer, (13.1, 52.4, 13.2, 52.5))

    assert query == (
        "[out:json][timeout:30];\n"
        "(\n"
        '  way["highway"="primary"](52.4,13.1,52.5,13.2);\n'
        '  way["highway"="trunk"](52.4,13.1,52.5,13.2);\n'
        ");\n"
        "out body geom;\n"
    )


def test_query_for_point_layer_skips_unknown_parts() -> None:
    layer = LayerSpec(id="shops", geometry_kind="point", query='node["shop"]|area["x"]')

    query = build_overpass_query(layer, (0, 0, 1, 1))

    assert 'node["shop"](0,0,1,1);' in query
    assert "area" not in query
    assert query.endswith("out body;\n")


def test_node_becomes_point_feature() -> None:
    feature = element_to_feature(
        {"type": "node", "id": 42, "lat": 52.5, "lon": 13.4, "tags": {"amenity": "cafe"}},
        GeometryKind.POINT,
    )

    assert feature is not None
    assert feature.id == 42
    assert feature.geometry == {"type": "Point", "coordinates": [13.4, 52.5]}
    assert feature.properties == {"id": 42, "type": "node", "amenity": "cafe"}


def test_open_way_is_closed_for_polygon_layers() -> None:
    element = {
        "type": "way",
        "id": 7,
        "geometry": [{"lat": 0, "lon": 0}, {"lat": 0, "lon": 1}, {"lat": 1, "lon": 1}],
    }

    feature = element_to_feature(element, GeometryKind.POLYGON)

    assert feature is not None
    assert feature.geometry == {"type": "Polygon", "coordinates": [[[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 0.0]]]}


def test_elements_that_do_not_fit_are_dropped() -> None:
    layer = LayerSpec(id="roads", geometry_kind="line")
    payload = {
        "elements": [
            {"type": "node", "id": 1, "lat": 0, "lon": 0},
            {"type": "way", "id": 2, "geometry": [{"lat": 0, "lon": 0}]},
            {"type": "way", "id": 3, "geometry": [{"lat": 0, "lon": 0}, {"lat": 1, "lon": "x"}, {"lat": 1, "lon": 1}]},
            "garbage",
        ]
    }

    features = elements_to_features(payload, layer)

    assert [f.id for f in features.features] == [3]
    assert features.features[0].geometry == {"type": "LineString", "coordinates": [[0.0, 0.0], [1.0, 1.0]]}


def test_payload_without_elements_is_empty() -> None:
    layer = LayerSpec(id="roads", geometry_kind="line")

    assert elements_to_features({"remark": "runtime error"}, layer).count == 0


def test_default_layers_have_unique_ids_and_build_queries() -> None:
    index = layer_index(DEFAULT_LAYERS)

    assert len(index) == len(DEFAULT_LAYERS)
    for layer in DEFAULT_LAYERS:
        query = build_overpass_query(layer, (0, 0, 1, 1))
        assert "(0,0,1,1);" in query
