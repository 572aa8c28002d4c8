from __future__ import annotations

import math

import pytest

from axoncity.metrics import (
    POI_CATEGORIES,
    calculate_delta,
    calculate_poi_metrics,
    calculate_shannon_index,
    compare_area_metrics,
    delta_indicator,
    interpret_coverage_score,
    interpret_diversity_index,
)
from axoncity.models import BoundaryPolygon, Feature, FeatureCollection, LayerData, LayerStats

_POLYGON = BoundaryPolygon.from_vertices([(0, 0), (1, 0), (0, 1)])


def _layer_data(layer_id: str, count: int) -> LayerData:
    features = FeatureCollection(
        features=tuple(Feature(id=i, geometry={"type": "Point", "coordinates": [0.1, 0.1]}) for i in range(count))
    )
    return LayerData(
        layer_id=layer_id,
        features=features,
        clipped_features=features,
        stats=LayerStats(count=count),
        polygon=_POLYGON,
    )


def test_shannon_index() -> None:
    assert calculate_shannon_index([]) == 0.0
    assert calculate_shannon_index([0, 0]) == 0.0
    assert calculate_shannon_index([7]) == 0.0
    assert calculate_shannon_index([1, 1]) == pytest.approx(math.log(2))
    assert calculate_shannon_index([3, 0, 1]) == pytest.approx(0.5623, abs=1e-4)


@pytest.mark.parametrize(
    ("index", "label"),
    [(0, "None"), (0.3, "Very Low"), (0.7, "Low"), (1.2, "Moderate"), (1.9, "High"), (2.5, "Very High")],
)
def test_interpret_diversity_index(index: float, label: str) -> None:
    assert interpret_diversity_index(index) == label


def test_interpret_coverage_score() -> None:
    assert interpret_coverage_score(100) == "Excellent"
    assert interpret_coverage_score(75) == "Good"
    assert interpret_coverage_score(50) == "Partial"
    assert interpret_coverage_score(12.5) == "Limited"


def test_poi_metrics_breakdown() -> None:
    layers = {"poi-food-drink": _layer_data("poi-food-drink", 3), "parks": _layer_data("parks", 1)}

    metrics = calculate_poi_metrics(layers, area_km2=2.0)

    assert metrics.total_count == 4
    assert metrics.density == 2.0
    assert len(metrics.category_breakdown) == len(POI_CATEGORIES)
    food = next(c for c in metrics.category_breakdown if c.id == "food")
    assert food.count == 3
    assert food.share == 75.0
    assert food.density == 1.5
    assert metrics.coverage_score == 25.0
    assert metrics.coverage_label == "Limited"
    assert metrics.diversity_label == "Low"


def test_poi_metrics_without_data() -> None:
    metrics = calculate_poi_metrics({}, area_km2=0.0)

    assert metrics.total_count == 0
    assert metrics.density == 0.0
    assert metrics.diversity_label == "None"
    assert all(c.share == 0.0 for c in metrics.category_breakdown)


def test_delta_and_indicator() -> None:
    assert calculate_delta(0, 0) == 0.0
    assert calculate_delta(5, 0) == 100.0
    assert calculate_delta(150, 100) == 50.0
    assert delta_indicator(50.0) == "▲"
    assert delta_indicator(100.0) == "▲▲"
    assert delta_indicator(-50.0) == "▼"
    assert delta_indicator(-60.0) == "▼▼"
    assert delta_indicator(5.0) == ""


def test_compare_area_metrics() -> None:
    a = calculate_poi_metrics({"poi-health": _layer_data("poi-health", 4)}, area_km2=1.0)
    b = calculate_poi_metrics({"poi-health": _layer_data("poi-health", 2)}, area_km2=1.0)

    comparisons = compare_area_metrics(a, b)

    assert [c.metric_id for c in comparisons] == ["total_count", "density", "diversity_index"]
    assert comparisons[0].values == (4, 2)
    assert comparisons[0].delta == 100.0
    assert comparisons[0].delta_indicator == "▲▲"
    assert comparisons[2].delta == 0.0
