"""Amenity metrics for comparing selection areas."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from axoncity.models.area import AreaSnapshot
from axoncity.models.metrics import AreaMetrics, CategoryMetric, MetricComparison
from axoncity.models.stats import LayerData


@dataclass(frozen=True, slots=True)
class PoiCategory:
    id: str
    name: str
    layer_ids: tuple[str, ...]
    color: tuple[int, int, int]


POI_CATEGORIES: tuple[PoiCategory, ...] = (
    PoiCategory("food", "Food & Dining", ("poi-food-drink",), (255, 87, 51)),
    PoiCategory("shopping", "Retail & Shopping", ("poi-shopping",), (255, 195, 0)),
    PoiCategory("grocery", "Grocery & Convenience", ("poi-grocery",), (76, 175, 80)),
    PoiCategory("health", "Healthcare", ("poi-health",), (244, 67, 54)),
    PoiCategory("education", "Education", ("poi-education",), (103, 58, 183)),
    PoiCategory("bike", "Cycling Infrastructure", ("poi-bike-parking", "poi-bike-shops", "bike-lanes"), (0, 188, 212)),
    PoiCategory("transit", "Public Transit", ("transit-stops", "rail-lines"), (0, 128, 255)),
    PoiCategory("green", "Green Space", ("parks", "trees"), (34, 139, 34)),
)


def calculate_shannon_index(counts: Sequence[int]) -> float:
    """Shannon diversity ``H = -sum(p * ln p)`` over non-zero counts (0 for no data)."""
    total = sum(counts)
    if total == 0:
        return 0.0
    entropy = 0.0
    for count in counts:
        if count > 0:
            proportion = count / total
            entropy -= proportion * math.log(proportion)
    return entropy


def interpret_diversity_index(index: float) -> str:
    if index == 0:
        return "None"
    if index < 0.5:
        return "Very Low"
    if index < 1.0:
        return "Low"
    if index < 1.5:
        return "Moderate"
    if index < 2.0:
        return "High"
    return "Very High"


def calculate_coverage_score(breakdown: Sequence[CategoryMetric]) -> float:
    """Percentage of categories that have at least one feature."""
    if not breakdown:
        return 0.0
    present = sum(1 for category in breakdown if category.count > 0)
    return present / len(breakdown) * 100


def interpret_coverage_score(score: float) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Partial"
    return "Limited"


def _count_from_layers(layers: Mapping[str, LayerData], layer_ids: Sequence[str]) -> int:
    return sum(layers[layer_id].clipped_features.count for layer_id in layer_ids if layer_id in layers)


def calculate_poi_metrics(layers: Mapping[str, LayerData], area_km2: float) -> AreaMetrics:
    """Break clipped layer counts down into POI categories.

    Parameters
    ----------
    layers : mapping of str to LayerData
        Cached layers of one area; layers that were never fetched count
        as zero.
    area_km2 : float
        Selection area used for densities.
    """
    counts = [_count_from_layers(layers, category.layer_ids) for category in POI_CATEGORIES]
    total = sum(counts)

    breakdown = tuple(
        CategoryMetric(
            id=category.id,
            name=category.name,
            count=count,
            density=count / area_km2 if area_km2 > 0 else 0.0,
            share=count / total * 100 if total > 0 else 0.0,
            color=category.color,
        )
        for category, count in zip(POI_CATEGORIES, counts, strict=True)
    )

    diversity = calculate_shannon_index(counts)
    coverage = calculate_coverage_score(breakdown)
    return AreaMetrics(
        total_count=total,
        density=total / area_km2 if area_km2 > 0 else 0.0,
        diversity_index=diversity,
        diversity_label=interpret_diversity_index(diversity),
        category_breakdown=breakdown,
        coverage_score=coverage,
        coverage_label=interpret_coverage_score(coverage),
        area_km2=area_km2,
    )


def calculate_area_metrics(area: AreaSnapshot) -> AreaMetrics:
    return calculate_poi_metrics(area.layers, area.area_km2)


def calculate_delta(value_a: float, value_b: float) -> float:
    """Percentage change of *value_a* relative to *value_b*.

    A zero baseline yields 100 when *value_a* is positive, else 0.
    """
    if value_b == 0:
        return 100.0 if value_a > 0 else 0.0
    return (value_a - value_b) / value_b * 100


def delta_indicator(delta: float) -> str:
    if delta > 50:
        return "▲▲"
    if delta > 10:
        return "▲"
    if delta < -50:
        return "▼▼"
    if delta < -10:
        return "▼"
    return ""


def _compare(metric_id: str, name: str, a: float, b: float, unit: str) -> MetricComparison:
    delta = calculate_delta(a, b)
    return MetricComparison(
        metric_id=metric_id,
        metric_name=name,
        values=(a, b),
        delta=delta,
        delta_indicator=delta_indicator(delta),
        unit=unit,
    )


def compare_area_metrics(metrics_a: AreaMetrics, metrics_b: AreaMetrics) -> list[MetricComparison]:
    """Compare total count, density and diversity of two areas."""
    return [
        _compare("total_count", "Total POIs", metrics_a.total_count, metrics_b.total_count, "count"),
        _compare("density", "POI Density", metrics_a.density, metrics_b.density, "per km²"),
        _compare(
            "diversity_index", "Diversity Index", metrics_a.diversity_index, metrics_b.diversity_index, "index"
        ),
    ]
