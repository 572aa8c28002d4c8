"""Comparison metrics models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field

from axoncity.models._base import AxonBaseModel


class CategoryMetric(AxonBaseModel):
    """Count, density and share of one POI category within an area."""

    id: str
    name: str
    count: int = Field(ge=0)
    density: float = 0.0
    share: float = 0.0
    color: tuple[int, int, int]


class AreaMetrics(AxonBaseModel):
    """Amenity summary of one selection area.

    Parameters
    ----------
    total_count : int
        Features across all POI categories.
    density : float
        ``total_count`` per km².
    diversity_index : float
        Shannon index over category counts.
    coverage_score : float
        Percentage of categories with at least one feature.
    """

    total_count: int = Field(ge=0)
    density: float
    diversity_index: float
    diversity_label: str
    category_breakdown: tuple[CategoryMetric, ...] = ()
    coverage_score: float
    coverage_label: str
    area_km2: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MetricComparison(AxonBaseModel):
    """One metric compared between two areas (delta is relative to the second)."""

    metric_id: str
    metric_name: str
    values: tuple[float, float]
    delta: float
    delta_indicator: str
    unit: str
