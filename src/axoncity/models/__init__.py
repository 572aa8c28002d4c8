"""Data models for areas, layers, features and share links."""

from axoncity.models._base import AxonBaseModel, Coordinate, GeometryKind, StatsRecipe
from axoncity.models.area import AreaSnapshot, SelectionArea
from axoncity.models.feature import Feature, FeatureCollection
from axoncity.models.layer import LayerSpec
from axoncity.models.metrics import AreaMetrics, CategoryMetric, MetricComparison
from axoncity.models.polygon import MIN_RING_POINTS, BoundaryPolygon
from axoncity.models.share import EncodedArea, ShareableState
from axoncity.models.stats import LayerData, LayerStats

__all__ = [
    "AreaMetrics",
    "AreaSnapshot",
    "AxonBaseModel",
    "BoundaryPolygon",
    "CategoryMetric",
    "Coordinate",
    "EncodedArea",
    "Feature",
    "FeatureCollection",
    "GeometryKind",
    "LayerData",
    "LayerSpec",
    "LayerStats",
    "MIN_RING_POINTS",
    "MetricComparison",
    "SelectionArea",
    "ShareableState",
    "StatsRecipe",
]
