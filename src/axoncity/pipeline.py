"""Turn raw provider features into a cache entry."""

from __future__ import annotations

from axoncity.geometry.clipper import clip_features
from axoncity.models.feature import FeatureCollection
from axoncity.models.layer import LayerSpec
from axoncity.models.polygon import BoundaryPolygon
from axoncity.models.stats import LayerData
from axoncity.stats import calculate_layer_stats


def build_layer_data(
    layer: LayerSpec,
    features: FeatureCollection,
    polygon: BoundaryPolygon,
    area_km2: float,
) -> LayerData:
    """Clip *features* to *polygon*, compute stats and tag the entry with *polygon*."""
    clipped = clip_features(features, polygon, layer.geometry_kind)
    return LayerData(
        layer_id=layer.id,
        features=features,
        clipped_features=clipped,
        stats=calculate_layer_stats(clipped, layer, area_km2),
        polygon=polygon,
    )
