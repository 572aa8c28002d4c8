"""Per-layer statistics over clipped features."""

from __future__ import annotations

import logging

from shapely.errors import GEOSException

from axoncity.exceptions import GeometryError
from axoncity.geometry.measure import feature_shape, geodesic_area_m2, geodesic_length_m, polygon_area_km2
from axoncity.models._base import GeometryKind, StatsRecipe
from axoncity.models.feature import FeatureCollection
from axoncity.models.layer import LayerSpec
from axoncity.models.stats import LayerStats

_logger = logging.getLogger(__name__)

__all__ = ["calculate_layer_stats", "polygon_area_km2"]


def _total_length(clipped: FeatureCollection) -> float:
    total = 0.0
    for feature in clipped.features:
        try:
            total += geodesic_length_m(feature_shape(feature, ("LineString", "MultiLineString")))
        except (GeometryError, GEOSException, ValueError):
            _logger.debug("Skipping feature %s in length total", feature.id, exc_info=True)
    return total


def _total_area(clipped: FeatureCollection) -> float:
    total = 0.0
    for feature in clipped.features:
        try:
            total += geodesic_area_m2(feature_shape(feature, ("Polygon", "MultiPolygon")))
        except (GeometryError, GEOSException, ValueError):
            _logger.debug("Skipping feature %s in area total", feature.id, exc_info=True)
    return total


def calculate_layer_stats(clipped: FeatureCollection, layer: LayerSpec, area_km2: float) -> LayerStats:
    """Compute the statistics *layer* asks for.

    Parameters
    ----------
    clipped : FeatureCollection
        Features already clipped to the selection area.
    layer : LayerSpec
        Layer definition; its ``stats_recipes`` and ``geometry_kind``
        decide which fields are filled.
    area_km2 : float
        Geodesic area of the selection. Ratios are left unset when it is
        not positive.
    """
    count = clipped.count
    density: float | None = None
    total_length: float | None = None
    total_area: float | None = None
    area_share: float | None = None

    if layer.wants(StatsRecipe.DENSITY) and area_km2 > 0:
        density = count / area_km2

    if layer.wants(StatsRecipe.LENGTH) and layer.geometry_kind == GeometryKind.LINE:
        total_length = _total_length(clipped)

    if (layer.wants(StatsRecipe.AREA) or layer.wants(StatsRecipe.AREA_SHARE)) and (
        layer.geometry_kind == GeometryKind.POLYGON
    ):
        total_area = _total_area(clipped)
        if layer.wants(StatsRecipe.AREA_SHARE) and area_km2 > 0:
            area_share = total_area / (area_km2 * 1_000_000) * 100

    return LayerStats(
        count=count,
        density=density,
        total_length=total_length,
        total_area=total_area,
        area_share=area_share,
    )
