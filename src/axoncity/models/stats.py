"""Per-layer statistics and cache entry models."""

from __future__ import annotations

from pydantic import Field

from axoncity.models._base import AxonBaseModel
from axoncity.models.feature import FeatureCollection
from axoncity.models.polygon import BoundaryPolygon


class LayerStats(AxonBaseModel):
    """Numeric summary of one clipped layer.

    Optional fields are ``None`` when the layer did not request them or
    when they are undefined (e.g. density over a zero-area region).

    Parameters
    ----------
    count : int
        Number of clipped features.
    density : float or None
        Features per km².
    total_length : float or None
        Sum of geodesic line lengths in metres.
    total_area : float or None
        Sum of geodesic polygon areas in m².
    area_share : float or None
        ``total_area`` as a percentage of the selection area.
    """

    count: int = Field(ge=0)
    density: float | None = None
    total_length: float | None = None
    total_area: float | None = None
    area_share: float | None = None


class LayerData(AxonBaseModel):
    """Cache entry for one (area, layer) pair.

    ``polygon`` is the boundary the fetch targeted; the entry is only
    valid while it equals the area's current polygon.
    """

    layer_id: str
    features: FeatureCollection
    clipped_features: FeatureCollection
    stats: LayerStats
    polygon: BoundaryPolygon
