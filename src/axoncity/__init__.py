"""axoncity - Async toolkit for fetching, clipping and comparing OpenStreetMap layers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("axoncity")
except PackageNotFoundError:
    __version__ = "0+local"
from axoncity.client import AxonClient
from axoncity.config import AxonConfig
from axoncity.coordinator import FetchCoordinator
from axoncity.editor import BoundaryEditor, DrawMode, EditorState, PolygonEdit
from axoncity.exceptions import (
    AreaNotFoundError,
    AxonConfigError,
    AxonError,
    CapacityError,
    EditorStateError,
    FatalProviderError,
    FetchCancelled,
    GatewayTimeoutError,
    GeometryError,
    InvalidPolygonError,
    ProviderError,
    RateLimitedError,
    TransientProviderError,
)
from axoncity.layers import DEFAULT_LAYERS
from axoncity.models import (
    AreaMetrics,
    AreaSnapshot,
    BoundaryPolygon,
    Feature,
    FeatureCollection,
    GeometryKind,
    LayerData,
    LayerSpec,
    LayerStats,
    ShareableState,
    StatsRecipe,
)
from axoncity.state.store import AreaStore

__all__ = [
    "__version__",
    "AreaMetrics",
    "AreaNotFoundError",
    "AreaSnapshot",
    "AreaStore",
    "AxonClient",
    "AxonConfig",
    "AxonConfigError",
    "AxonError",
    "BoundaryEditor",
    "BoundaryPolygon",
    "CapacityError",
    "DEFAULT_LAYERS",
    "DrawMode",
    "EditorState",
    "EditorStateError",
    "FatalProviderError",
    "Feature",
    "FeatureCollection",
    "FetchCancelled",
    "FetchCoordinator",
    "GatewayTimeoutError",
    "GeometryError",
    "GeometryKind",
    "InvalidPolygonError",
    "LayerData",
    "LayerSpec",
    "LayerStats",
    "PolygonEdit",
    "ProviderError",
    "RateLimitedError",
    "ShareableState",
    "StatsRecipe",
    "TransientProviderError",
]
