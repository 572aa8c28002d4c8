"""Shapely-backed geometry helpers: clipping, measurement and drawing shapes."""

from axoncity.geometry.clipper import clip_features
from axoncity.geometry.measure import (
    bbox_from_polygon,
    boundary_shape,
    geodesic_area_m2,
    geodesic_length_m,
    polygon_area_km2,
)
from axoncity.geometry.shapes import circle_from_points, rectangle_from_points

__all__ = [
    "bbox_from_polygon",
    "boundary_shape",
    "circle_from_points",
    "clip_features",
    "geodesic_area_m2",
    "geodesic_length_m",
    "polygon_area_km2",
    "rectangle_from_points",
]
