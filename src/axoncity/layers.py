"""Default layer catalogue.

The definitions use the camelCase manifest keys (``geometryType``,
``osmQuery``, ``statsRecipes``) and are validated into :class:`LayerSpec`
objects at import time.
"""

from __future__ import annotations

from collections.abc import Iterable

from axoncity.models.layer import LayerSpec

_BUILDING_TYPES_RESIDENTIAL = "residential|house|apartments|detached|semidetached_house|terrace|dormitory"
_BUILDING_TYPES_COMMERCIAL = "commercial|retail|office|supermarket|hotel|mall"
_BUILDING_TYPES_INDUSTRIAL = "industrial|warehouse|factory|manufacture"

_MANIFEST: list[dict[str, object]] = [
    # Land use
    {
        "id": "buildings-residential",
        "name": "Residential Buildings",
        "group": "usage",
        "geometryType": "polygon",
        "osmQuery": f'way["building"~"{_BUILDING_TYPES_RESIDENTIAL}"]',
        "statsRecipes": ["count", "area", "density"],
    },
    {
        "id": "buildings-commercial",
        "name": "Commercial Buildings",
        "group": "usage",
        "geometryType": "polygon",
        "osmQuery": f'way["building"~"{_BUILDING_TYPES_COMMERCIAL}"]',
        "statsRecipes": ["count", "area", "density"],
    },
    {
        "id": "buildings-industrial",
        "name": "Industrial Buildings",
        "group": "usage",
        "geometryType": "polygon",
        "osmQuery": f'way["building"~"{_BUILDING_TYPES_INDUSTRIAL}"]',
        "statsRecipes": ["count", "area", "density"],
    },
    {
        "id": "buildings-other",
        "name": "Other Buildings",
        "group": "usage",
        "geometryType": "polygon",
        "osmQuery": (
            'way["building"]["building"!~"'
            f'{_BUILDING_TYPES_RESIDENTIAL}|{_BUILDING_TYPES_COMMERCIAL}|{_BUILDING_TYPES_INDUSTRIAL}"]'
        ),
        "statsRecipes": ["count", "area", "density"],
    },
    # Infrastructure
    {
        "id": "roads-primary",
        "name": "Primary Roads",
        "group": "infrastructure",
        "geometryType": "line",
        "osmQuery": 'way["highway"~"primary|secondary"]',
        "statsRecipes": ["length", "count"],
    },
    {
        "id": "roads-residential",
        "name": "Residential Roads",
        "group": "infrastructure",
        "geometryType": "line",
        "osmQuery": 'way["highway"~"residential|tertiary"]',
        "statsRecipes": ["length", "count"],
    },
    {
        "id": "bike-lanes",
        "name": "Bike Lanes",
        "group": "infrastructure",
        "geometryType": "line",
        "osmQuery": 'way["highway"="cycleway"]|way["cycleway"~"lane|track|shared_lane"]|way["bicycle"="designated"]',
        "statsRecipes": ["length", "density"],
    },
    {
        "id": "crosswalks",
        "name": "Crosswalks",
        "group": "infrastructure",
        "geometryType": "point",
        "osmQuery": 'node["highway"="crossing"]|node["crossing"]|node["crossing:markings"]',
        "statsRecipes": ["count", "density"],
    },
    # Access & transit
    {
        "id": "transit-stops",
        "name": "Transit Stops",
        "group": "access",
        "geometryType": "point",
        "osmQuery": 'node["public_transport"="stop_position"]|node["highway"="bus_stop"]',
        "statsRecipes": ["count", "density"],
    },
    {
        "id": "rail-lines",
        "name": "Rail Lines",
        "group": "access",
        "geometryType": "line",
        "osmQuery": 'way["railway"~"rail|light_rail|subway|tram|narrow_gauge"]',
        "statsRecipes": ["length"],
    },
    {
        "id": "parking",
        "name": "Parking",
        "group": "access",
        "geometryType": "polygon",
        "osmQuery": (
            'way["amenity"="parking"]|relation["amenity"="parking"]'
            '|way["parking"~"surface|underground|multi-storey"]'
        ),
        "statsRecipes": ["count", "area"],
    },
    # Traffic control
    {
        "id": "traffic-signals",
        "name": "Traffic Signals",
        "group": "traffic",
        "geometryType": "point",
        "osmQuery": 'node["highway"="traffic_signals"]',
        "statsRecipes": ["count", "density"],
    },
    # Environment
    {
        "id": "parks",
        "name": "Parks & Green Space",
        "group": "environment",
        "geometryType": "polygon",
        "osmQuery": 'way["leisure"="park"]|way["landuse"="grass"]',
        "statsRecipes": ["area", "area_share", "count"],
    },
    {
        "id": "water",
        "name": "Water Bodies",
        "group": "environment",
        "geometryType": "polygon",
        "osmQuery": (
            'way["natural"="water"]|relation["natural"="water"]|way["waterway"="riverbank"]'
            '|way["water"]|relation["water"]|way["landuse"="reservoir"]'
        ),
        "statsRecipes": ["area", "area_share"],
    },
    {
        "id": "trees",
        "name": "Trees",
        "group": "environment",
        "geometryType": "point",
        "osmQuery": 'node["natural"="tree"]',
        "statsRecipes": ["count", "density"],
    },
    # Amenities
    {
        "id": "poi-food-drink",
        "name": "Food & Drink",
        "group": "amenities",
        "geometryType": "point",
        "osmQuery": 'node["amenity"~"restaurant|cafe|bar|fast_food"]|way["amenity"~"restaurant|cafe|bar|fast_food"]',
        "statsRecipes": ["count", "density"],
    },
    {
        "id": "poi-shopping",
        "name": "Shopping",
        "group": "amenities",
        "geometryType": "point",
        "osmQuery": 'node["shop"]|way["shop"]',
        "statsRecipes": ["count", "density"],
    },
    {
        "id": "poi-grocery",
        "name": "Grocery",
        "group": "amenities",
        "geometryType": "point",
        "osmQuery": (
            'node["shop"~"supermarket|grocery|convenience"]|way["shop"~"supermarket|grocery|convenience"]'
        ),
        "statsRecipes": ["count", "density"],
    },
    {
        "id": "poi-health",
        "name": "Healthcare",
        "group": "amenities",
        "geometryType": "point",
        "osmQuery": (
            'node["amenity"~"hospital|clinic|pharmacy|doctors"]|way["amenity"~"hospital|clinic|pharmacy|doctors"]'
        ),
        "statsRecipes": ["count", "density"],
    },
    {
        "id": "poi-education",
        "name": "Education",
        "group": "amenities",
        "geometryType": "point",
        "osmQuery": (
            'node["amenity"~"school|university|college|kindergarten"]'
            '|way["amenity"~"school|university|college|kindergarten"]'
        ),
        "statsRecipes": ["count", "density"],
    },
    {
        "id": "poi-bike-parking",
        "name": "Bike Parking",
        "group": "amenities",
        "geometryType": "point",
        "osmQuery": 'node["amenity"="bicycle_parking"]|way["amenity"="bicycle_parking"]',
        "statsRecipes": ["count", "density"],
    },
    {
        "id": "poi-bike-shops",
        "name": "Bike Shops & Rental",
        "group": "amenities",
        "geometryType": "point",
        "osmQuery": (
            'node["shop"="bicycle"]|way["shop"="bicycle"]'
            '|node["amenity"="bicycle_rental"]|way["amenity"="bicycle_rental"]'
        ),
        "statsRecipes": ["count", "density"],
    },
]

DEFAULT_LAYERS: tuple[LayerSpec, ...] = tuple(LayerSpec.model_validate(entry) for entry in _MANIFEST)


def layer_index(layers: Iterable[LayerSpec]) -> dict[str, LayerSpec]:
    """Map layer ids to specs, rejecting duplicates."""
    index: dict[str, LayerSpec] = {}
    for layer in layers:
        if layer.id in index:
            raise ValueError(f"duplicate layer id: {layer.id}")
        index[layer.id] = layer
    return index


def layers_by_group(group: str, layers: Iterable[LayerSpec] = DEFAULT_LAYERS) -> list[LayerSpec]:
    return [layer for layer in layers if layer.group == group]
