#!/usr/bin/env python3
"""Fetch, clip and summarise OpenStreetMap layers for one polygon.

Usage
-----
Pass the polygon as ``lng,lat`` vertices (the ring is closed for you)::

    python scripts/fetch_area.py 13.40,52.52 13.41,52.52 13.41,52.53 13.40,52.53 \
        --layer parks --layer roads-primary

Options::

    --layer ID           Layer to fetch (repeatable; default: parks)
    --list-layers        Print the built-in layer ids and exit
    --share              Also print a share-link query for the area
    --output FILE        Write JSON to FILE instead of stdout
    --verbose            Enable debug logging

Environment variables ``AXON_*`` (see :class:`axoncity.AxonConfig`) tune
the endpoint, retries and pacing.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from axoncity import DEFAULT_LAYERS, AxonClient, AxonConfig, BoundaryPolygon  # noqa: E402


def _parse_vertex(text: str) -> tuple[float, float]:
    try:
        lng, lat = (float(part) for part in text.split(","))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected 'lng,lat', got {text!r}") from exc
    return lng, lat


def _progress(area_id: str, layer_id: str, completed: int, total: int) -> None:
    print(f"  [{completed}/{total}] {layer_id}", file=sys.stderr)


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Fetch OpenStreetMap layers for a polygon and print per-layer statistics.",
    )
    parser.add_argument("vertices", nargs="*", type=_parse_vertex, help="Polygon vertices as lng,lat")
    parser.add_argument("--layer", action="append", dest="layers", help="Layer id to fetch (repeatable)")
    parser.add_argument("--list-layers", action="store_true", help="Print available layer ids and exit")
    parser.add_argument("--share", action="store_true", help="Include a share-link query in the output")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if args.list_layers:
        for layer in DEFAULT_LAYERS:
            print(f"{layer.id:24} {layer.geometry_kind.value:8} {layer.name}")
        return

    if len(args.vertices) < 3:
        parser.error("at least three vertices are required")

    polygon = BoundaryPolygon.from_vertices(args.vertices)
    layer_ids = args.layers or ["parks"]
    config = AxonConfig.from_env()

    async with AxonClient(config, active_layers=layer_ids, on_progress=_progress) as client:
        client.start_drawing()
        for vertex in polygon.vertices:
            client.add_point(vertex)
        area_id = await client.complete_drawing()
        assert area_id is not None  # noqa: S101
        await client.wait_idle()

        snapshot = client.area_snapshot(area_id)
        result: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "area_km2": snapshot.area_km2,
            "polygon": polygon.to_geojson(),
            "layers": {
                layer_id: {
                    "raw_count": data.features.count,
                    "stats": data.stats.to_dict(),
                }
                for layer_id, data in snapshot.layers.items()
            },
            "metrics": client.area_metrics(area_id).to_dict(),
        }
        if args.share:
            min_lon, min_lat, max_lon, max_lat = polygon.bounds()
            result["share_query"] = client.share_query(((min_lon + max_lon) / 2, (min_lat + max_lat) / 2), 15)

    payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"JSON written to {args.output}", file=sys.stderr)
    else:
        print(payload)


if __name__ == "__main__":
    asyncio.run(main())
