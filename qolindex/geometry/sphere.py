"""Spherical area and length of lon/lat polygons.

Uses the mean Earth radius with the spherical-excess ring area and haversine
segment lengths, which is accurate enough for flagging implausible country
shapes.
"""
from __future__ import annotations

import math
from typing import Sequence

EARTH_RADIUS_M = 6_371_008.8

Ring = Sequence[Sequence[float]]


def ring_area(ring: Ring, radius: float = EARTH_RADIUS_M) -> float:
    """Signed area of a ring in square metres. The ring need not be closed."""
    n = len(ring)
    if n < 3:
        return 0.0
    total = 0.0
    x1, y1 = ring[-1][0], ring[-1][1]
    for point in ring:
        x2, y2 = point[0], point[1]
        total += math.radians(x2 - x1) * (2 + math.sin(math.radians(y1)) + math.sin(math.radians(y2)))
        x1, y1 = x2, y2
    return total * radius * radius / 2.0


def haversine(a: Sequence[float], b: Sequence[float], radius: float = EARTH_RADIUS_M) -> float:
    """Great-circle distance in metres between two lon/lat points."""
    lat1, lat2 = math.radians(a[1]), math.radians(b[1])
    dlat = lat2 - lat1
    dlon = math.radians(b[0] - a[0])
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * radius * math.asin(math.sqrt(min(1.0, h)))


def ring_length(ring: Ring, radius: float = EARTH_RADIUS_M) -> float:
    return sum(haversine(ring[i - 1], ring[i], radius) for i in range(1, len(ring)))


def polygon_area(rings: Sequence[Ring], radius: float = EARTH_RADIUS_M) -> float:
    """Exterior ring area minus the area of its holes."""
    if not rings:
        return 0.0
    area = abs(ring_area(rings[0], radius))
    for hole in rings[1:]:
        area -= abs(ring_area(hole, radius))
    return area


def _polygons(geometry: dict) -> list[Sequence[Ring]]:
    if geometry["type"] == "Polygon":
        return [geometry["coordinates"]]
    if geometry["type"] == "MultiPolygon":
        return list(geometry["coordinates"])
    raise ValueError(f"Unsupported geometry type: {geometry['type']}")


def geometry_area(geometry: dict, radius: float = EARTH_RADIUS_M) -> float:
    """Area in square metres of a GeoJSON Polygon or MultiPolygon."""
    return sum(polygon_area(rings, radius) for rings in _polygons(geometry))


def geometry_length(geometry: dict, radius: float = EARTH_RADIUS_M) -> float:
    """Total length in metres of every ring of a GeoJSON Polygon or MultiPolygon."""
    return sum(ring_length(ring, radius) for rings in _polygons(geometry) for ring in rings)
