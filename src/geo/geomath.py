"""
Geospatial helpers.

Lightweight implementations of the handful of geodesy operations needed for
geofencing: bearing, haversine distance, point-to-line distance,
point-in-polygon and circular buffers. All points are (lat, lng) in degrees.

Precision note: `point_to_segment_distance` works in the flat (lat, lng)
plane and scales by a fixed 111 km per degree. This is an approximation that
holds at city-block scale near the equator; error grows with latitude and
segment length. It is not a geodesic computation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import numpy as np


EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0

UNITS_KILOMETERS = "kilometers"
UNITS_METERS = "meters"


class GeometryError(ValueError):
    """Raised for geometric input that cannot be evaluated."""


@dataclass(frozen=True)
class GeoPoint:
    """A geographic point in degrees."""
    lat: float
    lng: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


PointLike = Union[GeoPoint, Tuple[float, float], Sequence[float]]


def point(coordinates: PointLike) -> GeoPoint:
    """Create a GeoPoint from a (lat, lng) pair."""
    if isinstance(coordinates, GeoPoint):
        return coordinates
    if len(coordinates) != 2:
        raise GeometryError(f"Expected (lat, lng) pair, got {coordinates!r}")
    return GeoPoint(lat=float(coordinates[0]), lng=float(coordinates[1]))


def line_string(coordinates: Sequence[PointLike]) -> List[GeoPoint]:
    """Create a polyline (list of GeoPoints) from (lat, lng) pairs."""
    return [point(c) for c in coordinates]


def _scale(km: float, units: str) -> float:
    if units == UNITS_METERS:
        return km * 1000
    if units == UNITS_KILOMETERS:
        return km
    raise GeometryError(f"Unknown distance units: {units}")


def bearing(start: PointLike, end: PointLike) -> float:
    """
    Initial compass bearing from start to end.

    Returns:
        Bearing in degrees in [0, 360). Coincident points give 0.
    """
    start, end = point(start), point(end)
    lat1 = math.radians(start.lat)
    lat2 = math.radians(end.lat)
    d_lng = math.radians(end.lng - start.lng)

    y = math.sin(d_lng) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lng)

    return (math.degrees(math.atan2(y, x)) + 360) % 360


def distance(frm: PointLike, to: PointLike, units: str = UNITS_KILOMETERS) -> float:
    """Haversine great-circle distance in kilometers or meters."""
    frm, to = point(frm), point(to)
    lat1 = math.radians(frm.lat)
    lat2 = math.radians(to.lat)
    d_lat = math.radians(to.lat - frm.lat)
    d_lng = math.radians(to.lng - frm.lng)

    a = (math.sin(d_lat / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2)
    # Rounding can push a just outside [0, 1] for near-antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return _scale(EARTH_RADIUS_KM * c, units)


def point_to_segment_distance(pt: PointLike, start: PointLike, end: PointLike) -> float:
    """
    Planar distance from a point to a segment, in kilometers.

    Projects onto the segment in (lat, lng) space and clamps to the endpoints.
    A zero-length segment degrades to the distance to `start`.
    """
    pt, start, end = point(pt), point(start), point(end)
    a = pt.lat - start.lat
    b = pt.lng - start.lng
    c = end.lat - start.lat
    d = end.lng - start.lng

    len_sq = c * c + d * d
    param = (a * c + b * d) / len_sq if len_sq != 0 else -1.0

    if param < 0:
        xx, yy = start.lat, start.lng
    elif param > 1:
        xx, yy = end.lat, end.lng
    else:
        xx, yy = start.lat + param * c, start.lng + param * d

    return math.hypot(pt.lat - xx, pt.lng - yy) * KM_PER_DEGREE


def point_to_line_distance(
    pt: PointLike,
    line: Sequence[PointLike],
    units: str = UNITS_METERS,
) -> float:
    """
    Minimum distance from a point to a polyline.

    Raises:
        GeometryError: If the line has fewer than two vertices.
    """
    vertices = line_string(line)
    if len(vertices) < 2:
        raise GeometryError("A line needs at least two vertices")

    min_distance = min(
        point_to_segment_distance(pt, vertices[i], vertices[i + 1])
        for i in range(len(vertices) - 1)
    )
    return _scale(min_distance, units)


def boolean_point_in_polygon(pt: PointLike, polygon: Sequence[PointLike]) -> bool:
    """
    Ray-casting point-in-polygon test.

    Correct for simple (non self-intersecting) polygons. The ring may be open
    or closed. Points exactly on an edge may fall either way.
    """
    pt = point(pt)
    ring = line_string(polygon)
    x, y = pt.lat, pt.lng
    inside = False

    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i].lat, ring[i].lng
        xj, yj = ring[j].lat, ring[j].lng
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside


def center(points: Sequence[PointLike]) -> GeoPoint:
    """Arithmetic centroid of a set of points."""
    pts = line_string(points)
    if not pts:
        raise GeometryError("Cannot compute the center of no points")
    return GeoPoint(
        lat=sum(p.lat for p in pts) / len(pts),
        lng=sum(p.lng for p in pts) / len(pts),
    )


def buffer(pt: PointLike, radius_km: float, steps: int = 32) -> List[GeoPoint]:
    """
    Approximate a circle of `radius_km` around a point.

    Uses a flat-earth conversion with longitude scaled by cos(lat).

    Returns:
        `steps` points, counter-clockwise starting due east.
    """
    pt = point(pt)
    angles = np.arange(steps) / steps * 2 * np.pi
    dx = radius_km * np.cos(angles)
    dy = radius_km * np.sin(angles)

    lats = pt.lat + np.degrees(dy / EARTH_RADIUS_KM)
    lngs = pt.lng + np.degrees(dx / EARTH_RADIUS_KM) / math.cos(math.radians(pt.lat))

    return [GeoPoint(lat=float(lat), lng=float(lng)) for lat, lng in zip(lats, lngs)]
