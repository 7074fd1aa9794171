"""
Geometry primitives for geofencing.

All functions are stateless and operate on (lat, lng) points in degrees.
"""

from .geomath import (
    GeoPoint,
    GeometryError,
    bearing,
    boolean_point_in_polygon,
    buffer,
    center,
    distance,
    line_string,
    point,
    point_to_line_distance,
    point_to_segment_distance,
)

__all__ = [
    "GeoPoint",
    "GeometryError",
    "bearing",
    "boolean_point_in_polygon",
    "buffer",
    "center",
    "distance",
    "line_string",
    "point",
    "point_to_line_distance",
    "point_to_segment_distance",
]
