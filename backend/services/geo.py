"""Small distance helpers shared by the spatial stores.

Ordering and POI thresholds use `planar_distance` (raw coordinate degrees).
`distance_meters` is only attached for display.
"""

from __future__ import annotations

import math

EARTH_MILES_PER_DEGREE = 60 * 1.1515
METERS_PER_MILE = 1609.344


def planar_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Euclidean distance between two points in coordinate-degree space."""
    return math.hypot(lat1 - lat2, lon1 - lon2)


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters (spherical law of cosines)."""
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    theta = math.radians(lon1 - lon2)
    cos_angle = (
        math.sin(math.radians(lat1)) * math.sin(math.radians(lat2))
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.cos(theta)
    )
    # Rounding can push nearly identical points just above 1.0
    angle = math.degrees(math.acos(max(-1.0, min(1.0, cos_angle))))
    return angle * EARTH_MILES_PER_DEGREE * METERS_PER_MILE
