"""Great-circle distance helpers."""
from __future__ import annotations

import math

EARTH_RADIUS_MILES = 3959.0


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the haversine distance in miles between two points given in degrees.

    Out-of-range or NaN inputs are not rejected; NaN simply propagates.
    """

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    if a > 1.0:  # rounding near antipodes
        a = 1.0
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


__all__ = ["EARTH_RADIUS_MILES", "haversine_miles"]
