"""Radius checks between a viewer and candidate profiles."""
from __future__ import annotations

from typing import Optional

from hobbyme.core.entities import Coordinates, Profile
from hobbyme.infrastructure.geo.distance import haversine_miles

DEFAULT_RADIUS_MILES = 50.0


def is_within_radius(
    reference: Optional[Coordinates],
    profile: Profile,
    radius_miles: float = DEFAULT_RADIUS_MILES,
) -> bool:
    """Return True when ``profile`` lies within ``radius_miles`` of ``reference``.

    Profiles without coordinates, or a missing reference point, are never
    considered close.
    """

    target = profile.coordinates
    if reference is None or target is None:
        return False

    distance = haversine_miles(
        reference.latitude,
        reference.longitude,
        target.latitude,
        target.longitude,
    )
    return distance <= radius_miles


__all__ = ["DEFAULT_RADIUS_MILES", "is_within_radius"]
