"""Matching helpers: proximity checks and dashboard grouping."""

from .grouping import (
    GroupedProfiles,
    available_locations,
    group_profiles,
    matches_search,
    profiles_in_category,
)
from .proximity import DEFAULT_RADIUS_MILES, is_within_radius

__all__ = [
    "DEFAULT_RADIUS_MILES",
    "GroupedProfiles",
    "available_locations",
    "group_profiles",
    "is_within_radius",
    "matches_search",
    "profiles_in_category",
]
