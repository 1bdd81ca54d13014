"""Group candidate profiles by hobby (indoor) or by location (outdoor)."""
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from hobbyme.core.entities import (
    OUTDOOR,
    Coordinates,
    Profile,
    normalise_category,
    same_category,
)
from hobbyme.infrastructure.matching.proximity import DEFAULT_RADIUS_MILES, is_within_radius
from hobbyme.utils.logger import logger

GroupedProfiles = dict[str, list[Profile]]


def matches_search(profile: Profile, search_term: str) -> bool:
    """Case-insensitive match against name, username and every hobby name.

    Hobbies of all categories are searched, not only the selected one.
    """

    if not search_term:
        return True

    needle = search_term.lower()
    if needle in (profile.full_name or "").lower():
        return True
    if needle in (profile.username or "").lower():
        return True
    return any(needle in membership.hobby.name.lower() for membership in profile.memberships)


def group_profiles(
    candidates: Sequence[Profile],
    *,
    category: str,
    viewer_coordinates: Optional[Coordinates] = None,
    search_term: str = "",
    location_filter: str = "",
    radius_miles: float = DEFAULT_RADIUS_MILES,
) -> GroupedProfiles:
    """Bucket ``candidates`` for the dashboard.

    Indoor buckets are keyed by hobby name, so a profile shows up once per
    matching hobby. Outdoor buckets are keyed by the profile's location label
    and only hold profiles within ``radius_miles`` of the viewer; the location
    filter there is an exact, case-sensitive comparison.
    """

    selected = normalise_category(category)
    outdoor = selected == OUTDOOR
    grouped: GroupedProfiles = {}

    for profile in candidates:
        if not matches_search(profile, search_term):
            continue

        if outdoor and location_filter and profile.location != location_filter:
            continue

        if outdoor and not is_within_radius(viewer_coordinates, profile, radius_miles):
            logger.debug("Skipping {} outside the {} mile radius", profile.username, radius_miles)
            continue

        for membership in profile.memberships:
            if not same_category(membership.hobby.category, selected):
                continue
            key = profile.location if outdoor else membership.hobby.name
            bucket = grouped.setdefault(key, [])
            if all(existing.id != profile.id for existing in bucket):
                bucket.append(profile)

    logger.debug("Grouped {} candidates into {} {} buckets", len(candidates), len(grouped), selected)
    return grouped


def profiles_in_category(profiles: Iterable[Profile], category: str) -> list[Profile]:
    """Keep profiles holding at least one hobby in ``category``."""

    selected = normalise_category(category)
    return [profile for profile in profiles if profile.hobbies_in(selected)]


def available_locations(profiles: Iterable[Profile]) -> list[str]:
    """Distinct non-empty location labels in first-seen order."""

    locations: list[str] = []
    seen: set[str] = set()
    for profile in profiles:
        location = profile.location
        if not location or location in seen:
            continue
        seen.add(location)
        locations.append(location)
    return locations


__all__ = [
    "GroupedProfiles",
    "available_locations",
    "group_profiles",
    "matches_search",
    "profiles_in_category",
]
