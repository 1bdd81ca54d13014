"""Use case backing the dashboard: fetch candidates and group them."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Protocol

from hobbyme.core.entities import Coordinates, Profile, normalise_category
from hobbyme.infrastructure.matching.grouping import (
    GroupedProfiles,
    available_locations,
    group_profiles,
    profiles_in_category,
)
from hobbyme.infrastructure.matching.proximity import DEFAULT_RADIUS_MILES
from hobbyme.utils.logger import logger


class ProfileSource(Protocol):
    def fetch_profile(self, profile_id: str) -> Optional[Profile]:
        ...

    def fetch_profiles_with_hobbies(self) -> list[Profile]:
        ...


@dataclass(frozen=True)
class DashboardView:
    """Grouped profiles plus the data the dashboard filters need."""

    category: str
    groups: GroupedProfiles = field(default_factory=dict)
    locations: list[str] = field(default_factory=list)
    viewer_coordinates: Optional[Coordinates] = None
    search_term: str = ""
    candidates: list[Profile] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.groups


class BrowseProfilesUseCase:
    """Load candidates from the store and run the grouping engine over them."""

    def __init__(self, source: ProfileSource, radius_miles: float = DEFAULT_RADIUS_MILES) -> None:
        self._source = source
        self._radius_miles = radius_miles

    def viewer_coordinates(self, viewer_id: str) -> Optional[Coordinates]:
        viewer = self._source.fetch_profile(viewer_id)
        if viewer is None:
            logger.info("Viewer {} has no profile; outdoor results will be empty", viewer_id)
            return None
        return viewer.coordinates

    def execute(
        self,
        viewer_id: str,
        category: str,
        search_term: str = "",
        location_filter: str = "",
    ) -> DashboardView:
        selected = normalise_category(category)
        coordinates = self.viewer_coordinates(viewer_id)

        candidates = profiles_in_category(self._source.fetch_profiles_with_hobbies(), selected)
        logger.info("Loaded {} {} candidates for user {}", len(candidates), selected, viewer_id)

        groups = group_profiles(
            candidates,
            category=selected,
            viewer_coordinates=coordinates,
            search_term=search_term,
            location_filter=location_filter,
            radius_miles=self._radius_miles,
        )
        return DashboardView(
            category=selected,
            groups=groups,
            locations=available_locations(candidates),
            viewer_coordinates=coordinates,
            search_term=search_term,
            candidates=candidates,
        )

    def refine(self, view: DashboardView, location_filter: str) -> DashboardView:
        """Regroup an already loaded view under a location filter without refetching."""

        groups = group_profiles(
            view.candidates,
            category=view.category,
            viewer_coordinates=view.viewer_coordinates,
            search_term=view.search_term,
            location_filter=location_filter,
            radius_miles=self._radius_miles,
        )
        return replace(view, groups=groups)


__all__ = ["BrowseProfilesUseCase", "DashboardView", "ProfileSource"]
