"""Use case for retrieving pre-ranked match suggestions."""
from __future__ import annotations

from typing import Protocol

from hobbyme.core.entities import SuggestedMatch, normalise_category
from hobbyme.infrastructure.matching.proximity import DEFAULT_RADIUS_MILES
from hobbyme.utils.logger import logger


class Ranker(Protocol):
    def rank(self, viewer_id: str, category: str, max_distance: float) -> list[SuggestedMatch]:
        ...


class SuggestMatchesUseCase:
    """Thin wrapper around the remote ranking procedure; results are not re-ranked."""

    def __init__(self, ranker: Ranker, max_distance: float = DEFAULT_RADIUS_MILES) -> None:
        self._ranker = ranker
        self._max_distance = max_distance

    def execute(self, viewer_id: str, category: str) -> list[SuggestedMatch]:
        selected = normalise_category(category)
        logger.info("Fetching {} suggestions for user {}", selected, viewer_id)
        return self._ranker.rank(viewer_id, selected, self._max_distance)


__all__ = ["Ranker", "SuggestMatchesUseCase"]
