"""Unit tests for the hobby/location grouping engine."""
from __future__ import annotations

import pytest

from hobbyme.core.entities import Coordinates
from hobbyme.infrastructure.matching import (
    available_locations,
    group_profiles,
    matches_search,
    profiles_in_category,
)
from tests.factories import (
    BIRKENHEAD,
    CHESS,
    CYCLING,
    HIKING,
    LIVERPOOL,
    LONDON,
    MANCHESTER,
    READING,
    make_profile,
)

VIEWER = Coordinates(*LIVERPOOL)


def ids(profiles) -> list[str]:
    return [profile.id for profile in profiles]


def test_indoor_profile_appears_once_per_hobby() -> None:
    alice = make_profile("alice", full_name="Alice Smith", hobbies=(CHESS, READING, HIKING))

    grouped = group_profiles([alice], category="indoor")

    assert list(grouped) == ["Chess", "Reading"]
    assert ids(grouped["Chess"]) == ["alice"]
    assert ids(grouped["Reading"]) == ["alice"]


def test_indoor_grouping_ignores_location_and_radius() -> None:
    far_away = make_profile("far", location="London", coordinates=LONDON, hobbies=(CHESS,))
    unlocated = make_profile("nowhere", hobbies=(CHESS,))

    grouped = group_profiles(
        [far_away, unlocated],
        category="indoor",
        viewer_coordinates=None,
        location_filter="Manchester",
    )

    assert ids(grouped["Chess"]) == ["far", "nowhere"]


def test_outdoor_profiles_share_a_location_bucket() -> None:
    first = make_profile("p1", location="Liverpool, UK", coordinates=LIVERPOOL, hobbies=(HIKING,))
    second = make_profile("p2", location="Liverpool, UK", coordinates=BIRKENHEAD, hobbies=(CYCLING,))

    grouped = group_profiles([first, second], category="outdoor", viewer_coordinates=VIEWER)

    assert list(grouped) == ["Liverpool, UK"]
    assert ids(grouped["Liverpool, UK"]) == ["p1", "p2"]


def test_outdoor_profile_with_several_hobbies_appears_once() -> None:
    profile = make_profile(
        "p1", location="Liverpool, UK", coordinates=LIVERPOOL, hobbies=(HIKING, CYCLING, CHESS)
    )

    grouped = group_profiles([profile], category="outdoor", viewer_coordinates=VIEWER)

    assert grouped == {"Liverpool, UK": [profile]}


def test_outdoor_excludes_profiles_outside_radius_or_unlocated() -> None:
    near = make_profile("near", location="Manchester", coordinates=MANCHESTER, hobbies=(HIKING,))
    far = make_profile("far", location="London", coordinates=LONDON, hobbies=(HIKING,))
    unlocated = make_profile("unlocated", location="Liverpool, UK", hobbies=(HIKING,))

    grouped = group_profiles([near, far, unlocated], category="outdoor", viewer_coordinates=VIEWER)

    assert grouped == {"Manchester": [near]}


def test_outdoor_without_viewer_coordinates_is_empty() -> None:
    profile = make_profile("p1", location="Liverpool, UK", coordinates=LIVERPOOL, hobbies=(HIKING,))

    assert group_profiles([profile], category="outdoor") == {}


def test_location_filter_is_exact_and_case_sensitive() -> None:
    upper = make_profile("upper", location="Manchester", coordinates=MANCHESTER, hobbies=(HIKING,))
    lower = make_profile("lower", location="manchester", coordinates=MANCHESTER, hobbies=(HIKING,))

    grouped = group_profiles(
        [upper, lower],
        category="outdoor",
        viewer_coordinates=VIEWER,
        location_filter="Manchester",
    )

    assert grouped == {"Manchester": [upper]}


@pytest.mark.parametrize("term", ["chess", "CHESS", "ChEsS", "hes"])
def test_search_matches_hobby_names_case_insensitively(term: str) -> None:
    alice = make_profile("alice", username="asmith", full_name="Alice Smith", hobbies=(CHESS,))
    bob = make_profile("bob", username="bobby", full_name="Bob Jones", hobbies=(READING,))

    grouped = group_profiles([alice, bob], category="indoor", search_term=term)

    assert grouped == {"Chess": [alice]}


def test_search_matches_full_name_and_username() -> None:
    alice = make_profile("alice", username="asmith", full_name="Alice Smith", hobbies=(CHESS,))
    bob = make_profile("bob", username="bobby", full_name="Bob Jones", hobbies=(CHESS,))

    assert ids(group_profiles([alice, bob], category="indoor", search_term="SMITH")["Chess"]) == ["alice"]
    assert ids(group_profiles([alice, bob], category="indoor", search_term="bobb")["Chess"]) == ["bob"]


def test_search_scans_hobbies_of_other_categories() -> None:
    hiker = make_profile("hiker", full_name="Alice Smith", hobbies=(CHESS, HIKING))

    grouped = group_profiles([hiker], category="indoor", search_term="hiking")

    assert grouped == {"Chess": [hiker]}


def test_search_without_match_returns_empty_grouping() -> None:
    alice = make_profile("alice", full_name="Alice Smith", hobbies=(CHESS,))

    assert group_profiles([alice], category="indoor", search_term="zzz") == {}


def test_duplicate_candidates_are_not_repeated_in_a_bucket() -> None:
    alice = make_profile("alice", hobbies=(CHESS,))

    grouped = group_profiles([alice, alice], category="indoor")

    assert ids(grouped["Chess"]) == ["alice"]


def test_bucket_order_follows_first_seen_key() -> None:
    first = make_profile("p1", hobbies=(READING,))
    second = make_profile("p2", hobbies=(CHESS, READING))

    grouped = group_profiles([first, second], category="indoor")

    assert list(grouped) == ["Reading", "Chess"]
    assert ids(grouped["Reading"]) == ["p1", "p2"]


def test_no_bucket_is_ever_empty() -> None:
    candidates = [
        make_profile("p1", hobbies=(HIKING,)),
        make_profile("p2", hobbies=()),
        make_profile("p3", location="Manchester", coordinates=MANCHESTER, hobbies=(CYCLING, CHESS)),
    ]

    for category in ("indoor", "outdoor"):
        grouped = group_profiles(candidates, category=category, viewer_coordinates=VIEWER)
        assert all(grouped.values())


def test_grouping_is_idempotent() -> None:
    candidates = [
        make_profile("p1", location="Liverpool, UK", coordinates=LIVERPOOL, hobbies=(CHESS, HIKING)),
        make_profile("p2", location="Manchester", coordinates=MANCHESTER, hobbies=(READING, CYCLING)),
    ]

    for category in ("indoor", "outdoor"):
        first = group_profiles(candidates, category=category, viewer_coordinates=VIEWER)
        second = group_profiles(candidates, category=category, viewer_coordinates=VIEWER)
        assert first == second


def test_category_argument_is_case_insensitive_and_validated() -> None:
    alice = make_profile("alice", hobbies=(CHESS,))

    assert group_profiles([alice], category="INDOOR") == {"Chess": [alice]}
    with pytest.raises(ValueError):
        group_profiles([alice], category="underwater")


def test_matches_search_accepts_empty_term() -> None:
    assert matches_search(make_profile("p1"), "")


def test_profiles_in_category_keeps_members_only() -> None:
    indoor = make_profile("indoor", hobbies=(CHESS,))
    outdoor = make_profile("outdoor", hobbies=(HIKING,))
    none = make_profile("none")

    assert profiles_in_category([indoor, outdoor, none], "outdoor") == [outdoor]


def test_available_locations_are_distinct_and_ordered() -> None:
    profiles = [
        make_profile("p1", location="Liverpool, UK"),
        make_profile("p2", location=""),
        make_profile("p3", location="Manchester"),
        make_profile("p4", location="Liverpool, UK"),
    ]

    assert available_locations(profiles) == ["Liverpool, UK", "Manchester"]
