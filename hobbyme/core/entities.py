"""Core entities for the HobbyMe matching domain."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

INDOOR = "indoor"
OUTDOOR = "outdoor"
CATEGORIES: tuple[str, ...] = (INDOOR, OUTDOOR)

SKILL_LEVELS: tuple[str, ...] = ("beginner", "intermediate", "advanced")
DEFAULT_SKILL_LEVEL = "beginner"


def normalise_category(category: str) -> str:
    """Return the canonical lower-case category, rejecting unknown values."""

    normalised = (category or "").strip().lower()
    if normalised not in CATEGORIES:
        raise ValueError(f"Unknown hobby category: {category!r}")
    return normalised


def same_category(left: str, right: str) -> bool:
    return (left or "").lower() == (right or "").lower()


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class Hobby:
    """A named activity belonging to one category."""

    id: str
    name: str
    category: str


@dataclass(frozen=True)
class HobbyMembership:
    """Association between a profile and one of its hobbies."""

    hobby: Hobby
    skill_level: str = DEFAULT_SKILL_LEVEL

    def __post_init__(self) -> None:
        if self.skill_level not in SKILL_LEVELS:
            raise ValueError(f"Unknown skill level: {self.skill_level!r}")


@dataclass(frozen=True)
class Profile:
    """A registered person together with their resolved hobby memberships."""

    id: str
    username: str
    full_name: str = ""
    bio: str = ""
    avatar_url: Optional[str] = None
    email: str = ""
    phone: str = ""
    location: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_admin: bool = False
    memberships: tuple[HobbyMembership, ...] = ()

    def __post_init__(self) -> None:
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError(
                f"Profile {self.id} must have both latitude and longitude or neither."
            )

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(latitude=self.latitude, longitude=self.longitude)

    def hobbies_in(self, category: str) -> list[Hobby]:
        return [
            membership.hobby
            for membership in self.memberships
            if same_category(membership.hobby.category, category)
        ]


@dataclass(frozen=True)
class SuggestedMatch:
    """A profile pre-ranked by the remote suggestion procedure."""

    profile: Profile
    similarity_score: Optional[float] = None
    distance: Optional[float] = None
    shared_hobbies: tuple[Hobby, ...] = ()


@dataclass(frozen=True)
class UserMedia:
    """A photo or video a user attached to one of their hobbies."""

    id: str
    url: str
    type: str
    caption: str = ""
    hobby_id: Optional[str] = None
    hobby_name: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ChatMessage:
    """A single message posted to a chat."""

    id: str
    chat_id: str
    sender_id: str
    content: str = ""
    type: str = "text"
    media_url: Optional[str] = None
    created_at: Optional[datetime] = None
    sender_username: Optional[str] = None


@dataclass(frozen=True)
class ProfileBundle:
    """Everything the profile screen shows for one user."""

    profile: Optional[Profile]
    memberships: list[HobbyMembership] = field(default_factory=list)
    media: list[UserMedia] = field(default_factory=list)


__all__ = [
    "CATEGORIES",
    "ChatMessage",
    "Coordinates",
    "DEFAULT_SKILL_LEVEL",
    "Hobby",
    "HobbyMembership",
    "INDOOR",
    "OUTDOOR",
    "Profile",
    "ProfileBundle",
    "SKILL_LEVELS",
    "SuggestedMatch",
    "UserMedia",
    "normalise_category",
    "same_category",
]
