"""Use case for viewing and editing the signed-in user's profile."""
from __future__ import annotations

import time
from typing import Any, Callable, Optional, Protocol, Sequence
from uuid import uuid4

from hobbyme.core.entities import (
    Coordinates,
    Hobby,
    HobbyMembership,
    Profile,
    ProfileBundle,
    UserMedia,
)
from hobbyme.utils.logger import logger

EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"username", "full_name", "location", "email", "phone", "bio"}
)
DEFAULT_MEDIA_BUCKET = "user-media"


class ProfileRepository(Protocol):
    def fetch_profile(self, profile_id: str) -> Optional[Profile]:
        ...

    def update_profile(self, profile_id: str, fields: dict[str, Any]) -> None:
        ...

    def fetch_hobbies(self) -> list[Hobby]:
        ...

    def fetch_memberships(self, profile_id: str) -> list[HobbyMembership]:
        ...

    def replace_memberships(self, profile_id: str, hobby_ids: Sequence[str]) -> None:
        ...

    def fetch_media(self, profile_id: str) -> list[UserMedia]:
        ...

    def add_media(
        self,
        profile_id: str,
        *,
        url: str,
        media_type: str,
        caption: str,
        hobby_id: str,
    ) -> None:
        ...

    def delete_media(self, media_id: str) -> None:
        ...


class MediaStorage(Protocol):
    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        ...


class Geocoder(Protocol):
    def geocode(self, address: str) -> Optional[Coordinates]:
        ...


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1]


class ManageProfileUseCase:
    """Profile editing, hobby selection and media uploads.

    Store and storage failures propagate to the caller untouched; only the
    geocoder is allowed to fail quietly, in which case the location label is
    saved without coordinates.
    """

    def __init__(
        self,
        repository: ProfileRepository,
        storage: MediaStorage,
        geocoder: Geocoder,
        media_bucket: str = DEFAULT_MEDIA_BUCKET,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._geocoder = geocoder
        self._media_bucket = media_bucket
        self._clock = clock or time.time

    def load(self, user_id: str) -> ProfileBundle:
        logger.info("Loading profile data for user {}", user_id)
        return ProfileBundle(
            profile=self._repository.fetch_profile(user_id),
            memberships=self._repository.fetch_memberships(user_id),
            media=self._repository.fetch_media(user_id),
        )

    def available_hobbies(self) -> list[Hobby]:
        return self._repository.fetch_hobbies()

    def update_field(self, user_id: str, field: str, value: str) -> dict[str, Any]:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Profile field {field!r} cannot be edited.")

        update: dict[str, Any] = {field: value}
        if field == "location":
            coordinates = self._geocoder.geocode(value)
            if coordinates is not None:
                update["latitude"] = coordinates.latitude
                update["longitude"] = coordinates.longitude
            else:
                logger.warning("Saving location {!r} for user {} without coordinates", value, user_id)

        self._repository.update_profile(user_id, update)
        logger.info("Updated {} for user {}", ", ".join(sorted(update)), user_id)
        return update

    def update_hobbies(self, user_id: str, hobby_ids: Sequence[str]) -> list[HobbyMembership]:
        unique_ids = list(dict.fromkeys(hobby_ids))
        self._repository.replace_memberships(user_id, unique_ids)
        logger.info("User {} now has {} hobbies", user_id, len(unique_ids))
        return self._repository.fetch_memberships(user_id)

    def upload_avatar(self, user_id: str, filename: str, data: bytes, content_type: str) -> str:
        path = f"avatars/{user_id}-avatar.{_extension(filename)}"
        public_url = self._storage.upload(
            self._media_bucket, path, data, content_type=content_type, upsert=True
        )
        self._repository.update_profile(user_id, {"avatar_url": public_url})
        return public_url

    def upload_media(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        content_type: str,
        hobby_id: str,
        caption: str = "",
    ) -> list[UserMedia]:
        stamp = int(self._clock() * 1000)
        path = f"{user_id}/{stamp}-{uuid4().hex}.{_extension(filename)}"
        public_url = self._storage.upload(
            self._media_bucket, path, data, content_type=content_type
        )
        media_type = "image" if (content_type or "").startswith("image/") else "video"
        self._repository.add_media(
            user_id,
            url=public_url,
            media_type=media_type,
            caption=caption,
            hobby_id=hobby_id,
        )
        logger.info("Stored {} {} for user {}", media_type, path, user_id)
        return self._repository.fetch_media(user_id)

    def delete_media(self, media_id: str) -> None:
        self._repository.delete_media(media_id)


__all__ = [
    "DEFAULT_MEDIA_BUCKET",
    "EDITABLE_FIELDS",
    "Geocoder",
    "ManageProfileUseCase",
    "MediaStorage",
    "ProfileRepository",
]
