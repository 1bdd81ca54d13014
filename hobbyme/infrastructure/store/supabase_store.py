"""Supabase adapter implementing the store, ranking, storage and chat protocols."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, TypeVar

import pandas as pd
from supabase import Client, create_client

from hobbyme.core.entities import (
    DEFAULT_SKILL_LEVEL,
    ChatMessage,
    Hobby,
    HobbyMembership,
    Profile,
    SuggestedMatch,
    UserMedia,
)
from hobbyme.utils.logger import logger

T = TypeVar("T")

PROFILE_COLUMNS = (
    "id, username, full_name, email, phone, location, bio, is_admin, "
    "avatar_url, latitude, longitude"
)
PROFILE_WITH_HOBBIES = (
    "id, username, full_name, location, bio, avatar_url, latitude, longitude, "
    "user_hobbies ( skill_level, hobbies ( id, name, category ) )"
)
SUGGESTIONS_PROCEDURE = "get_user_suggestions"


class BackendError(RuntimeError):
    """Raised when a call to the hosted backend fails."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    parsed = pd.to_datetime(value, errors="coerce", utc=True)
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _hobby_from_row(row: Mapping[str, Any], hobby_id: Any = None) -> Hobby:
    return Hobby(
        id=str(row.get("id") or hobby_id or ""),
        name=str(row.get("name") or ""),
        category=str(row.get("category") or ""),
    )


def _memberships_from_rows(rows: Iterable[Mapping[str, Any]]) -> tuple[HobbyMembership, ...]:
    memberships: list[HobbyMembership] = []
    for row in rows or ():
        hobby_row = row.get("hobbies")
        if not hobby_row:
            continue
        memberships.append(
            HobbyMembership(
                hobby=_hobby_from_row(hobby_row, row.get("hobby_id")),
                skill_level=row.get("skill_level") or DEFAULT_SKILL_LEVEL,
            )
        )
    return tuple(memberships)


def profile_from_row(row: Mapping[str, Any]) -> Profile:
    """Build a :class:`Profile` from a ``profiles`` row, nested hobbies included.

    A row carrying only one coordinate is treated as unlocated.
    """

    latitude = _optional_float(row.get("latitude"))
    longitude = _optional_float(row.get("longitude"))
    if (latitude is None) != (longitude is None):
        logger.warning("Profile {} has a partial location; ignoring its coordinates", row.get("id"))
        latitude = longitude = None

    return Profile(
        id=str(row["id"]),
        username=row.get("username") or "",
        full_name=row.get("full_name") or "",
        bio=row.get("bio") or "",
        avatar_url=row.get("avatar_url"),
        email=row.get("email") or "",
        phone=row.get("phone") or "",
        location=row.get("location") or "",
        latitude=latitude,
        longitude=longitude,
        is_admin=bool(row.get("is_admin", False)),
        memberships=_memberships_from_rows(row.get("user_hobbies") or ()),
    )


def suggestion_from_row(row: Mapping[str, Any]) -> SuggestedMatch:
    shared = tuple(_hobby_from_row(item) for item in row.get("shared_hobbies") or ())
    return SuggestedMatch(
        profile=profile_from_row(row),
        similarity_score=_optional_float(row.get("similarity_score")),
        distance=_optional_float(row.get("distance")),
        shared_hobbies=shared,
    )


def media_from_row(row: Mapping[str, Any]) -> UserMedia:
    hobby = row.get("hobbies") or {}
    return UserMedia(
        id=str(row["id"]),
        url=row.get("url") or "",
        type=row.get("type") or "image",
        caption=row.get("caption") or "",
        hobby_id=row.get("hobby_id"),
        hobby_name=hobby.get("name"),
        created_at=_parse_timestamp(row.get("created_at")),
    )


def message_from_row(row: Mapping[str, Any]) -> ChatMessage:
    sender = row.get("profiles") or {}
    return ChatMessage(
        id=str(row["id"]),
        chat_id=str(row.get("chat_id") or ""),
        sender_id=str(row.get("sender_id") or ""),
        content=row.get("content") or "",
        type=row.get("type") or "text",
        media_url=row.get("media_url"),
        created_at=_parse_timestamp(row.get("created_at")),
        sender_username=sender.get("username"),
    )


class SupabaseBackend:
    """All remote reads and writes of the application go through this class."""

    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def from_credentials(cls, url: str, key: str) -> "SupabaseBackend":
        if not url or not key:
            raise ValueError("Supabase URL and key must both be configured.")
        logger.info("Connecting to Supabase at {}", url)
        return cls(create_client(url, key))

    @staticmethod
    def _call(operation: str, func: Callable[[], T]) -> T:
        try:
            return func()
        except Exception as error:  # noqa: BLE001
            logger.error("{} failed: {}", operation, error)
            raise BackendError(operation, error) from error

    def _rows(self, operation: str, func: Callable[[], Any]) -> list[dict[str, Any]]:
        response = self._call(operation, func)
        return list(getattr(response, "data", None) or [])

    # Profiles -------------------------------------------------------------

    def fetch_profile(self, profile_id: str) -> Optional[Profile]:
        rows = self._rows(
            "fetch_profile",
            lambda: self._client.table("profiles")
            .select(PROFILE_COLUMNS)
            .eq("id", profile_id)
            .limit(1)
            .execute(),
        )
        if not rows:
            return None
        return profile_from_row(rows[0])

    def fetch_profiles_with_hobbies(self) -> list[Profile]:
        rows = self._rows(
            "fetch_profiles_with_hobbies",
            lambda: self._client.table("profiles").select(PROFILE_WITH_HOBBIES).execute(),
        )
        logger.debug("Fetched {} profiles", len(rows))
        return [profile_from_row(row) for row in rows]

    def update_profile(self, profile_id: str, fields: dict[str, Any]) -> None:
        self._call(
            "update_profile",
            lambda: self._client.table("profiles").update(fields).eq("id", profile_id).execute(),
        )

    def insert_profile(self, row: dict[str, Any]) -> None:
        self._call(
            "insert_profile",
            lambda: self._client.table("profiles").insert([row]).execute(),
        )

    def sign_up(self, email: str, password: str) -> str:
        response = self._call(
            "sign_up",
            lambda: self._client.auth.sign_up({"email": email, "password": password}),
        )
        user = getattr(response, "user", None)
        if user is None:
            raise BackendError("sign_up", RuntimeError(f"no user returned for {email}"))
        return str(user.id)

    # Hobbies --------------------------------------------------------------

    def fetch_hobbies(self) -> list[Hobby]:
        rows = self._rows(
            "fetch_hobbies",
            lambda: self._client.table("hobbies").select("id, name, category").order("name").execute(),
        )
        return [_hobby_from_row(row) for row in rows]

    def fetch_memberships(self, profile_id: str) -> list[HobbyMembership]:
        rows = self._rows(
            "fetch_memberships",
            lambda: self._client.table("user_hobbies")
            .select("hobby_id, skill_level, hobbies ( name, category )")
            .eq("user_id", profile_id)
            .execute(),
        )
        return list(_memberships_from_rows(rows))

    def insert_memberships(self, rows: Sequence[dict[str, Any]]) -> None:
        if not rows:
            return
        self._call(
            "insert_memberships",
            lambda: self._client.table("user_hobbies").insert(list(rows)).execute(),
        )

    def replace_memberships(self, profile_id: str, hobby_ids: Sequence[str]) -> None:
        self._call(
            "delete_memberships",
            lambda: self._client.table("user_hobbies").delete().eq("user_id", profile_id).execute(),
        )
        self.insert_memberships(
            [
                {"user_id": profile_id, "hobby_id": hobby_id, "skill_level": DEFAULT_SKILL_LEVEL}
                for hobby_id in hobby_ids
            ]
        )

    # Suggestions ----------------------------------------------------------

    def rank(self, viewer_id: str, category: str, max_distance: float) -> list[SuggestedMatch]:
        rows = self._rows(
            SUGGESTIONS_PROCEDURE,
            lambda: self._client.rpc(
                SUGGESTIONS_PROCEDURE,
                {
                    "p_user_id": viewer_id,
                    "p_category": category,
                    "p_max_distance": max_distance,
                },
            ).execute(),
        )
        return [suggestion_from_row(row) for row in rows]

    # Media ----------------------------------------------------------------

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        storage = self._client.storage.from_(bucket)
        self._call(
            "upload",
            lambda: storage.upload(
                path,
                data,
                file_options={"content-type": content_type, "upsert": "true" if upsert else "false"},
            ),
        )
        return self._call("get_public_url", lambda: storage.get_public_url(path))

    def fetch_media(self, profile_id: str) -> list[UserMedia]:
        rows = self._rows(
            "fetch_media",
            lambda: self._client.table("user_media")
            .select("*, hobbies ( name )")
            .eq("user_id", profile_id)
            .order("created_at", desc=True)
            .execute(),
        )
        return [media_from_row(row) for row in rows]

    def add_media(
        self,
        profile_id: str,
        *,
        url: str,
        media_type: str,
        caption: str,
        hobby_id: str,
    ) -> None:
        self._call(
            "add_media",
            lambda: self._client.table("user_media")
            .insert(
                {
                    "user_id": profile_id,
                    "url": url,
                    "type": media_type,
                    "caption": caption,
                    "hobby_id": hobby_id,
                }
            )
            .execute(),
        )

    def delete_media(self, media_id: str) -> None:
        self._call(
            "delete_media",
            lambda: self._client.table("user_media").delete().eq("id", media_id).execute(),
        )

    # Chats ----------------------------------------------------------------

    def find_shared_chat(self, user_id: str, other_user_id: str) -> Optional[str]:
        rows = self._rows(
            "find_shared_chat",
            lambda: self._client.table("chat_participants")
            .select("chat_id, user_id, joined_at")
            .in_("user_id", [user_id, other_user_id])
            .order("joined_at", desc=True)
            .execute(),
        )
        members: dict[str, set[str]] = {}
        for row in rows:
            chat_id = str(row["chat_id"])
            members.setdefault(chat_id, set()).add(str(row["user_id"]))
            if members[chat_id] >= {user_id, other_user_id}:
                return chat_id
        return None

    def create_chat(self, participant_ids: Sequence[str]) -> str:
        rows = self._rows(
            "create_chat",
            lambda: self._client.table("chats").insert({}).execute(),
        )
        if not rows:
            raise BackendError("create_chat", RuntimeError("no chat row returned"))
        chat_id = str(rows[0]["id"])
        self._call(
            "add_chat_participants",
            lambda: self._client.table("chat_participants")
            .insert([{"chat_id": chat_id, "user_id": user_id} for user_id in participant_ids])
            .execute(),
        )
        return chat_id

    def fetch_messages(self, chat_id: str) -> list[ChatMessage]:
        rows = self._rows(
            "fetch_messages",
            lambda: self._client.table("messages")
            .select("*, profiles:sender_id ( username, avatar_url )")
            .eq("chat_id", chat_id)
            .order("created_at")
            .execute(),
        )
        return [message_from_row(row) for row in rows]

    def insert_message(
        self,
        chat_id: str,
        sender_id: str,
        *,
        content: str,
        message_type: str,
        media_url: Optional[str],
    ) -> None:
        self._call(
            "insert_message",
            lambda: self._client.table("messages")
            .insert(
                {
                    "chat_id": chat_id,
                    "sender_id": sender_id,
                    "content": content,
                    "type": message_type,
                    "media_url": media_url,
                }
            )
            .execute(),
        )


__all__ = [
    "BackendError",
    "SupabaseBackend",
    "media_from_row",
    "message_from_row",
    "profile_from_row",
    "suggestion_from_row",
]
