"""Table and label helpers for the dashboard, kept free of Streamlit imports."""
from __future__ import annotations

from typing import Sequence

import pandas as pd

from hobbyme.core.entities import ChatMessage, Profile, SuggestedMatch

PROFILE_COLUMNS = ["Name", "Username", "Location", "Hobbies", "Bio"]
SUGGESTION_COLUMNS = ["Name", "Username", "Location", "Shared hobbies", "Score", "Distance (mi)"]


def bucket_title(key: str, count: int) -> str:
    noun = "person" if count == 1 else "people"
    return f"{key} ({count} {noun})"


def _hobby_names(profile: Profile, category: str) -> str:
    return ", ".join(hobby.name for hobby in profile.hobbies_in(category))


def profiles_table(profiles: Sequence[Profile], category: str) -> pd.DataFrame:
    """One row per profile, listing only hobbies of the selected category."""

    rows = [
        {
            "Name": profile.full_name,
            "Username": f"@{profile.username}",
            "Location": profile.location or "—",
            "Hobbies": _hobby_names(profile, category),
            "Bio": profile.bio,
        }
        for profile in profiles
    ]
    return pd.DataFrame(rows, columns=PROFILE_COLUMNS)


def suggestions_table(suggestions: Sequence[SuggestedMatch]) -> pd.DataFrame:
    rows = []
    for suggestion in suggestions:
        profile = suggestion.profile
        rows.append(
            {
                "Name": profile.full_name,
                "Username": f"@{profile.username}",
                "Location": profile.location or "—",
                "Shared hobbies": ", ".join(hobby.name for hobby in suggestion.shared_hobbies),
                "Score": suggestion.similarity_score,
                "Distance (mi)": suggestion.distance,
            }
        )
    return pd.DataFrame(rows, columns=SUGGESTION_COLUMNS)


def messages_table(messages: Sequence[ChatMessage], viewer_id: str) -> pd.DataFrame:
    rows = []
    for message in messages:
        sender = "You" if message.sender_id == viewer_id else (message.sender_username or message.sender_id)
        body = message.content if message.type == "text" else f"[{message.type}] {message.media_url or ''}"
        rows.append({"From": sender, "Message": body, "Sent": message.created_at})
    return pd.DataFrame(rows, columns=["From", "Message", "Sent"])


__all__ = [
    "PROFILE_COLUMNS",
    "SUGGESTION_COLUMNS",
    "bucket_title",
    "messages_table",
    "profiles_table",
    "suggestions_table",
]
