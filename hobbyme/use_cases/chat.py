"""Use case for one-to-one chats between matched users."""
from __future__ import annotations

import time
from typing import Callable, Optional, Protocol, Sequence

from hobbyme.core.entities import ChatMessage
from hobbyme.use_cases.manage_profile import MediaStorage
from hobbyme.utils.logger import logger

MESSAGE_TYPES: tuple[str, ...] = ("text", "audio", "video")
DEFAULT_CHAT_BUCKET = "chat-media"


class ChatRepository(Protocol):
    def find_shared_chat(self, user_id: str, other_user_id: str) -> Optional[str]:
        ...

    def create_chat(self, participant_ids: Sequence[str]) -> str:
        ...

    def fetch_messages(self, chat_id: str) -> list[ChatMessage]:
        ...

    def insert_message(
        self,
        chat_id: str,
        sender_id: str,
        *,
        content: str,
        message_type: str,
        media_url: Optional[str],
    ) -> None:
        ...


class ChatUseCase:
    """Open chats, read their history and post messages.

    Live delivery of new messages belongs to the backend's change feed; callers
    refresh ``history`` when notified.
    """

    def __init__(
        self,
        repository: ChatRepository,
        storage: MediaStorage,
        chat_bucket: str = DEFAULT_CHAT_BUCKET,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._repository = repository
        self._storage = storage
        self._chat_bucket = chat_bucket
        self._clock = clock or time.time

    def open_chat(self, user_id: str, recipient_id: str) -> str:
        chat_id = self._repository.find_shared_chat(user_id, recipient_id)
        if chat_id is not None:
            return chat_id

        chat_id = self._repository.create_chat([user_id, recipient_id])
        logger.info("Created chat {} between {} and {}", chat_id, user_id, recipient_id)
        return chat_id

    def history(self, chat_id: str) -> list[ChatMessage]:
        return self._repository.fetch_messages(chat_id)

    def send(
        self,
        chat_id: str,
        sender_id: str,
        content: str = "",
        message_type: str = "text",
        media_url: Optional[str] = None,
    ) -> None:
        if message_type not in MESSAGE_TYPES:
            raise ValueError(f"Unsupported message type: {message_type!r}")
        if not content and not media_url:
            raise ValueError("A message needs either text content or a media URL.")

        self._repository.insert_message(
            chat_id,
            sender_id,
            content=content,
            message_type=message_type,
            media_url=media_url,
        )

    def send_recording(self, chat_id: str, sender_id: str, data: bytes, media_type: str) -> str:
        if media_type not in ("audio", "video"):
            raise ValueError(f"Recordings must be audio or video, got {media_type!r}")

        filename = f"{int(self._clock() * 1000)}.webm"
        public_url = self._storage.upload(
            self._chat_bucket, filename, data, content_type=f"{media_type}/webm"
        )
        self.send(chat_id, sender_id, "", message_type=media_type, media_url=public_url)
        return public_url


__all__ = ["ChatRepository", "ChatUseCase", "DEFAULT_CHAT_BUCKET", "MESSAGE_TYPES"]
