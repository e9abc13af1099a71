"""Conversation log with explicit persistence.

The log is append-only for finalized messages. The only in-place mutation
is appending text to the single in-progress assistant message, which is
always the last entry. Every change is written to the storage mapping
(NiceGUI's per-browser ``app.storage.user`` in the app, a dict in tests).
"""

import json
import logging
from collections.abc import MutableMapping
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from claude_chat.models.schemas import ChatMessageIn, ImageAttachment, Message

logger = logging.getLogger(__name__)

STORAGE_KEY = "claude-chat-history"

_messages_adapter = TypeAdapter(list[Message])


class ConversationLog:
    """Ordered chat messages owned by one browser session."""

    def __init__(
        self,
        storage: MutableMapping[str, Any] | None = None,
        storage_key: str = STORAGE_KEY,
        messages: list[Message] | None = None,
    ) -> None:
        self._storage = storage if storage is not None else {}
        self._storage_key = storage_key
        self._messages: list[Message] = list(messages or [])
        self._in_progress: Message | None = None

    @classmethod
    def load(
        cls,
        storage: MutableMapping[str, Any],
        storage_key: str = STORAGE_KEY,
    ) -> "ConversationLog":
        """Restore a log from storage.

        Missing, corrupt or schema-invalid data yields an empty log.
        """
        messages: list[Message] = []
        saved = storage.get(storage_key)
        if saved:
            try:
                messages = _messages_adapter.validate_python(json.loads(saved))
            except (json.JSONDecodeError, TypeError, PydanticValidationError) as e:
                logger.warning(f"Failed to load chat history: {e}")
        return cls(storage=storage, storage_key=storage_key, messages=messages)

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def in_progress(self) -> Message | None:
        """The assistant message currently receiving text, if any."""
        return self._in_progress

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: Message) -> None:
        """Append a finalized message.

        Any in-progress message is finalized first so it stays in place
        with the text it has so far.
        """
        self._in_progress = None
        self._messages.append(message)
        self._persist()

    def start_assistant(self) -> Message:
        """Append an empty assistant message and mark it in progress.

        Raises:
            RuntimeError: If another message is already in progress.
        """
        if self._in_progress is not None:
            raise RuntimeError("An assistant message is already in progress")
        message = Message(role="assistant", text="")
        self._messages.append(message)
        self._in_progress = message
        self._persist()
        return message

    def append_to_in_progress(self, text: str) -> None:
        """Append a streamed fragment to the in-progress message."""
        if self._in_progress is None:
            raise RuntimeError("No assistant message in progress")
        self._in_progress.text += text
        self._persist()

    def finalize(self) -> None:
        """End the in-progress message; no-op when none is open."""
        self._in_progress = None

    def clear(self) -> None:
        """Drop every message and remove the stored history."""
        self._messages.clear()
        self._in_progress = None
        self._storage.pop(self._storage_key, None)

    def to_wire(self) -> list[ChatMessageIn]:
        """Messages as sent to the relay (no ids, timestamps or previews)."""
        return [
            ChatMessageIn(
                role=m.role,
                text=m.text,
                images=(
                    [ImageAttachment(data=i.data, format=i.format) for i in m.images]
                    if m.images
                    else None
                ),
                documents=m.documents,
            )
            for m in self._messages
        ]

    def _persist(self) -> None:
        if not self._messages:
            self._storage.pop(self._storage_key, None)
            return
        self._storage[self._storage_key] = json.dumps(
            [m.model_dump(exclude_none=True) for m in self._messages]
        )
