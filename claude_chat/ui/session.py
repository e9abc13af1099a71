"""Per-browser chat state and the submit flow.

One turn at a time: while a stream is open, further submits are ignored,
so there is never more than one in-progress assistant message.
"""

import logging
from collections.abc import Callable, MutableMapping
from typing import Any

import httpx

from claude_chat.errors import ValidationError
from claude_chat.models.schemas import ChatRequest, Message, SearchResult
from claude_chat.relay.config import DEFAULT_MODEL
from claude_chat.ui.attachments import PendingAttachments
from claude_chat.ui.config import ClientConfig
from claude_chat.ui.conversation import ConversationLog
from claude_chat.ui.search import WebSearch
from claude_chat.ui.stream_consumer import send_turn

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"


def build_payload(
    log: ConversationLog,
    model: str,
    extended_thinking: bool,
    search_results: list[SearchResult],
) -> dict[str, Any]:
    """Assemble the relay request body from the conversation log."""
    request = ChatRequest(
        messages=log.to_wire(),
        model=model,
        extended_thinking=extended_thinking,
        search_results=search_results,
    )
    return request.model_dump(by_alias=True, exclude_none=True)


class ChatSession:
    """Chat state for one browser: log, attachments, toggles."""

    def __init__(
        self,
        config: ClientConfig,
        storage: MutableMapping[str, Any] | None = None,
        search: WebSearch | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            config: Chat page configuration.
            storage: Mapping the conversation log persists to.
            search: Web search client; built from config if not provided.
            transport: Optional httpx transport (tests route to the app here).
        """
        self.config = config
        self.log = ConversationLog.load(
            storage if storage is not None else {}, config.storage_key
        )
        self.attachments = PendingAttachments()
        self.search = search or WebSearch(config.tavily_api_key, config.search_max_results)
        self.model: str = DEFAULT_MODEL
        self.extended_thinking: bool = False
        self.web_search: bool = False
        self.is_streaming: bool = False
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.api_base_url,
            timeout=self.config.request_timeout,
            transport=self._transport,
        )

    async def submit(
        self,
        text: str,
        on_text: Callable[[str], Any] | None = None,
        on_start: Callable[[], Any] | None = None,
    ) -> bool:
        """Send one user turn and stream the answer into the log.

        Args:
            text: The user's message text.
            on_text: Optional callback for each streamed fragment.
            on_start: Optional callback invoked once the user message is
                in the log, before any network call.

        Returns:
            True if the answer streamed to the end, False if the turn was
            skipped (stream already open) or failed.

        Raises:
            ValidationError: If there is no text and no attachment.
        """
        if self.is_streaming:
            return False
        if not text.strip() and self.attachments.is_empty:
            raise ValidationError("Cannot send an empty message")

        images, documents = self.attachments.take()
        self.log.append(
            Message(
                role="user",
                text=text,
                images=images or None,
                documents=documents or None,
            )
        )
        self.is_streaming = True
        logger.info(
            f"Submitting turn model={self.model} thinking={self.extended_thinking} "
            f"search={self.web_search} messages={len(self.log)}"
        )

        try:
            if on_start is not None:
                on_start()

            search_results: list[SearchResult] = []
            if self.web_search and text.strip():
                search_results = await self.search.search(text)

            payload = build_payload(
                self.log, self.model, self.extended_thinking, search_results
            )
            async with self._client() as client:
                return await send_turn(client, CHAT_PATH, payload, self.log, on_text)
        finally:
            self.is_streaming = False

    def clear(self) -> None:
        self.log.clear()
        self.attachments.take()
