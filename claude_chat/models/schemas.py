"""Pydantic models for API requests, responses and the conversation log.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ImageAttachment / DocumentAttachment: base64 payloads with a format tag
    - Message: One entry of the client-side conversation log
    - ChatMessageIn: A message as sent to the relay
    - SearchResult: One web search hit, folded into the system prompt
    - ChatRequest: Incoming chat request payload
    - ErrorResponse: Body of every non-2xx response
    - StreamEvent: One decoded unit of the normalized stream
"""

import time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["user", "assistant"]


def _now_ms() -> int:
    return int(time.time() * 1000)


class ImageAttachment(BaseModel):
    """An image attached to a user message.

    Attributes:
        data: Base64-encoded image bytes.
        format: Image format tag (png, jpeg, gif, webp).
        preview: Optional data URL used for thumbnails in the UI.
    """

    data: str = Field(..., description="Base64-encoded image bytes")
    format: str = Field(..., min_length=1, description="Image format, e.g. 'png'")
    preview: str | None = Field(None, description="Data URL for display only")


class DocumentAttachment(BaseModel):
    """A document attached to a user message.

    Attributes:
        data: Base64-encoded document bytes.
        format: Document format tag (pdf, txt, docx, ...).
        name: Display name, usually the original filename.
    """

    data: str = Field(..., description="Base64-encoded document bytes")
    format: str = Field(..., min_length=1, description="Document format, e.g. 'pdf'")
    name: str = Field(..., description="Display name of the document")


class Message(BaseModel):
    """A single entry of the conversation log.

    Attributes:
        id: Unique identifier (millisecond timestamp string).
        role: The speaker, user or assistant.
        text: Message text; grows while an assistant reply streams in.
        images: Attached images, user messages only.
        documents: Attached documents, user messages only.
        timestamp: Creation time in epoch milliseconds.
    """

    id: str = Field(default_factory=lambda: str(_now_ms()))
    role: Role
    text: str = ""
    images: list[ImageAttachment] | None = None
    documents: list[DocumentAttachment] | None = None
    timestamp: int = Field(default_factory=_now_ms)


class ChatMessageIn(BaseModel):
    """A message in the relay request body."""

    role: Role = Field(..., description="Message role: 'user' or 'assistant'")
    text: str = Field("", description="The message text")
    images: list[ImageAttachment] | None = None
    documents: list[DocumentAttachment] | None = None

    @field_validator("text", mode="before")
    @classmethod
    def none_as_empty(cls, v: str | None) -> str:
        """Treat a null text field as empty."""
        return "" if v is None else v


class SearchResult(BaseModel):
    """A web search hit.

    Attributes:
        title: Page title.
        url: Page URL.
        content: Snippet of page content.
    """

    title: str = ""
    url: str = ""
    content: str = ""


class ChatRequest(BaseModel):
    """Request payload for the chat relay endpoint.

    Attributes:
        messages: Full conversation history, oldest first.
        model: Logical model name (unknown names fall back to the default).
        extended_thinking: Whether to request extended thinking.
        search_results: Optional web search results for the system prompt.
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessageIn] = Field(default_factory=list)
    model: str = Field("", description="Logical model name, e.g. 'sonnet-4.5'")
    extended_thinking: bool = Field(False, alias="extendedThinking")
    search_results: list[SearchResult] | None = Field(None, alias="searchResults")


class ErrorResponse(BaseModel):
    """Body of a failed request."""

    error: str


class StreamEvent(BaseModel):
    """A text fragment of the normalized stream."""

    text: str
