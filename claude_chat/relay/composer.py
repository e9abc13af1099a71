"""Request composition for the upstream model call.

Turns the wire-level chat history into provider-neutral content blocks:
text first, then images, then documents, with base64 payloads decoded to
raw bytes and Word documents reduced to their text. No I/O.
"""

import base64
import binascii
from typing import Any, Literal

from pydantic import BaseModel, Field

from claude_chat.errors import ValidationError
from claude_chat.models.schemas import ChatMessageIn, SearchResult
from claude_chat.relay.config import DEFAULT_MODEL, MODEL_IDS, RelayConfig
from claude_chat.relay.documents import WORD_FORMATS, extract_word_text

SEARCH_PREAMBLE = (
    "You have access to the following web search results. "
    "Use them to provide up-to-date information:"
)

PDF_FORMATS = frozenset({"pdf"})
TEXT_DOCUMENT_FORMATS = frozenset({"txt", "md", "csv", "html"})
DOCUMENT_FORMATS = PDF_FORMATS | TEXT_DOCUMENT_FORMATS | WORD_FORMATS


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    format: str
    data: bytes


class DocumentBlock(BaseModel):
    type: Literal["document"] = "document"
    format: str
    name: str
    data: bytes


ContentBlock = TextBlock | ImageBlock | DocumentBlock


class UpstreamMessage(BaseModel):
    """A role-tagged message with its content blocks."""

    role: Literal["user", "assistant"]
    content: list[ContentBlock]


class UpstreamRequest(BaseModel):
    """Everything the provider call needs for one turn.

    Attributes:
        model_id: Concrete provider model identifier.
        messages: Conversation as content blocks.
        system: System-level instruction blocks (empty when unused).
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature.
        thinking: Extended-thinking directive, None when disabled.
    """

    model_id: str
    messages: list[UpstreamMessage]
    system: list[str] = Field(default_factory=list)
    max_tokens: int
    temperature: float
    thinking: dict[str, Any] | None = None


def resolve_model_id(name: str | None, default: str = DEFAULT_MODEL) -> str:
    """Map a logical model name to its provider identifier.

    Unknown or missing names resolve to the default model, and an unknown
    default to the built-in one, so every name maps to some model.
    """
    if name in MODEL_IDS:
        return MODEL_IDS[name]
    return MODEL_IDS.get(default) or MODEL_IDS[DEFAULT_MODEL]


def _decode(data: str, what: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid base64 payload for {what}") from e


def _content_blocks(message: ChatMessageIn) -> list[ContentBlock]:
    blocks: list[ContentBlock] = []

    if message.text:
        blocks.append(TextBlock(text=message.text))

    for image in message.images or []:
        blocks.append(
            ImageBlock(format=image.format.lower(), data=_decode(image.data, "image"))
        )

    for doc in message.documents or []:
        fmt = doc.format.lower()
        if fmt not in DOCUMENT_FORMATS:
            raise ValidationError(f"Unsupported document format: {doc.format}")
        data = _decode(doc.data, doc.name)
        if fmt in WORD_FORMATS:
            # Word documents travel as their extracted text.
            data = extract_word_text(data, doc.name).encode("utf-8")
        blocks.append(DocumentBlock(format=fmt, name=doc.name, data=data))

    return blocks


def format_search_context(results: list[SearchResult]) -> str:
    """Render search results as one system instruction.

    Each result becomes ``[title](url)`` followed by its content on the
    next line; results are separated by a blank line.
    """
    context = "\n\n".join(f"[{r.title}]({r.url})\n{r.content}" for r in results)
    return f"{SEARCH_PREAMBLE}\n\n{context}"


def compose_request(
    messages: list[ChatMessageIn],
    model: str | None,
    extended_thinking: bool,
    search_results: list[SearchResult] | None,
    config: RelayConfig,
) -> UpstreamRequest:
    """Build the upstream request for one chat turn.

    Args:
        messages: Conversation history, the outgoing user turn last.
        model: Logical model name from the client.
        extended_thinking: Attach the thinking directive when True.
        search_results: Optional web search hits for the system prompt.
        config: Relay configuration (limits, budget, default model).

    Returns:
        The composed UpstreamRequest.

    Raises:
        ValidationError: If there is nothing to send, or an attachment
            cannot be decoded or is of an unsupported format.
    """
    if not messages:
        raise ValidationError("Message list is empty")

    upstream_messages: list[UpstreamMessage] = []
    blocks: list[ContentBlock] = []
    for message in messages:
        blocks = _content_blocks(message)
        # Empty history entries (e.g. an assistant reply that never got text)
        # carry nothing the model can use.
        if blocks:
            upstream_messages.append(UpstreamMessage(role=message.role, content=blocks))

    # `blocks` belongs to the outgoing turn after the loop.
    if not blocks:
        raise ValidationError("Cannot send an empty message")

    system: list[str] = []
    if search_results:
        system.append(format_search_context(search_results))

    thinking: dict[str, Any] | None = None
    max_tokens = config.max_tokens
    if extended_thinking:
        thinking = {"type": "enabled", "budget_tokens": config.thinking_budget_tokens}
        # The provider requires max_tokens to exceed the thinking budget.
        max_tokens += config.thinking_budget_tokens

    return UpstreamRequest(
        model_id=resolve_model_id(model, config.default_model),
        messages=upstream_messages,
        system=system,
        max_tokens=max_tokens,
        temperature=config.temperature,
        thinking=thinking,
    )
