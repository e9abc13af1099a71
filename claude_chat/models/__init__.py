"""Request, response and conversation schemas."""

from claude_chat.models.schemas import (
    ChatMessageIn,
    ChatRequest,
    DocumentAttachment,
    ErrorResponse,
    ImageAttachment,
    Message,
    SearchResult,
    StreamEvent,
)

__all__ = [
    "ChatMessageIn",
    "ChatRequest",
    "DocumentAttachment",
    "ErrorResponse",
    "ImageAttachment",
    "Message",
    "SearchResult",
    "StreamEvent",
]
