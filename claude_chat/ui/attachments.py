"""File attachments for the next outgoing message.

Uploaded files are read to bytes, classified by MIME type and kept as
base64 attachments until the message is sent.
"""

import base64
import logging
from typing import Literal

from claude_chat.errors import ValidationError
from claude_chat.models.schemas import DocumentAttachment, ImageAttachment
from claude_chat.relay.composer import DOCUMENT_FORMATS
from claude_chat.relay.documents import LEGACY_WORD_FORMATS, WORD_FORMATS, extract_word_text

logger = logging.getLogger(__name__)

MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024  # 10MB

AttachmentKind = Literal["images", "documents"]

_TEXT_SUBTYPES = {"markdown": "md", "csv": "csv", "html": "html"}


def document_format(content_type: str) -> str:
    """Derive a document format tag from a MIME type."""
    if "pdf" in content_type:
        return "pdf"
    if content_type == "application/msword":
        return "doc"
    if "word" in content_type:
        return "docx"
    subtype = content_type.partition("/")[2]
    return _TEXT_SUBTYPES.get(subtype, "txt")


def read_attachment(
    name: str,
    content_type: str,
    data: bytes,
) -> ImageAttachment | DocumentAttachment | None:
    """Turn an uploaded file into an attachment.

    Args:
        name: Original filename.
        content_type: MIME type reported by the browser.
        data: Raw file bytes.

    Returns:
        An ImageAttachment for images, a DocumentAttachment for PDF, text
        and document types, or None for anything else.

    Raises:
        ValidationError: If the file is empty, too large, or a document
            format the model cannot read.
    """
    content_type = (content_type or "").lower()
    if not data:
        raise ValidationError(f"Empty file: {name}")
    if len(data) > MAX_ATTACHMENT_SIZE:
        size_mb = len(data) / (1024 * 1024)
        raise ValidationError(f"{name} ({size_mb:.1f}MB) exceeds maximum allowed (10MB)")

    encoded = base64.b64encode(data).decode("ascii")

    if content_type.startswith("image/"):
        fmt = content_type.split("/")[1]
        return ImageAttachment(
            data=encoded,
            format=fmt,
            preview=f"data:{content_type};base64,{encoded}",
        )

    if (
        content_type == "application/pdf"
        or "document" in content_type
        or "word" in content_type
        or "text" in content_type
    ):
        fmt = document_format(content_type)
        if fmt in LEGACY_WORD_FORMATS:
            raise ValidationError(f"{name}: legacy .doc files are not supported, save it as .docx")
        if fmt not in DOCUMENT_FORMATS:
            raise ValidationError(f"Unsupported document format: {fmt}")
        if fmt in WORD_FORMATS:
            # Raises on unreadable files.
            extract_word_text(data, name)
        return DocumentAttachment(data=encoded, format=fmt, name=name)

    logger.info(f"Ignoring attachment {name} with type {content_type!r}")
    return None


class PendingAttachments:
    """Attachments collected for the next user message.

    Entries are kept in the order uploads complete.
    """

    def __init__(self) -> None:
        self.images: list[ImageAttachment] = []
        self.documents: list[DocumentAttachment] = []

    @property
    def is_empty(self) -> bool:
        return not self.images and not self.documents

    def add(self, attachment: ImageAttachment | DocumentAttachment) -> None:
        if isinstance(attachment, ImageAttachment):
            self.images.append(attachment)
        else:
            self.documents.append(attachment)

    def remove(self, kind: AttachmentKind, index: int) -> None:
        """Remove one attachment; out-of-range indexes are ignored."""
        items = self.images if kind == "images" else self.documents
        if 0 <= index < len(items):
            del items[index]

    def take(self) -> tuple[list[ImageAttachment], list[DocumentAttachment]]:
        """Return all attachments and clear the collection."""
        images, documents = self.images, self.documents
        self.images, self.documents = [], []
        return images, documents
