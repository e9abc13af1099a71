"""Word document text extraction using python-docx.

The Messages API has no Word document block, so .docx attachments are sent
as plain-text documents carrying their extracted text.
"""

import io
import logging
import zipfile

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from claude_chat.errors import ValidationError

logger = logging.getLogger(__name__)

WORD_FORMATS = frozenset({"docx"})

# Pre-2007 binary Word files; python-docx reads only the OOXML format.
LEGACY_WORD_FORMATS = frozenset({"doc"})


def extract_word_text(data: bytes, name: str) -> str:
    """Extract the text of a .docx file.

    Paragraphs come first, in document order, then each table row as
    tab-separated cells.

    Args:
        data: Raw bytes of the .docx file.
        name: Filename, used in error messages.

    Returns:
        The document text, one paragraph or table row per line.

    Raises:
        ValidationError: If the bytes are not a readable Word document.
    """
    try:
        document = Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile) as e:
        raise ValidationError(f"{name} is not a valid Word (.docx) document") from e
    except Exception as e:
        raise ValidationError(f"Failed to read Word document {name}: {e}") from e

    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.append("\t".join(cell.text for cell in row.cells))

    text = "\n".join(lines)
    if not text.strip():
        logger.warning(f"Word document {name} contains no text")
    return text
