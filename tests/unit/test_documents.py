"""Unit tests for Word document text extraction."""

import pytest

from claude_chat.errors import ValidationError
from claude_chat.relay.documents import extract_word_text
from tests.conftest import word_document


class TestExtractWordText:
    """Reading .docx files with python-docx."""

    def test_paragraphs_in_order(self) -> None:
        text = extract_word_text(word_document("First", "Second"), "a.docx")

        assert text.strip().splitlines() == ["First", "Second"]

    def test_tables_follow_paragraphs(self) -> None:
        data = word_document("Prices", table=[["Item", "Cost"], ["Tea", "3"]])

        lines = extract_word_text(data, "a.docx").strip().splitlines()

        assert lines[0] == "Prices"
        assert lines[-2:] == ["Item\tCost", "Tea\t3"]

    def test_empty_document_is_allowed(self) -> None:
        assert extract_word_text(word_document(), "blank.docx").strip() == ""

    @pytest.mark.parametrize("data", [b"plain text", b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"])
    def test_non_docx_bytes_are_rejected(self, data: bytes) -> None:
        with pytest.raises(ValidationError, match="not a valid Word"):
            extract_word_text(data, "fake.docx")
