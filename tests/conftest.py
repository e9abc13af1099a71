"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - relay_config: RelayConfig with defaults, independent of the environment
    - fake_bedrock: Stand-in for the Anthropic Bedrock client
    - relay_service: RelayService wired to fake_bedrock and served by the app
    - async_client: HTTPX client for API testing

Upstream events are plain namespaces shaped like Messages API stream events.
word_document builds .docx attachments with python-docx.
"""

import io
from collections.abc import AsyncGenerator, Iterable
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import docx
import pytest
from httpx import ASGITransport, AsyncClient

from claude_chat.api import app
from claude_chat.relay.bedrock import RelayService
from claude_chat.relay.config import RelayConfig


def text_delta(text: str) -> SimpleNamespace:
    """A content_block_delta event carrying text."""
    return SimpleNamespace(
        type="content_block_delta",
        index=0,
        delta=SimpleNamespace(type="text_delta", text=text),
    )


def thinking_delta(thinking: str) -> SimpleNamespace:
    return SimpleNamespace(
        type="content_block_delta",
        index=0,
        delta=SimpleNamespace(type="thinking_delta", thinking=thinking),
    )


def message_stop() -> SimpleNamespace:
    return SimpleNamespace(type="message_stop")


def event(event_type: str) -> SimpleNamespace:
    return SimpleNamespace(type=event_type)


def reply(*texts: str) -> list[SimpleNamespace]:
    """A full upstream reply: framing events, text deltas, then stop."""
    return [
        event("message_start"),
        event("content_block_start"),
        *(text_delta(t) for t in texts),
        event("content_block_stop"),
        event("message_delta"),
        message_stop(),
    ]


def word_document(*paragraphs: str, table: list[list[str]] | None = None) -> bytes:
    """Build a .docx file in memory."""
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for row, values in zip(grid.rows, table):
            for cell, value in zip(row.cells, values):
                cell.text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class FakeStream:
    """Async iterable of upstream events that records being closed."""

    def __init__(self, events: Iterable[Any], error: Exception | None = None) -> None:
        self._events = list(events)
        self._error = error
        self.closed = False

    def __aiter__(self) -> "FakeStream":
        self._iter = iter(self._events)
        return self

    async def __anext__(self) -> Any:
        try:
            return next(self._iter)
        except StopIteration:
            if self._error is not None:
                raise self._error from None
            raise StopAsyncIteration from None

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def relay_config() -> RelayConfig:
    """Relay configuration with default limits."""
    return RelayConfig(aws_region="us-east-1", default_model="sonnet-4.5")


@pytest.fixture
def fake_bedrock() -> SimpleNamespace:
    """Fake Bedrock client; ``messages.create`` returns a FakeStream.

    Tests set ``fake_bedrock.messages.create.return_value`` (or
    ``side_effect``) to shape the upstream.
    """
    create = AsyncMock(return_value=FakeStream(reply("Hi", " there", "!")))
    return SimpleNamespace(messages=SimpleNamespace(create=create), close=AsyncMock())


@pytest.fixture
def relay_service(
    relay_config: RelayConfig,
    fake_bedrock: SimpleNamespace,
    monkeypatch: pytest.MonkeyPatch,
) -> RelayService:
    """RelayService on the fake client, installed as the app's service."""
    service = RelayService(config=relay_config, client=fake_bedrock)
    monkeypatch.setattr("claude_chat.api.chat.get_relay_service", lambda: service)
    return service


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
