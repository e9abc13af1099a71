"""Client side of the normalized event stream.

Reads the relay's ``text/event-stream`` body incrementally and folds each
text fragment into the in-progress assistant message of the conversation
log. Lines and multi-byte characters may be split across reads, so bytes
are decoded incrementally and partial lines are buffered.
"""

import codecs
import logging
from collections.abc import AsyncIterable, Callable
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from claude_chat.errors import DecodeError, TransportError
from claude_chat.models.schemas import Message, StreamEvent
from claude_chat.relay.events import DATA_PREFIX, DONE_SENTINEL
from claude_chat.ui.conversation import ConversationLog

logger = logging.getLogger(__name__)

APOLOGY_TEXT = "Sorry, I encountered an error. Please try again."


def decode_line(line: str) -> StreamEvent | None:
    """Decode one line of the normalized stream.

    Returns:
        The StreamEvent, or None for lines that carry no data.

    Raises:
        DecodeError: If the data payload is not a ``{"text": ...}`` object.
    """
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):]
    try:
        return StreamEvent.model_validate_json(payload)
    except PydanticValidationError as e:
        raise DecodeError(f"Malformed stream payload: {payload[:80]!r}") from e


class NormalizedStreamDecoder:
    """Incremental decoder for normalized stream bytes.

    Once the ``[DONE]`` sentinel is seen the decoder is finished and
    ignores everything after it, including the rest of the same chunk.
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Consume a chunk and return the events it completes."""
        if self.done:
            return []
        self._buffer += self._utf8.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return self._process(lines)

    def flush(self) -> list[StreamEvent]:
        """Process a trailing line left without a newline at end of stream."""
        if self.done:
            return []
        rest = self._buffer + self._utf8.decode(b"", final=True)
        self._buffer = ""
        return self._process([rest] if rest else [])

    def _process(self, lines: list[str]) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        for line in lines:
            line = line.removesuffix("\r")
            if line == f"{DATA_PREFIX}{DONE_SENTINEL}":
                self.done = True
                self._buffer = ""
                break
            try:
                event = decode_line(line)
            except DecodeError as e:
                logger.debug(f"Skipping line: {e}")
                continue
            if event is not None and event.text:
                events.append(event)
        return events


async def consume_stream(
    chunks: AsyncIterable[bytes],
    log: ConversationLog,
    on_text: Callable[[str], Any] | None = None,
) -> None:
    """Fold a normalized stream into the conversation log.

    The assistant message is created on the first received chunk. After
    the sentinel the remaining bytes are drained unprocessed until the
    transport ends the stream; the message is finalized at end of stream.

    Args:
        chunks: Raw body chunks of the relay response.
        log: Conversation log receiving the assistant message.
        on_text: Optional callback invoked after each appended fragment.
    """
    decoder = NormalizedStreamDecoder()
    started = False

    async for chunk in chunks:
        if not chunk:
            continue
        if not started:
            log.start_assistant()
            started = True
        for event in decoder.feed(chunk):
            log.append_to_in_progress(event.text)
            if on_text is not None:
                on_text(event.text)

    for event in decoder.flush():
        log.append_to_in_progress(event.text)
        if on_text is not None:
            on_text(event.text)

    log.finalize()


def _error_detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("error", response.text))
    except (ValueError, AttributeError):
        return response.text


async def send_turn(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    log: ConversationLog,
    on_text: Callable[[str], Any] | None = None,
) -> bool:
    """Post one turn to the relay and stream the answer into the log.

    Any failure to get or read the stream is recovered here: text received
    so far stays in the log, followed by one apology message.

    Returns:
        True if the stream was read to the end, False on failure.
    """
    try:
        async with client.stream(
            "POST",
            url,
            json=payload,
            headers={"Accept": "text/event-stream"},
        ) as response:
            if response.is_error:
                await response.aread()
                raise TransportError(
                    f"HTTP {response.status_code}: {_error_detail(response)}"
                )
            await consume_stream(response.aiter_bytes(), log, on_text)
        return True
    except (httpx.HTTPError, TransportError) as e:
        logger.error(f"Chat stream failed: {e}")
        log.append(Message(role="assistant", text=APOLOGY_TEXT))
        return False
