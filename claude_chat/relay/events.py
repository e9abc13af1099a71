"""Upstream event classification and normalized stream encoding.

Provider stream events are mapped onto a closed set of variants so the
re-encoding step is a total mapping:

    content_block_delta (text_delta)  ->  TextDelta  ->  data: {"text": ...}
    message_stop                      ->  Completion ->  data: [DONE]
    anything else                     ->  Other      ->  (dropped)

Thinking deltas fall into Other and never reach the client.
"""

import json
from typing import Any, Literal

from pydantic import BaseModel

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class TextDelta(BaseModel):
    kind: Literal["text_delta"] = "text_delta"
    text: str


class Completion(BaseModel):
    kind: Literal["completion"] = "completion"


class Other(BaseModel):
    """Any event the normalized stream does not carry."""

    kind: Literal["other"] = "other"
    event_type: str = "unknown"


UpstreamEvent = TextDelta | Completion | Other


def classify_event(event: Any) -> UpstreamEvent:
    """Classify a raw provider stream event.

    Args:
        event: A raw Messages API stream event (anything with a ``type``).

    Returns:
        The matching UpstreamEvent variant. Never raises for unknown shapes.
    """
    event_type = getattr(event, "type", None) or "unknown"

    if event_type == "content_block_delta":
        delta = getattr(event, "delta", None)
        if getattr(delta, "type", None) == "text_delta":
            text = getattr(delta, "text", None)
            if text:
                return TextDelta(text=text)
        return Other(event_type=f"{event_type}:{getattr(delta, 'type', 'unknown')}")

    if event_type == "message_stop":
        return Completion()

    return Other(event_type=event_type)


def encode_event(event: UpstreamEvent) -> str | None:
    """Encode an UpstreamEvent as one normalized stream line.

    Returns:
        The ``data:`` line with its blank-line terminator, or None for
        events that are dropped.
    """
    if isinstance(event, TextDelta):
        return f"{DATA_PREFIX}{json.dumps({'text': event.text})}\n\n"
    if isinstance(event, Completion):
        return f"{DATA_PREFIX}{DONE_SENTINEL}\n\n"
    return None
