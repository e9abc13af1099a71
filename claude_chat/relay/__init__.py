"""Relay between the chat page and Claude on Bedrock.

Responsibilities:
    - Composing the upstream request from the chat history
    - Mapping logical model names to Bedrock model identifiers
    - Opening one streaming call per turn
    - Re-encoding provider events as the normalized event stream

Maintains clean separation from the HTTP layer.
"""

from claude_chat.relay.bedrock import RelayService, get_relay_service
from claude_chat.relay.composer import UpstreamRequest, compose_request, resolve_model_id
from claude_chat.relay.config import RelayConfig, get_relay_config

__all__ = [
    "RelayConfig",
    "RelayService",
    "UpstreamRequest",
    "compose_request",
    "get_relay_config",
    "get_relay_service",
    "resolve_model_id",
]
