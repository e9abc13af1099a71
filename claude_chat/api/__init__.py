"""FastAPI endpoints for Claude Chat.

HTTP and streaming routes with async request handling.
Streams answers as Server-Sent Events.

Endpoints:
    - GET /health: Service health status
    - POST /api/chat: Streamed chat completion
    - GET /api/models: Logical model names and the default
"""

from claude_chat.api.app import app, create_app

__all__ = ["app", "create_app"]
