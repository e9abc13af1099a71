"""Integration tests for the relay API and chat session working together.

Coverage:
    - POST /api/chat framing, headers and error statuses
    - /health and /api/models
    - ChatSession talking to the app through httpx ASGITransport
    - The relay driving the real Anthropic Bedrock client

Needs no AWS credentials or network access.
"""
