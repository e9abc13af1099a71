"""Test package for Claude Chat.

Structure:
    - unit/: Relay, stream consumer and client-side pieces in isolation
    - integration/: The FastAPI app and the chat session end to end

Bedrock is never called. Most tests replay stream events through a fake
client; test_bedrock_sdk.py drives the real SDK over a mock transport.
Leverages pytest with pytest-check for soft assertions.
"""
