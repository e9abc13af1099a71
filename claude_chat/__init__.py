"""Claude Chat - a streaming chat client for Claude models on AWS Bedrock.

Combines FastAPI for the streaming relay, the Anthropic SDK for the upstream
Bedrock call, NiceGUI for the chat page, and Pydantic for data validation.

Components:
    - api: HTTP endpoints and the normalized event stream
    - relay: request composition, upstream streaming, event normalization
    - ui: chat page, conversation log, stream consumer, attachments, search
    - models: Request/response schemas
"""

__version__ = "0.1.0"
