"""Unit tests for individual components in isolation.

Coverage:
    - relay/: Request composition, event classification, Bedrock service
    - ui/: Stream decoding, conversation log, attachments, search, session
    - config: Environment loading and validation

External services (Bedrock, Tavily, the relay API) are replaced by fakes
or httpx MockTransport.
"""
