"""Error taxonomy shared by the relay and the client.

None of these are fatal: the relay turns them into JSON error responses and
the client recovers from the rest locally.
"""


class ChatError(Exception):
    """Base class for chat errors."""


class ValidationError(ChatError):
    """Raised when an outgoing turn is empty or carries unusable content."""


class UpstreamError(ChatError):
    """Raised when the model provider rejects the call or fails to stream."""


class TransportError(ChatError):
    """Raised when the normalized stream cannot be read by the client."""


class DecodeError(ChatError):
    """Raised for a malformed line of the normalized stream."""


class SearchError(ChatError):
    """Raised when the web search call fails."""
