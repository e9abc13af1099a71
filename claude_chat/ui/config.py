"""Chat page configuration with environment variable loading."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

load_dotenv()


def _optional_float(name: str) -> float | None:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


class ClientConfig(BaseModel):
    """Configuration for the chat page.

    Attributes:
        api_base_url: Base URL of the relay API.
        tavily_api_key: Tavily key for web search (search is off without it).
        search_max_results: Maximum web search hits per turn.
        request_timeout: Seconds to wait on the relay; None waits forever.
        storage_key: Key of the conversation log in browser storage.
        storage_secret: Secret signing NiceGUI's per-user storage cookie.
    """

    model_config = ConfigDict(validate_default=True)

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
        description="Relay API base URL",
    )
    tavily_api_key: str | None = Field(
        default_factory=lambda: os.getenv("TAVILY_API_KEY") or None,
        description="Tavily API key for web search",
    )
    search_max_results: int = Field(default=5, ge=1, le=20)
    request_timeout: float | None = Field(
        default_factory=lambda: _optional_float("CHAT_REQUEST_TIMEOUT"),
        gt=0,
        description="Relay request timeout in seconds (None disables it)",
    )
    storage_key: str = Field(default="claude-chat-history", min_length=1)
    storage_secret: str = Field(
        default_factory=lambda: os.getenv("NICEGUI_STORAGE_SECRET", "claude-chat-secret"),
        min_length=1,
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended."""
        return v.strip().rstrip("/")


def get_client_config() -> ClientConfig:
    """Create chat page configuration from environment."""
    return ClientConfig()
