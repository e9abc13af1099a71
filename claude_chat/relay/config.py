"""Relay configuration with environment variable loading.

Pydantic-based configuration for the Bedrock relay. AWS credentials are not
stored here; the Anthropic Bedrock client picks them up from the default
provider chain (environment, shared config, instance role).
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file
load_dotenv()

# Logical model names offered by the UI, mapped to Bedrock inference profiles.
MODEL_IDS: dict[str, str] = {
    "sonnet-4.5": "us.anthropic.claude-sonnet-4-5-20250929-v1:0",
    "opus-4.1": "us.anthropic.claude-opus-4-1-20250805-v1:0",
}
DEFAULT_MODEL = "sonnet-4.5"


class RelayConfig(BaseModel):
    """Configuration for the Bedrock relay.

    Attributes:
        aws_region: AWS region hosting the Bedrock runtime.
        default_model: Logical model used when a request names an unknown one.
        max_tokens: Maximum tokens in the generated answer.
        temperature: Sampling temperature, fixed for every request.
        thinking_budget_tokens: Token budget for extended thinking.
    """

    # Values read from the environment go through the validators too.
    model_config = ConfigDict(validate_default=True)

    aws_region: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region of the Bedrock runtime",
    )
    default_model: str = Field(
        default_factory=lambda: os.getenv("CHAT_DEFAULT_MODEL", DEFAULT_MODEL),
        description="Fallback logical model name",
    )
    max_tokens: int = Field(
        default=4096,
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    temperature: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for response generation",
    )
    thinking_budget_tokens: int = Field(
        default=10000,
        ge=1024,
        description="Token budget for extended thinking",
    )

    @field_validator("aws_region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        """Validate that a region is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError("AWS region required. Set AWS_REGION in .env")
        return v.strip()

    @field_validator("default_model")
    @classmethod
    def validate_default_model(cls, v: str) -> str:
        """Validate that the fallback model is one of the known names."""
        if v not in MODEL_IDS:
            known = ", ".join(sorted(MODEL_IDS))
            raise ValueError(f"Unknown default model '{v}'. Expected one of: {known}")
        return v


def get_relay_config() -> RelayConfig:
    """Create relay configuration from environment.

    Returns:
        Configured RelayConfig instance.

    Raises:
        ValueError: If the region is blank or the default model is unknown.
    """
    return RelayConfig()
