"""Bedrock relay service: one upstream streaming call per chat turn.

Wraps the Anthropic SDK's Bedrock client with:
- Conversion of composed content blocks to Messages API blocks
- A single stream-opening call whose failures surface before any output
- Re-encoding of provider events as the normalized event stream
- Singleton lifecycle management

There is no retry and no resume. A failed call is reported to the caller,
who starts a new turn.
"""

import base64
import logging
from collections.abc import AsyncGenerator, AsyncIterable
from typing import Any

from anthropic import APIError, AsyncAnthropicBedrock
from botocore.exceptions import BotoCoreError

from claude_chat.errors import UpstreamError
from claude_chat.relay.composer import (
    PDF_FORMATS,
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    UpstreamRequest,
)
from claude_chat.relay.config import RelayConfig, get_relay_config
from claude_chat.relay.events import Completion, classify_event, encode_event

logger = logging.getLogger(__name__)

_IMAGE_MEDIA_TYPES = {"jpg": "jpeg"}


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def to_provider_block(block: ContentBlock) -> dict[str, Any]:
    """Convert a composed content block to a Messages API block."""
    if isinstance(block, ImageBlock):
        subtype = _IMAGE_MEDIA_TYPES.get(block.format, block.format)
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": f"image/{subtype}",
                "data": _b64(block.data),
            },
        }

    if isinstance(block, DocumentBlock):
        if block.format in PDF_FORMATS:
            source = {
                "type": "base64",
                "media_type": "application/pdf",
                "data": _b64(block.data),
            }
        else:
            source = {
                "type": "text",
                "media_type": "text/plain",
                "data": block.data.decode("utf-8", errors="replace"),
            }
        return {"type": "document", "source": source, "title": block.name}

    return {"type": "text", "text": block.text}


def build_request_params(request: UpstreamRequest) -> dict[str, Any]:
    """Build keyword arguments for ``messages.create``.

    Optional fields (system, thinking) are left out entirely when unused.
    """
    params: dict[str, Any] = {
        "model": request.model_id,
        "messages": [
            {
                "role": message.role,
                "content": [to_provider_block(block) for block in message.content],
            }
            for message in request.messages
        ],
        "max_tokens": request.max_tokens,
        # Not a create() keyword in current SDK releases.
        "extra_body": {"temperature": request.temperature},
    }

    if request.system:
        params["system"] = [{"type": "text", "text": text} for text in request.system]

    if request.thinking is not None:
        params["thinking"] = request.thinking

    return params


class RelayService:
    """Service for streaming chat turns from Claude on Bedrock."""

    def __init__(
        self,
        config: RelayConfig | None = None,
        client: AsyncAnthropicBedrock | None = None,
    ) -> None:
        """Initialize the relay service.

        Args:
            config: Optional relay configuration.
                    Loads from environment if not provided.
            client: Optional pre-built client (tests inject fakes here).
        """
        self._config = config or get_relay_config()
        self._client = client or self._create_client()

    @property
    def config(self) -> RelayConfig:
        return self._config

    def _create_client(self) -> AsyncAnthropicBedrock:
        """Create the Bedrock client.

        Credentials come from the AWS default chain: environment variables
        in local development, the instance or task role when deployed.
        """
        return AsyncAnthropicBedrock(aws_region=self._config.aws_region)

    async def open_stream(self, request: UpstreamRequest) -> AsyncIterable[Any]:
        """Open the upstream event stream for a composed request.

        Args:
            request: The composed upstream request.

        Returns:
            The provider's async event stream.

        Raises:
            UpstreamError: If the provider rejects the call or AWS
                credentials cannot be resolved.
        """
        params = build_request_params(request)
        logger.info(
            f"Opening upstream stream model={request.model_id} "
            f"messages={len(request.messages)} thinking={request.thinking is not None}"
        )
        try:
            return await self._client.messages.create(stream=True, **params)
        except (APIError, BotoCoreError, RuntimeError) as e:
            # The request signer raises RuntimeError when no credentials resolve.
            logger.error(f"Upstream call failed: {e}")
            raise UpstreamError(str(e)) from e

    async def normalize(self, stream: AsyncIterable[Any]) -> AsyncGenerator[str]:
        """Re-encode provider events as normalized stream lines.

        Yields one ``data:`` line per text delta and the ``[DONE]`` line on
        completion, after which the stream ends. All other events are
        dropped. Errors mid-stream are logged and re-raised, which aborts
        the HTTP response.

        Args:
            stream: Provider event stream from open_stream.

        Yields:
            Normalized event lines.
        """
        try:
            async for raw_event in stream:
                event = classify_event(raw_event)
                line = encode_event(event)
                if line is None:
                    continue
                yield line
                if isinstance(event, Completion):
                    return
        except Exception as e:
            logger.error(f"Stream error: {e}")
            raise
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                await close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()


# Module-level singleton instance
_relay_service: RelayService | None = None


def get_relay_service() -> RelayService:
    """Get or create the global relay service.

    Returns:
        The RelayService instance.
    """
    global _relay_service
    if _relay_service is None:
        _relay_service = RelayService()
    return _relay_service
