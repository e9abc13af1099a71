"""Unit tests for the Bedrock relay service."""

import base64
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest
from anthropic import APIConnectionError
from botocore.exceptions import NoCredentialsError

from claude_chat.errors import UpstreamError
from claude_chat.relay.bedrock import (
    RelayService,
    build_request_params,
    get_relay_service,
    to_provider_block,
)
from claude_chat.relay.composer import (
    DocumentBlock,
    ImageBlock,
    TextBlock,
    UpstreamMessage,
    UpstreamRequest,
)
from claude_chat.relay.config import RelayConfig
from tests.conftest import FakeStream, event, message_stop, reply, text_delta, thinking_delta


def make_request(**overrides) -> UpstreamRequest:
    fields = {
        "model_id": "us.anthropic.claude-sonnet-4-5-20250929-v1:0",
        "messages": [UpstreamMessage(role="user", content=[TextBlock(text="Hello")])],
        "max_tokens": 4096,
        "temperature": 1.0,
    }
    fields.update(overrides)
    return UpstreamRequest(**fields)


async def collect(service: RelayService, stream: FakeStream) -> list[str]:
    return [line async for line in service.normalize(stream)]


class TestProviderBlocks:
    """Composed blocks become Messages API blocks."""

    def test_text_block(self) -> None:
        assert to_provider_block(TextBlock(text="hi")) == {"type": "text", "text": "hi"}

    def test_image_block_is_base64(self) -> None:
        block = to_provider_block(ImageBlock(format="png", data=b"\x89PNG"))

        assert block["type"] == "image"
        assert block["source"]["type"] == "base64"
        assert block["source"]["media_type"] == "image/png"
        assert base64.b64decode(block["source"]["data"]) == b"\x89PNG"

    def test_jpg_is_normalized_to_jpeg(self) -> None:
        block = to_provider_block(ImageBlock(format="jpg", data=b"x"))

        assert block["source"]["media_type"] == "image/jpeg"

    def test_pdf_document(self) -> None:
        block = to_provider_block(DocumentBlock(format="pdf", name="a.pdf", data=b"%PDF"))

        assert block["type"] == "document"
        assert block["title"] == "a.pdf"
        assert block["source"]["media_type"] == "application/pdf"
        assert base64.b64decode(block["source"]["data"]) == b"%PDF"

    def test_text_document(self) -> None:
        block = to_provider_block(
            DocumentBlock(format="txt", name="notes.txt", data="héllo".encode())
        )

        assert block["source"] == {"type": "text", "media_type": "text/plain", "data": "héllo"}
        assert block["title"] == "notes.txt"


class TestBuildRequestParams:
    """Optional fields are omitted rather than sent empty."""

    def test_minimal_params(self) -> None:
        params = build_request_params(make_request())

        assert params == {
            "model": "us.anthropic.claude-sonnet-4-5-20250929-v1:0",
            "messages": [{"role": "user", "content": [{"type": "text", "text": "Hello"}]}],
            "max_tokens": 4096,
            "extra_body": {"temperature": 1.0},
        }
        assert "system" not in params
        assert "thinking" not in params

    def test_system_and_thinking(self) -> None:
        params = build_request_params(
            make_request(
                system=["Use these results"],
                thinking={"type": "enabled", "budget_tokens": 10000},
            )
        )

        assert params["system"] == [{"type": "text", "text": "Use these results"}]
        assert params["thinking"] == {"type": "enabled", "budget_tokens": 10000}


class TestOpenStream:
    """Opening the upstream call."""

    async def test_calls_create_with_stream(
        self, relay_config: RelayConfig, fake_bedrock: SimpleNamespace
    ) -> None:
        service = RelayService(config=relay_config, client=fake_bedrock)

        stream = await service.open_stream(make_request())

        assert isinstance(stream, FakeStream)
        kwargs = fake_bedrock.messages.create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["model"] == "us.anthropic.claude-sonnet-4-5-20250929-v1:0"

    async def test_provider_error_becomes_upstream_error(
        self, relay_config: RelayConfig, fake_bedrock: SimpleNamespace
    ) -> None:
        request = httpx.Request("POST", "https://bedrock-runtime.us-east-1.amazonaws.com")
        fake_bedrock.messages.create.side_effect = APIConnectionError(request=request)
        service = RelayService(config=relay_config, client=fake_bedrock)

        with pytest.raises(UpstreamError):
            await service.open_stream(make_request())

        fake_bedrock.messages.create.assert_called_once()

    @pytest.mark.parametrize(
        "error",
        [RuntimeError("could not resolve credentials from session"), NoCredentialsError()],
    )
    async def test_credential_failure_becomes_upstream_error(
        self, relay_config: RelayConfig, fake_bedrock: SimpleNamespace, error: Exception
    ) -> None:
        fake_bedrock.messages.create.side_effect = error
        service = RelayService(config=relay_config, client=fake_bedrock)

        with pytest.raises(UpstreamError, match="credentials"):
            await service.open_stream(make_request())


class TestNormalize:
    """Re-encoding the provider stream."""

    async def test_deltas_then_done(
        self, relay_config: RelayConfig, fake_bedrock: SimpleNamespace
    ) -> None:
        service = RelayService(config=relay_config, client=fake_bedrock)
        stream = FakeStream(reply("Hi", " there", "!"))

        lines = await collect(service, stream)

        assert lines == [
            'data: {"text": "Hi"}\n\n',
            'data: {"text": " there"}\n\n',
            'data: {"text": "!"}\n\n',
            "data: [DONE]\n\n",
        ]
        assert stream.closed

    async def test_thinking_and_framing_events_are_dropped(
        self, relay_config: RelayConfig, fake_bedrock: SimpleNamespace
    ) -> None:
        service = RelayService(config=relay_config, client=fake_bedrock)
        stream = FakeStream(
            [event("message_start"), thinking_delta("hmm"), text_delta("ok"), message_stop()]
        )

        lines = await collect(service, stream)

        assert lines == ['data: {"text": "ok"}\n\n', "data: [DONE]\n\n"]

    async def test_stops_after_completion(
        self, relay_config: RelayConfig, fake_bedrock: SimpleNamespace
    ) -> None:
        service = RelayService(config=relay_config, client=fake_bedrock)
        stream = FakeStream([text_delta("a"), message_stop(), text_delta("late")])

        lines = await collect(service, stream)

        assert lines[-1] == "data: [DONE]\n\n"
        assert all("late" not in line for line in lines)

    async def test_mid_stream_error_is_reraised(
        self, relay_config: RelayConfig, fake_bedrock: SimpleNamespace
    ) -> None:
        service = RelayService(config=relay_config, client=fake_bedrock)
        stream = FakeStream([text_delta("par")], error=RuntimeError("connection reset"))

        lines: list[str] = []
        with pytest.raises(RuntimeError, match="connection reset"):
            async for line in service.normalize(stream):
                lines.append(line)

        assert lines == ['data: {"text": "par"}\n\n']
        assert stream.closed


class TestRelayServiceInit:
    """Client construction and singleton lifecycle."""

    @patch("claude_chat.relay.bedrock.AsyncAnthropicBedrock")
    def test_creates_bedrock_client_for_region(self, mock_client_class: MagicMock) -> None:
        config = RelayConfig(aws_region="eu-west-1")

        service = RelayService(config=config)

        mock_client_class.assert_called_once_with(aws_region="eu-west-1")
        assert service.config == config

    def test_singleton_returns_same_instance(self) -> None:
        import claude_chat.relay.bedrock as bedrock_module

        bedrock_module._relay_service = None

        with patch.object(bedrock_module, "RelayService") as mock_service:
            mock_service.return_value = MagicMock()

            first = get_relay_service()
            second = get_relay_service()

            assert first is second
            mock_service.assert_called_once()

        bedrock_module._relay_service = None
