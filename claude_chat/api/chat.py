"""Chat relay endpoint.

Composes the upstream request, opens the Bedrock stream, and returns the
normalized event stream. Failures that happen before the stream opens are
reported as JSON error responses; nothing is streamed in that case.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, Response, StreamingResponse

from claude_chat.errors import UpstreamError, ValidationError
from claude_chat.models.schemas import ChatRequest, ErrorResponse
from claude_chat.relay.bedrock import get_relay_service
from claude_chat.relay.composer import compose_request
from claude_chat.relay.config import MODEL_IDS, get_relay_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@router.post(
    "/chat",
    response_model=None,
    responses={
        200: {"content": {"text/event-stream": {}}},
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def chat(request: ChatRequest) -> Response:
    """Stream a chat completion as server-sent events.

    The body is a sequence of ``data: {"text": ...}`` lines terminated by
    ``data: [DONE]``.

    Raises:
        400: Empty turn or unusable attachment.
        422: Malformed request body.
        500: Relay misconfiguration or unexpected failure.
        502: The model provider rejected the call.
    """
    try:
        service = get_relay_service()
        upstream = compose_request(
            request.messages,
            request.model,
            request.extended_thinking,
            request.search_results,
            service.config,
        )
        stream = await service.open_stream(upstream)
    except ValidationError as e:
        logger.warning(f"Rejected chat request: {e}")
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except UpstreamError as e:
        return _error(status.HTTP_502_BAD_GATEWAY, str(e))
    except Exception as e:
        logger.exception("API Error")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(e) or "Failed to process request",
        )

    return StreamingResponse(
        service.normalize(stream),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/models")
async def list_models() -> dict[str, list[str] | str]:
    """List the logical model names the relay accepts."""
    return {"models": list(MODEL_IDS), "default": get_relay_config().default_model}
