from fastapi import APIRouter, Depends, Request
import asyncio
import os
import time
from pydantic import TypeAdapter, ValidationError
from typing import List
from requests.exceptions import RequestException
from fancychat.core.config import Settings, get_settings
from fancychat.core.errors import (
    RelayError, InvalidInput, ConfigurationError, NetworkError,
    BadUpstreamResponse, MethodNotAllowed, InternalError, RequestTimeout, INVALID_JSON,
)
from fancychat.core.logging import setup_logger
from fancychat.models.chat import ChatMessage, ChatRequest, ChatResult, ErrorResponse, UpstreamRequest
from fancychat.services.openrouter import OpenRouterClient

router = APIRouter()
logger = setup_logger()

_messages_adapter = TypeAdapter(List[ChatMessage])

def get_openrouter_client(settings: Settings = Depends(get_settings)) -> OpenRouterClient:
    return OpenRouterClient(settings)

async def parse_chat_request(req: Request, strict: bool = False) -> ChatRequest:
    """Read the body as ``{"message": [...]}``; items are only checked when ``strict``."""
    try:
        body = await req.json()
    except ValueError as e:
        raise InvalidInput(f"body is not JSON: {str(e)}", message=INVALID_JSON) from e

    if not isinstance(body, dict) or not isinstance(body.get("message"), list):
        raise InvalidInput(f"expected a message array, got {type(body).__name__}")

    if strict:
        try:
            _messages_adapter.validate_python(body["message"])
        except ValidationError as e:
            raise InvalidInput(f"malformed message item: {e.error_count()} error(s)") from e

    return ChatRequest(message=body["message"])

@router.post(
    "/chat",
    response_model=ChatResult,
    responses={code: {"model": ErrorResponse} for code in (400, 401, 408, 429, 500, 502, 503, 504)},
)
async def chat_endpoint(
    req: Request,
    settings: Settings = Depends(get_settings),
    client: OpenRouterClient = Depends(get_openrouter_client),
):
    request_id = f"chat-{os.urandom(4).hex()}"
    start_time = time.time()
    try:
        if not settings.api_key_configured:
            logger.error(f"[{request_id}] OPENROUTER_API_KEY is not set")
            raise ConfigurationError("OPENROUTER_API_KEY missing")

        chat_request = await parse_chat_request(req, strict=settings.STRICT_MESSAGE_VALIDATION)
        upstream_request = UpstreamRequest.from_chat(
            chat_request,
            model=settings.OPENROUTER_MODEL,
            max_tokens=settings.MAX_TOKENS,
            temperature=settings.TEMPERATURE,
        )

        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(client.complete, upstream_request),
                timeout=settings.REQUEST_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as e:
            raise RequestTimeout(f"no upstream reply within {settings.REQUEST_TIMEOUT_SECONDS}s") from e
        logger.info(f"[{request_id}] Chat relayed in {time.time() - start_time:.2f}s")
        return result
    except RelayError as e:
        logger.warning(f"[{request_id}] Chat request failed with {e.status_code}: {str(e)}")
        raise
    except RequestException as e:
        logger.error(f"[{request_id}] Unmapped network error: {str(e)}")
        raise NetworkError(str(e)) from e
    except ValueError as e:
        logger.error(f"[{request_id}] Unmapped parse error: {str(e)}")
        raise BadUpstreamResponse(str(e)) from e
    except Exception as e:
        logger.exception(f"[{request_id}] Unexpected error in chat endpoint: {str(e)}")
        raise InternalError(str(e)) from e

@router.api_route("/chat", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def chat_method_not_allowed():
    raise MethodNotAllowed()
