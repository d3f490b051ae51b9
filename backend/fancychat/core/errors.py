from typing import Optional
from fastapi import Request
from fastapi.responses import JSONResponse


class RelayError(Exception):
    """Failure that maps to a fixed status and a message safe to show the caller.

    Subclasses pin ``status_code`` and ``message``; the text passed to the
    constructor is diagnostic only and never leaves the server.
    """
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, detail: str = "", message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(detail or message or self.message)
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidInput(RelayError):
    status_code = 400
    message = "Invalid request. Expected {message: []} in body"


class ConfigurationError(RelayError):
    status_code = 500
    message = "OpenRouter API key not configured"


class RequestTimeout(RelayError):
    status_code = 408
    message = "Request timed out. Please try again."


class UpstreamConnectionError(RelayError):
    status_code = 503
    message = "Unable to connect to AI service. Please try again later."


class UpstreamConnectTimeout(RelayError):
    status_code = 504
    message = "Connection to AI service timed out. Please try again later."


class NetworkError(RelayError):
    status_code = 502
    message = "Network error while contacting AI service."


class Unauthorized(RelayError):
    status_code = 401
    message = "Invalid API key. Please check your OpenRouter configuration."


class RateLimited(RelayError):
    status_code = 429
    message = "Rate limit exceeded. Please wait a moment and try again."


class UpstreamServerError(RelayError):
    status_code = 503
    message = "AI service is temporarily unavailable. Please try again later."


class UpstreamOtherError(RelayError):
    message = "Failed to get response from AI service"

    def __init__(self, status_code: int, detail: str = ""):
        super().__init__(detail, status_code=status_code)


class BadUpstreamResponse(RelayError):
    status_code = 502
    message = "Invalid response from AI service"


class MethodNotAllowed(RelayError):
    status_code = 405
    message = "Method not allowed. Use POST instead."


class InternalError(RelayError):
    status_code = 500
    message = "Internal server error"


INVALID_JSON = "Invalid JSON in request body"
UNEXPECTED_FORMAT = "Unexpected response format from AI service"


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
