import time
from typing import Any, Dict
import requests
from requests.exceptions import RequestException, ConnectTimeout, Timeout, ConnectionError
from fancychat.core.config import Settings
from fancychat.core.deadline import Deadline
from fancychat.core.errors import (
    RelayError, ConfigurationError, RequestTimeout, UpstreamConnectionError,
    UpstreamConnectTimeout, NetworkError, Unauthorized, RateLimited,
    UpstreamServerError, UpstreamOtherError, BadUpstreamResponse, UNEXPECTED_FORMAT,
)
from fancychat.core.logging import setup_logger
from fancychat.models.chat import ChatResult, UpstreamRequest

logger = setup_logger()

NO_RESPONSE = "No response generated"
UNREADABLE_BODY = "<unreadable error body>"
MAX_LOGGED_BODY = 2000

class OpenRouterClient:
    """Single-attempt client for the OpenRouter chat-completion API.

    Every call runs inside its own ``Deadline``. On expiry the streamed
    response is closed so a stalled body read fails, and a reply whose
    headers land after the deadline is reported as a timeout. The wait for
    headers is bounded by the caller, see ``routes.chat``.
    Failures come back as ``RelayError`` subclasses with caller-safe messages.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.OPENROUTER_API_KEY}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.settings.APP_URL or "http://localhost:3000",
            "X-Title": self.settings.APP_NAME or "FancyChat App",
        }

    def complete(self, upstream_request: UpstreamRequest) -> ChatResult:
        if not self.settings.api_key_configured:
            raise ConfigurationError("complete() called without an API key")

        url = self.settings.OPENROUTER_URL
        logger.info(f"Sending {len(upstream_request.messages)} message(s) to {url} (model={upstream_request.model})")
        start_time = time.monotonic()

        with requests.Session() as session, Deadline(self.settings.REQUEST_TIMEOUT_SECONDS) as deadline:
            try:
                response = session.post(
                    url,
                    headers=self.headers(),
                    json=upstream_request.model_dump(),
                    timeout=(self.settings.CONNECT_TIMEOUT_SECONDS, max(deadline.remaining(), 0.001)),
                    stream=True,
                )
            except RequestException as e:
                raise self.transport_error(e, deadline) from e

            deadline.on_expire(response.close)
            try:
                if deadline.expired:
                    raise RequestTimeout(f"upstream answered {response.status_code} after the deadline")
                if not 200 <= response.status_code < 300:
                    self.raise_for_upstream_status(response)
                try:
                    response.content  # consume the streamed body
                except Exception as e:
                    if deadline.expired:
                        raise RequestTimeout(f"deadline hit while reading body: {str(e)}") from e
                    if isinstance(e, RequestException):
                        raise self.transport_error(e, deadline) from e
                    raise
                if deadline.expired:
                    raise RequestTimeout("deadline hit before body was consumed")
            finally:
                response.close()

        logger.info(f"OpenRouter responded {response.status_code} in {time.monotonic() - start_time:.2f}s")
        return self.parse_completion(response)

    @staticmethod
    def transport_error(error: RequestException, deadline: Deadline) -> RelayError:
        if isinstance(error, ConnectTimeout):
            logger.error(f"Connection to OpenRouter timed out: {str(error)}")
            return UpstreamConnectTimeout(str(error))
        if deadline.expired or isinstance(error, Timeout):
            logger.error(f"OpenRouter request timed out after {deadline.seconds}s")
            return RequestTimeout(str(error))
        if isinstance(error, ConnectionError):
            logger.error(f"Could not connect to OpenRouter: {str(error)}")
            return UpstreamConnectionError(str(error))
        logger.error(f"Network error talking to OpenRouter: {str(error)}")
        return NetworkError(str(error))

    @staticmethod
    def raise_for_upstream_status(response: requests.Response) -> None:
        status = response.status_code
        try:
            error_body = response.text[:MAX_LOGGED_BODY]
        except Exception as e:
            logger.debug(f"Could not read upstream error body: {str(e)}")
            error_body = UNREADABLE_BODY
        logger.error(f"OpenRouter API error ({status}): {error_body}")

        if status == 401:
            raise Unauthorized(f"upstream returned {status}")
        if status == 429:
            raise RateLimited(f"upstream returned {status}")
        if status >= 500:
            raise UpstreamServerError(f"upstream returned {status}")
        raise UpstreamOtherError(status, f"upstream returned {status}")

    @staticmethod
    def parse_completion(response: requests.Response) -> ChatResult:
        try:
            data: Any = response.json()
        except ValueError as e:
            logger.error(f"OpenRouter returned a body that is not JSON: {str(e)}")
            raise BadUpstreamResponse(str(e)) from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            logger.error(f"OpenRouter response has no usable choices: {str(data)[:MAX_LOGGED_BODY]}")
            raise BadUpstreamResponse("missing or empty choices", message=UNEXPECTED_FORMAT)

        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content:
            content = NO_RESPONSE

        return ChatResult(success=True, response=content, usage=data.get("usage"))
