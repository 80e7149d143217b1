# =============================================================================
# core/perplexity.py  —  Upstream Client for the Perplexity Chat API
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Sends ONE chat-completion request to Perplexity and pulls the answer text
#   out of the response.  It knows nothing about MCP.
#
# REQUEST:
#   POST <api_url>
#   Authorization: Bearer <api_key>
#   Content-Type: application/json
#   {"model": "<model>", "messages": [{"role": "user", "content": "<query>"}]}
#
# RESPONSE (the only part we read):
#   {"choices": [{"message": {"content": "<answer>"}}], ...}
#
# RESOURCES:
#   A fresh httpx.AsyncClient is opened per call inside `async with`, so the
#   connection is released on success, failure, and cancellation alike.
#   No retries: a failed call surfaces immediately.
# =============================================================================

import logging
from typing import Any, Optional

import httpx

from core.config import Settings

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The upstream API could not produce an answer."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(UpstreamError):
    """The upstream answered 2xx but the body was not the expected shape."""


def build_payload(model: str, query: str) -> dict:
    """Build the chat-completions request body for a single user question."""
    return {
        "model": model,
        "messages": [
            {"role": "user", "content": query},
        ],
    }


def extract_answer(data: Any) -> str:
    """Return choices[0].message.content, or raise MalformedResponseError."""
    if not isinstance(data, dict):
        raise MalformedResponseError("malformed response: body is not a JSON object")

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise MalformedResponseError("malformed response: missing 'choices'")

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise MalformedResponseError("malformed response: missing 'choices[0].message.content'")

    return content


class PerplexityClient:
    """Thin async wrapper around the chat-completions endpoint."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings
        # Tests inject httpx.MockTransport here.
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
        }

    async def search(self, query: str) -> str:
        """Ask Perplexity one question and return the answer text.

        Raises:
            UpstreamError: Non-2xx status, timeout or network failure.
            MalformedResponseError: 2xx status with an unexpected body.
        """
        payload = build_payload(self._settings.model, query)

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._settings.api_url,
                    headers=self._headers(),
                    json=payload,
                )
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"request timed out after {self._settings.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"network error: {e}") from e

        logger.debug("Upstream responded with HTTP %s", response.status_code)

        if not response.is_success:
            raise UpstreamError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("malformed response: body is not valid JSON") from e

        return extract_answer(data)
