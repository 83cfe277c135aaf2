"""
Gemini Client - generative-language API interface.

Sends a single-turn prompt to generateContent and returns the reply text.
Keys come from a CredentialPool; keys that hit quota or auth errors are
rested for a while so the next attempt uses the backup key.
"""

import logging
from typing import Optional

import httpx

from ..exceptions import SummarizationError
from .credentials import CredentialPool

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
RETRYABLE_HINTS = ("quota", "limit", "busy", "overloaded")
KEY_FAILURE_STATUS = {403, 429}


class GeminiClient:
    """Simple async client for the Gemini API."""

    def __init__(
        self,
        credentials: CredentialPool,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = "gemini-pro",
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.timeout, transport=self.transport)

    async def complete(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        """Generate text from a prompt. Returns "" when the reply has no text."""
        key = self.credentials.acquire()
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.2 if temperature is None else temperature,
                "maxOutputTokens": 800 if max_output_tokens is None else max_output_tokens,
            },
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.base_url}/models/{self.model}:generateContent",
                    params={"key": key},
                    json=body,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._status_error(e.response, key) from e
        except httpx.RequestError as e:
            # Network errors and timeouts
            raise SummarizationError(f"Gemini request failed: {e!r}", retryable=True) from e

        try:
            data = response.json()
        except ValueError as e:
            # e.g. an HTML error page from a proxy in front of the API
            raise SummarizationError(
                "Gemini returned a non-JSON reply",
                status_code=response.status_code,
                retryable=True,
            ) from e

        try:
            return data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            logger.warning("Gemini reply had no text (finishReason=%s)", _finish_reason(data))
            return ""

    def _status_error(self, response: httpx.Response, key: str) -> SummarizationError:
        status = response.status_code
        error_code = None
        message = response.reason_phrase or ""
        try:
            error = response.json().get("error", {})
            error_code = error.get("status") or error.get("code")
            message = error.get("message") or message
        except (ValueError, AttributeError):
            pass

        if status in KEY_FAILURE_STATUS:
            retry_after = response.headers.get("retry-after")
            self.credentials.mark_unhealthy(key, float(retry_after) if _is_number(retry_after) else None)

        lowered = message.lower()
        retryable = (
            status in RETRYABLE_STATUS
            or error_code == "RESOURCE_EXHAUSTED"
            or any(hint in lowered for hint in RETRYABLE_HINTS)
        )
        return SummarizationError(
            f"Gemini error {status}: {message}",
            status_code=status,
            error_code=str(error_code) if error_code is not None else None,
            retryable=retryable,
        )

    async def check_health(self) -> bool:
        """Check if the API is reachable with the current key."""
        try:
            key = self.credentials.acquire()
            async with self._client(timeout=5) as client:
                response = await client.get(f"{self.base_url}/models", params={"key": key})
                return response.status_code == 200
        except Exception:
            return False


def _finish_reason(data) -> Optional[str]:
    try:
        return data["candidates"][0].get("finishReason")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None


def _is_number(value: Optional[str]) -> bool:
    try:
        float(value)
        return True
    except (TypeError, ValueError):
        return False
