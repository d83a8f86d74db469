"""Async transport client for the Gemini ``generateContent`` endpoint.

This module provides :class:`GeminiClient`, the only component that talks to
the outside world.  One call sends the fixed system instruction plus the
user's prompt and returns the model's raw text.

Request Shape
-------------
::

    POST {api_base_url}/models/{model_name}:generateContent
    x-goog-api-key: <credential>

    {
      "systemInstruction": {"role": "system", "parts": [{"text": SYSTEM_INSTRUCTION}]},
      "contents": [{"role": "user", "parts": [{"text": <user prompt>}]}],
      "generationConfig": {"temperature": 0.1, "responseMimeType": "application/json"}
    }

Failure Handling
----------------
- Blank prompt → :class:`InvalidPromptError`, no network call.
- Missing credential → :class:`ConfigurationError`, no network call.
- Request errors (transport failures, timeouts, undecodable bodies) and
  statuses 429/500/502/503/504 are retried with exponential backoff
  (``backoff_seconds * 2**attempt``) up to ``retry_attempts`` total
  attempts, then raised as a retryable :class:`ProviderError`.
- Any other error status → non-retryable :class:`ProviderError` at once.
- No text in the first candidate → :class:`EmptyResponseError`.

Concurrency
-----------
A single ``httpx.AsyncClient`` is shared by all requests for connection
pooling.  Nothing else is mutable, so concurrent ``generate`` calls need no
locking.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from diagramgen.core.config import DiagramgenConfig
from diagramgen.core.errors import (
    ConfigurationError,
    EmptyResponseError,
    InvalidPromptError,
    ProviderError,
)
from diagramgen.core.prompt_template import SYSTEM_INSTRUCTION

logger = logging.getLogger(__name__)

# Provider statuses worth another attempt.
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class GeminiClient:
    """Send one prompt to Gemini and return the raw response text.

    Attributes:
        _config (DiagramgenConfig):
            Provider, transport, and retry settings.
        _system_instruction (str):
            Instruction text sent with every request.
        _http (httpx.AsyncClient):
            Pooled HTTP client used for all calls.
    """

    def __init__(
        self,
        config: DiagramgenConfig,
        *,
        system_instruction: str = SYSTEM_INSTRUCTION,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            config: Application configuration.
            system_instruction: Override for the fixed instruction text.
            transport: Optional httpx transport, used by tests to stub the
                provider.
        """
        self._config = config
        self._system_instruction = system_instruction
        self._http = httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=config.request_timeout,
            transport=transport,
        )

    @property
    def model_name(self) -> str:
        return self._config.model_name

    def build_payload(self, user_prompt: str) -> dict[str, Any]:
        """Build the ``generateContent`` request body.

        Args:
            user_prompt: Already-validated user prompt.

        Returns:
            JSON-serialisable request body.
        """
        return {
            "systemInstruction": {
                "role": "system",
                "parts": [{"text": self._system_instruction}],
            },
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {
                "temperature": self._config.temperature,
                "responseMimeType": self._config.response_mime_type,
            },
        }

    async def generate(self, user_prompt: str | None) -> str:
        """Send *user_prompt* to the provider and return the raw text.

        Args:
            user_prompt: Natural-language diagram request.

        Returns:
            The model's response text, unmodified.

        Raises:
            InvalidPromptError: If the prompt is missing or blank.
            ConfigurationError: If no credential is configured.
            ProviderError: On transport failure or an error status.
            EmptyResponseError: If the provider returned no text.
        """
        if user_prompt is None or not user_prompt.strip():
            raise InvalidPromptError("A non-empty userPrompt is required.")

        if not self._config.has_credential:
            raise ConfigurationError("GEMINI_API_KEY environment variable not set.")

        data = await self._post_with_retry(self.build_payload(user_prompt))
        text = self._extract_text(data)
        if not text.strip():
            raise EmptyResponseError("Received an empty response from the API.")
        return text

    async def aclose(self) -> None:
        """Close the pooled HTTP client."""
        await self._http.aclose()

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    # -- Internal helpers ---------------------------------------------------

    def _backoff(self, attempt: int) -> float:
        return self._config.backoff_seconds * (2**attempt)

    async def _post_with_retry(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST *payload*, retrying transient failures.

        Returns:
            The decoded JSON response envelope.

        Raises:
            ProviderError: After retry exhaustion or on a non-retryable
                status.
        """
        url = f"/models/{self._config.model_name}:generateContent"
        headers = {"x-goog-api-key": self._config.gemini_api_key or ""}
        attempts = self._config.retry_attempts

        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                response = await self._http.post(url, json=payload, headers=headers)
            except httpx.RequestError as e:
                # Transport failures, timeouts and undecodable bodies alike.
                logger.warning(
                    f"Provider request failed (attempt {attempt + 1}/{attempts}): "
                    f"{type(e).__name__}"
                )
                if last_attempt:
                    raise ProviderError(
                        f"Provider request failed: {type(e).__name__}",
                        retryable=True,
                    ) from e
                await asyncio.sleep(self._backoff(attempt))
                continue

            status = response.status_code
            if status in RETRYABLE_STATUSES:
                logger.warning(
                    f"Provider returned HTTP {status} (attempt {attempt + 1}/{attempts})"
                )
                if last_attempt:
                    raise ProviderError(
                        f"Provider unavailable after {attempts} attempts (HTTP {status}).",
                        retryable=True,
                        status=status,
                    )
                await asyncio.sleep(self._backoff(attempt))
                continue

            if status >= 400:
                logger.error(f"Provider rejected the request with HTTP {status}")
                raise ProviderError(
                    f"Provider rejected the request (HTTP {status}).",
                    retryable=False,
                    status=status,
                )

            try:
                return response.json()
            except ValueError as e:
                raise ProviderError(
                    "Provider returned a response that is not JSON.",
                    retryable=True,
                    status=status,
                ) from e

        # Unreachable while retry_attempts >= 1.
        raise ProviderError("Provider request was not attempted.")

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        """Concatenate the text parts of the first candidate.

        Raises:
            ProviderError: If the envelope does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ProviderError("Provider response envelope is not an object.")

        candidates = data.get("candidates") or []
        if not candidates:
            return ""

        try:
            parts = candidates[0].get("content", {}).get("parts", [])
            return "".join(part.get("text", "") for part in parts)
        except (AttributeError, TypeError) as e:
            raise ProviderError("Provider response envelope has an unexpected shape.") from e
