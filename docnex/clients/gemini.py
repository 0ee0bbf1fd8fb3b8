"""Google Gemini client.

Async wrapper over the google-genai SDK that maps provider failures onto the
AI error taxonomy and bounds every call with a timeout.
"""

from __future__ import annotations

import asyncio

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from docnex.core.config import Settings, get_settings
from docnex.core.exceptions import (
    AIConfigError,
    AIRateLimitError,
    AIServiceError,
    AITimeoutError,
    categorize_error,
)
from docnex.core.logging import get_logger


logger = get_logger(__name__)


class GeminiClient:
    """LLM client for Gemini models.

    The SDK client is created lazily so constructing a GeminiClient never
    fails; a missing key surfaces as AIConfigError on first use.

    Attributes:
        model: Gemini model identifier
        timeout: Per-call timeout in seconds
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        if api_key is None and settings.gemini_api_key is not None:
            api_key = settings.gemini_api_key.get_secret_value()
        self._api_key = api_key or None
        self.model = model or settings.gemini_model
        self.timeout = timeout or settings.llm_timeout_seconds
        self.temperature = temperature if temperature is not None else settings.gemini_temperature
        self.max_output_tokens = max_output_tokens or settings.gemini_max_output_tokens
        self._client: genai.Client | None = None

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None

    def _get_client(self) -> genai.Client:
        if self._api_key is None:
            raise AIConfigError("API Key de Gemini no configurada")
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        """Send a prompt and return the reply text.

        Raises:
            AIConfigError: Missing or rejected API key
            AIRateLimitError: Provider returned 429
            AITimeoutError: No reply within the timeout
            AIServiceError: Any other provider or transport failure, or an
                empty reply
        """
        client = self._get_client()
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )

        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=config,
                ),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            logger.warning("Gemini request timed out", model=self.model, timeout=self.timeout)
            raise AITimeoutError(f"Gemini request timed out after {self.timeout}s") from e
        except genai_errors.APIError as e:
            raise self._map_api_error(e) from e
        except Exception as e:
            logger.error("Gemini transport error", model=self.model, error=str(e))
            raise categorize_error(e) from e

        text = response.text
        if not text:
            raise AIServiceError("Gemini returned an empty response")
        return text

    def _map_api_error(self, error: genai_errors.APIError) -> Exception:
        logger.error("Gemini API error", model=self.model, code=error.code, detail=error.message)
        if error.code == 429:
            return AIRateLimitError(f"Gemini rate limit: {error.message}", retry_after=60)
        if error.code in (401, 403):
            return AIConfigError("Invalid or missing API key")
        return AIServiceError(f"Gemini API error {error.code}: {error.message}", error)

    async def close(self) -> None:
        """Close the underlying async HTTP session."""
        if self._client is not None:
            # aclose is only present on recent google-genai releases
            aclose = getattr(self._client.aio, "aclose", None)
            if aclose is not None:
                await aclose()
            self._client = None
