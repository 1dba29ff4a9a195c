"""Gemini language model client.

Implements ILanguageModelClient on top of the google-genai SDK. The system
prompt is passed as `system_instruction` and JSON output is requested via the
response MIME type. Any SDK or transport failure becomes ModelClientError.

When no API key is configured, DisabledModelClient is wired instead and the
AI step degrades with reason model_error.
"""

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from labor_compliance_engine.errors import ModelClientError
from labor_compliance_engine.observability import get_logger
from labor_compliance_engine.settings import Settings

logger = get_logger(__name__)


class GeminiModelClient:
    """Async Gemini completion client.

    Args:
        api_key: Gemini API key.
        model: Model name, e.g. gemini-2.5-flash.
        temperature: Sampling temperature.
        max_output_tokens: Response token cap.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
    ) -> None:
        # Some environments only expose the bare model name, not "-latest"
        if model.endswith("-latest"):
            model = model[: -len("-latest")]
        self._client = genai.Client(api_key=api_key)
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one system + user message pair and return the response text.

        Raises:
            ModelClientError: If the API call fails.
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=[types.Content(role="user", parts=[types.Part(text=user_prompt)])],
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=self._temperature,
                    max_output_tokens=self._max_output_tokens,
                    response_mime_type="application/json",
                ),
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise ModelClientError(f"Gemini request failed: {exc}") from exc

        return (response.text or "").strip()


class DisabledModelClient:
    """Model client used when no API key is configured. Every call fails."""

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        raise ModelClientError("No language model configured (LABOR_COMPLIANCE_GEMINI_API_KEY is empty)")


def build_model_client(settings: Settings) -> GeminiModelClient | DisabledModelClient:
    """Build the model client for the configured settings."""
    if not settings.gemini_api_key:
        logger.warning("Gemini API key not set, AI compliance analysis disabled")
        return DisabledModelClient()
    return GeminiModelClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        temperature=settings.ai_temperature,
    )
