"""Google Gemini provider integration."""

import logging
from typing import Any, Dict, Optional

from google import genai
from google.genai import types

from .base import BaseLLMProvider, CompletionRequest

logger = logging.getLogger(__name__)

PING_PROMPT = "Hello"


class GeminiProvider(BaseLLMProvider):
    """Gemini integration using the google-genai async client.

    Structured calls declare an explicit response schema, so the model is
    constrained server-side rather than by prompt text alone.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        ping_model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google Gemini API key
            model: Model to use for completions
            ping_model: Model used by connectivity checks (default: ``model``)
            timeout: Transport timeout in seconds
        """
        super().__init__(api_key, model)
        self.ping_model = ping_model or model
        http_options = (
            types.HttpOptions(timeout=int(timeout * 1000)) if timeout else None
        )
        self.client = genai.Client(api_key=api_key, http_options=http_options)

    async def complete(self, request: CompletionRequest) -> str:
        """
        Generate a completion using the Gemini API.

        Args:
            request: The completion request

        Returns:
            The response text, or an empty string if the model returned none
        """
        config_kwargs: Dict[str, Any] = {
            "temperature": request.temperature,
            "system_instruction": request.system_prompt,
        }
        if request.is_structured:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_schema"] = request.response_schema
        config = types.GenerateContentConfig(**config_kwargs)

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=request.prompt,
            config=config,
        )

        text = response.text or ""
        logger.debug(f"Gemini response content: {text[:500]}")
        return text

    async def ping(self) -> str:
        """Send a minimal prompt to the ping model."""
        response = await self.client.aio.models.generate_content(
            model=self.ping_model,
            contents=PING_PROMPT,
        )
        return response.text or ""

    async def close(self) -> None:
        """Close the async client's connection pool."""
        await self.client.aio.aclose()
