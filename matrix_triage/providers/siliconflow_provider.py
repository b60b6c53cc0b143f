"""SiliconFlow LLM provider integration.

SiliconFlow exposes an OpenAI-compatible chat-completions API, so this
provider uses the OpenAI SDK with a different base URL.
"""

import json
import logging
from typing import Any, Dict, List

from openai import AsyncOpenAI

from .base import BaseLLMProvider, CompletionRequest

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.siliconflow.cn/v1"
DEFAULT_MODEL = "deepseek-ai/DeepSeek-V3"

PING_PROMPT = "Hello"


class SiliconFlowProvider(BaseLLMProvider):
    """SiliconFlow chat-completions integration.

    There is no native response schema here: the schema is rendered into the
    system message as explicit format instructions, and JSON-object mode is
    requested. Callers must still validate the payload.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
    ):
        """
        Initialize SiliconFlow provider.

        Args:
            api_key: SiliconFlow API key
            model: Model name (empty falls back to the default model)
            base_url: API base URL
            timeout: Transport timeout in seconds
        """
        super().__init__(api_key, model or DEFAULT_MODEL)
        # Retries are owned by RetryExecutor; the SDK must not retry on its own.
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    def build_messages(self, request: CompletionRequest) -> List[Dict[str, str]]:
        """
        Build the system + user message pair for a request.

        Args:
            request: The completion request

        Returns:
            Chat messages
        """
        system_parts = []
        if request.system_prompt:
            system_parts.append(request.system_prompt)
        if request.is_structured:
            system_parts.append(
                "Respond with valid JSON matching this schema: "
                f"{json.dumps(request.response_schema, ensure_ascii=False)}\n"
                "IMPORTANT: Return ONLY valid JSON with no markdown formatting or additional text."
            )

        messages = []
        if system_parts:
            messages.append({"role": "system", "content": "\n\n".join(system_parts)})
        messages.append({"role": "user", "content": request.prompt})
        return messages

    async def complete(self, request: CompletionRequest) -> str:
        """
        Generate a completion using the SiliconFlow API.

        Args:
            request: The completion request

        Returns:
            The message content, or an empty string if there was none

        Raises:
            openai.APIStatusError: On non-2xx responses (carries ``status_code``)
            openai.APIConnectionError: On network failures
        """
        kwargs: Dict[str, Any] = {}
        if request.is_structured:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=self.build_messages(request),
            temperature=request.temperature,
            **kwargs,
        )

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        logger.debug(f"SiliconFlow response content: {content[:500]}")
        return content

    async def ping(self) -> str:
        """Send a minimal prompt with no output-format constraint."""
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": PING_PROMPT}],
            max_tokens=8,
        )
        if response.choices:
            return response.choices[0].message.content or ""
        return ""

    async def close(self) -> None:
        """Close the OpenAI client's connection pool."""
        await self.client.close()
