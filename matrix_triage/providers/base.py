"""Base class for LLM providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CompletionRequest:
    """A single completion call.

    Attributes:
        prompt: User prompt text
        response_schema: JSON schema for structured output; None for free text
        temperature: Sampling temperature (0.0 to 1.0)
        system_prompt: Optional system instruction
    """

    prompt: str
    response_schema: Optional[Dict[str, Any]] = None
    temperature: float = 0.7
    system_prompt: Optional[str] = None

    @property
    def is_structured(self) -> bool:
        """Whether the caller expects a JSON payload."""
        return self.response_schema is not None


class BaseLLMProvider(ABC):
    """Abstract base class for LLM provider integrations.

    Providers are cheap request builders, created fresh for every
    orchestration call. They raise their SDK's exceptions unchanged; retry
    and classification happen in ``RetryExecutor``.
    """

    def __init__(self, api_key: str, model: str):
        """
        Initialize the LLM provider.

        Args:
            api_key: API key for the provider
            model: Model identifier to use
        """
        self.api_key = api_key
        self.model = model

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> str:
        """
        Run one completion and return the raw text payload.

        Args:
            request: The completion request

        Returns:
            The generated text (possibly empty)

        Raises:
            Exception: If the API call fails
        """

    @abstractmethod
    async def ping(self) -> str:
        """
        Run a minimal, unstructured completion to verify credentials and reachability.

        Returns:
            The generated text
        """

    async def close(self) -> None:
        """
        Release the SDK client's connection pool.

        Providers are built per call, so callers close them when the call ends.
        """

    def get_provider_name(self) -> str:
        """
        Get the name of this provider.

        Returns:
            Provider name ("gemini" or "siliconflow")
        """
        return self.__class__.__name__.replace("Provider", "").lower()
