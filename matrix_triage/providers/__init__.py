"""LLM provider integrations."""

from .base import BaseLLMProvider, CompletionRequest
from .factory import create_provider
from .gemini_provider import GeminiProvider
from .siliconflow_provider import SiliconFlowProvider

__all__ = [
    "BaseLLMProvider",
    "CompletionRequest",
    "GeminiProvider",
    "SiliconFlowProvider",
    "create_provider",
]
