"""Provider selection.

This is the only place that branches on ``ProviderConfig.ai_provider``.
"""

import logging
from typing import Optional

from ..config import Settings, settings as default_settings
from ..infrastructure.error_classifier import (
    MISSING_GEMINI_KEY_MESSAGE,
    MISSING_SILICONFLOW_KEY_MESSAGE,
    MissingCredentialsError,
)
from ..models import AIModel, AIProvider, ProviderConfig
from .base import BaseLLMProvider
from .gemini_provider import GeminiProvider
from .siliconflow_provider import SiliconFlowProvider

logger = logging.getLogger(__name__)


def resolve_gemini_model(config: ProviderConfig, app_settings: Settings) -> str:
    """Map the flash/pro flag to a Gemini model identifier."""
    if config.ai_model == AIModel.PRO:
        return app_settings.gemini_pro_model
    return app_settings.gemini_flash_model


def create_provider(
    config: ProviderConfig, app_settings: Optional[Settings] = None
) -> BaseLLMProvider:
    """Build a fresh provider for one orchestration call.

    Args:
        config: Per-call provider configuration
        app_settings: Service settings (default: global settings)

    Returns:
        A provider instance

    Raises:
        MissingCredentialsError: If no API key is available. Gemini falls
            back to the environment; SiliconFlow does not.
    """
    app_settings = app_settings or default_settings

    if config.ai_provider == AIProvider.SILICONFLOW:
        if not config.silicon_flow_api_key:
            raise MissingCredentialsError(
                MISSING_SILICONFLOW_KEY_MESSAGE, provider="siliconflow"
            )
        return SiliconFlowProvider(
            api_key=config.silicon_flow_api_key,
            model=config.silicon_flow_model or app_settings.siliconflow_default_model,
            base_url=app_settings.siliconflow_base_url,
            timeout=app_settings.request_timeout,
        )

    api_key = config.gemini_api_key or app_settings.gemini_api_key
    if not api_key:
        raise MissingCredentialsError(MISSING_GEMINI_KEY_MESSAGE, provider="gemini")
    if not config.gemini_api_key:
        logger.debug("Using Gemini API key from environment")
    return GeminiProvider(
        api_key=api_key,
        model=resolve_gemini_model(config, app_settings),
        ping_model=app_settings.gemini_flash_model,
        timeout=app_settings.request_timeout,
    )
