"""Configuration management for the task triage service."""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Gemini credential fallback, used only when the caller supplies no key.
    # SiliconFlow has no environment fallback.
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
    )

    # Model Selection
    gemini_flash_model: str = "gemini-2.5-flash"
    gemini_pro_model: str = "gemini-3-pro-preview"
    siliconflow_base_url: str = "https://api.siliconflow.cn/v1"
    siliconflow_default_model: str = "deepseek-ai/DeepSeek-V3"
    request_timeout: float = 60.0  # Transport timeout per provider call (seconds)

    # Retry Configuration
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0  # Seconds; doubled after each failed attempt

    # Batch Configuration
    batch_max_tasks: int = 20

    # HTTP Server
    host: str = "0.0.0.0"
    port: int = 8000


# Global settings instance
settings = Settings()
