"""Pytest configuration and shared fixtures for triage tests."""

import json
from typing import Any, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from matrix_triage.config import Settings
from matrix_triage.infrastructure.retry import RetryConfig, RetryMetrics
from matrix_triage.models import AIProvider, BatchTaskInput, ProviderConfig, TaskInput
from matrix_triage.triage import TaskTriager


class StatusError(Exception):
    """Stand-in for an SDK error carrying an HTTP-like status code."""

    def __init__(self, status_code: Any, message: str = "API error"):
        super().__init__(message)
        self.status_code = status_code


@pytest.fixture
def mock_gemini_api_key() -> str:
    """Fixture providing a mock Gemini API key for testing."""
    return "AIza-test-mock-api-key-12345"


@pytest.fixture
def mock_siliconflow_api_key() -> str:
    """Fixture providing a mock SiliconFlow API key for testing."""
    return "sk-test-mock-siliconflow-key"


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        gemini_api_key=None,
        retry_max_attempts=3,
        retry_base_delay=1.0,
        batch_max_tasks=20,
    )


@pytest.fixture
def gemini_config(mock_gemini_api_key) -> ProviderConfig:
    """Gemini configuration with a key supplied by the caller."""
    return ProviderConfig(ai_provider=AIProvider.GEMINI, gemini_api_key=mock_gemini_api_key)


@pytest.fixture
def siliconflow_config(mock_siliconflow_api_key) -> ProviderConfig:
    """SiliconFlow configuration with a key supplied by the caller."""
    return ProviderConfig(
        ai_provider=AIProvider.SILICONFLOW,
        silicon_flow_api_key=mock_siliconflow_api_key,
    )


@pytest.fixture
def sample_task() -> TaskInput:
    """Fixture providing a sample task."""
    return TaskInput(name="Finish Q3 report", estimated_time="2025-01-10")


@pytest.fixture
def batch_tasks() -> List[BatchTaskInput]:
    """Two batch tasks with fixed correlation ids."""
    return [
        BatchTaskInput(id="t1", name="Finish Q3 report", estimated_time="2025-01-10"),
        BatchTaskInput(id="t2", name="Book dentist", estimated_time="next week"),
    ]


@pytest.fixture
def sample_analysis_payload() -> dict:
    """Fixture providing a well-formed classification payload."""
    return {
        "isImportant": True,
        "isUrgent": True,
        "quadrantName": "Do",
        "reasoning": "...",
        "steps": ["a", "b", "c"],
        "advice": "...",
    }


def make_provider(responses: Optional[List[Any]] = None, name: str = "gemini") -> MagicMock:
    """Build a mock provider whose ``complete`` returns (or raises) each response in turn.

    Dicts and lists are JSON-encoded; exceptions are raised.
    """
    encoded = [
        json.dumps(r, ensure_ascii=False) if isinstance(r, (dict, list)) else r
        for r in (responses or [])
    ]
    provider = MagicMock()
    provider.model = "test-model"
    provider.get_provider_name.return_value = name
    provider.complete = AsyncMock(side_effect=encoded)
    provider.ping = AsyncMock(return_value="Hi")
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def make_triager(test_settings):
    """Factory building a TaskTriager around a given mock provider."""

    def _make(provider: MagicMock, max_attempts: int = 3) -> TaskTriager:
        return TaskTriager(
            app_settings=test_settings,
            retry_config=RetryConfig(max_attempts=max_attempts, base_delay=1.0),
            metrics=RetryMetrics(),
            provider_factory=lambda config, app_settings: provider,
        )

    return _make


@pytest.fixture
def mock_provider():
    """Factory fixture for mock providers (see ``make_provider``)."""
    return make_provider


@pytest.fixture
def status_error():
    """The StatusError class, for raising status-coded failures."""
    return StatusError
