"""Tests for Google Gemini provider integration."""

from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

from matrix_triage.providers.base import CompletionRequest
from matrix_triage.providers.gemini_provider import GeminiProvider

CLIENT_PATH = "matrix_triage.providers.gemini_provider.genai.Client"


@pytest.fixture
def mock_client():
    """A genai client whose async generate_content is mocked."""
    client = MagicMock()
    response = Mock()
    response.text = '{"questions": ["a", "b", "c"]}'
    client.aio.models.generate_content = AsyncMock(return_value=response)
    return client


class TestGeminiProvider:
    """Test suite for GeminiProvider."""

    @patch(CLIENT_PATH)
    def test_initialization(self, mock_client_class, mock_gemini_api_key):
        """Test that provider initializes with default model."""
        provider = GeminiProvider(api_key=mock_gemini_api_key)

        assert provider.api_key == mock_gemini_api_key
        assert provider.model == "gemini-2.5-flash"
        assert provider.ping_model == "gemini-2.5-flash"
        assert provider.get_provider_name() == "gemini"
        mock_client_class.assert_called_once_with(api_key=mock_gemini_api_key, http_options=None)

    @patch(CLIENT_PATH)
    def test_initialization_with_timeout(self, mock_client_class, mock_gemini_api_key):
        """Test that the timeout is passed to the client in milliseconds."""
        GeminiProvider(api_key=mock_gemini_api_key, timeout=30.0)

        http_options = mock_client_class.call_args.kwargs["http_options"]
        assert http_options.timeout == 30000

    @pytest.mark.asyncio
    @patch(CLIENT_PATH)
    async def test_complete_structured(self, mock_client_class, mock_gemini_api_key, mock_client):
        """Test that structured requests declare JSON output and the schema."""
        mock_client_class.return_value = mock_client
        provider = GeminiProvider(api_key=mock_gemini_api_key, model="gemini-3-pro-preview")
        schema = {"type": "OBJECT", "properties": {"questions": {"type": "ARRAY", "items": {"type": "STRING"}}}}

        result = await provider.complete(
            CompletionRequest(
                prompt="任务名称", response_schema=schema, temperature=0.2, system_prompt="你是顾问"
            )
        )

        assert result == '{"questions": ["a", "b", "c"]}'
        kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-3-pro-preview"
        assert kwargs["contents"] == "任务名称"
        config = kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert config.temperature == pytest.approx(0.2)
        assert "你是顾问" in str(config.system_instruction)

    @pytest.mark.asyncio
    @patch(CLIENT_PATH)
    async def test_complete_unstructured(self, mock_client_class, mock_gemini_api_key, mock_client):
        mock_client_class.return_value = mock_client
        provider = GeminiProvider(api_key=mock_gemini_api_key)

        await provider.complete(CompletionRequest(prompt="hi"))

        config = mock_client.aio.models.generate_content.call_args.kwargs["config"]
        assert config.response_mime_type is None
        assert config.response_schema is None

    @pytest.mark.asyncio
    @patch(CLIENT_PATH)
    async def test_complete_none_text(self, mock_client_class, mock_gemini_api_key, mock_client):
        """Test that a response without text yields an empty string."""
        mock_client.aio.models.generate_content.return_value.text = None
        mock_client_class.return_value = mock_client
        provider = GeminiProvider(api_key=mock_gemini_api_key)

        assert await provider.complete(CompletionRequest(prompt="hi")) == ""

    @pytest.mark.asyncio
    @patch(CLIENT_PATH)
    async def test_ping_uses_ping_model(self, mock_client_class, mock_gemini_api_key, mock_client):
        """Test that connectivity checks go to the flash model with a minimal prompt."""
        mock_client_class.return_value = mock_client
        provider = GeminiProvider(
            api_key=mock_gemini_api_key,
            model="gemini-3-pro-preview",
            ping_model="gemini-2.5-flash",
        )

        await provider.ping()

        kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert kwargs["contents"] == "Hello"

    @pytest.mark.asyncio
    @patch(CLIENT_PATH)
    async def test_close_releases_async_client(self, mock_client_class, mock_gemini_api_key, mock_client):
        """Test that close shuts down the async client's connection pool."""
        mock_client.aio.aclose = AsyncMock()
        mock_client_class.return_value = mock_client
        provider = GeminiProvider(api_key=mock_gemini_api_key)

        await provider.close()

        mock_client.aio.aclose.assert_awaited_once()
