"""Tests for SiliconFlow provider integration."""

import json
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

from matrix_triage.providers.base import CompletionRequest
from matrix_triage.providers.siliconflow_provider import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    SiliconFlowProvider,
)

OPENAI_PATH = "matrix_triage.providers.siliconflow_provider.AsyncOpenAI"


def _chat_response(content):
    mock_message = Mock()
    mock_message.content = content
    mock_choice = Mock()
    mock_choice.message = mock_message
    mock_response = Mock()
    mock_response.choices = [mock_choice]
    return mock_response


class TestSiliconFlowProvider:
    """Test suite for SiliconFlowProvider."""

    @patch(OPENAI_PATH)
    def test_initialization(self, mock_openai_class, mock_siliconflow_api_key):
        """Test that the OpenAI client is pointed at SiliconFlow with SDK retries off."""
        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key)

        assert provider.model == DEFAULT_MODEL
        assert provider.get_provider_name() == "siliconflow"
        mock_openai_class.assert_called_once_with(
            api_key=mock_siliconflow_api_key,
            base_url=DEFAULT_BASE_URL,
            timeout=60.0,
            max_retries=0,
        )

    @patch(OPENAI_PATH)
    def test_empty_model_falls_back_to_default(self, mock_openai_class, mock_siliconflow_api_key):
        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key, model="")

        assert provider.model == DEFAULT_MODEL

    @patch(OPENAI_PATH)
    def test_build_messages_structured(self, mock_openai_class, mock_siliconflow_api_key):
        """Test that the schema is rendered into the system message."""
        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key)
        schema = {"type": "OBJECT", "properties": {"questions": {"type": "ARRAY"}}}
        request = CompletionRequest(
            prompt="任务名称", response_schema=schema, system_prompt="你是顾问"
        )

        messages = provider.build_messages(request)

        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"].startswith("你是顾问")
        assert json.dumps(schema, ensure_ascii=False) in messages[0]["content"]
        assert "Return ONLY valid JSON" in messages[0]["content"]
        assert messages[1]["content"] == "任务名称"

    @patch(OPENAI_PATH)
    def test_build_messages_plain(self, mock_openai_class, mock_siliconflow_api_key):
        """Test that an unstructured request without system prompt is a single user message."""
        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key)

        messages = provider.build_messages(CompletionRequest(prompt="Hello"))

        assert messages == [{"role": "user", "content": "Hello"}]

    @pytest.mark.asyncio
    @patch(OPENAI_PATH)
    async def test_complete_requests_json_mode(self, mock_openai_class, mock_siliconflow_api_key):
        """Test that structured requests ask for JSON-object mode."""
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_chat_response('{"questions": []}')
        )
        mock_openai_class.return_value = mock_client

        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key, model="Qwen/Qwen2.5-72B-Instruct")
        result = await provider.complete(
            CompletionRequest(prompt="p", response_schema={"type": "OBJECT"}, temperature=0.3)
        )

        assert result == '{"questions": []}'
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "Qwen/Qwen2.5-72B-Instruct"
        assert kwargs["temperature"] == pytest.approx(0.3)
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    @patch(OPENAI_PATH)
    async def test_complete_empty_choices(self, mock_openai_class, mock_siliconflow_api_key):
        """Test that a response with no choices yields an empty string."""
        mock_response = Mock()
        mock_response.choices = []
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(return_value=mock_response)
        mock_openai_class.return_value = mock_client

        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key)

        assert await provider.complete(CompletionRequest(prompt="p")) == ""

    @pytest.mark.asyncio
    @patch(OPENAI_PATH)
    async def test_ping_has_no_format_constraint(self, mock_openai_class, mock_siliconflow_api_key):
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("Hi"))
        mock_openai_class.return_value = mock_client

        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key)

        assert await provider.ping() == "Hi"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert "response_format" not in kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Hello"}]

    @pytest.mark.asyncio
    @patch(OPENAI_PATH)
    async def test_sdk_errors_propagate(self, mock_openai_class, mock_siliconflow_api_key, status_error):
        """Test that provider errors are raised unchanged for the retry layer."""
        error = status_error(503, "Service Unavailable")
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(side_effect=error)
        mock_openai_class.return_value = mock_client

        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key)

        with pytest.raises(type(error)) as exc_info:
            await provider.complete(CompletionRequest(prompt="p"))
        assert exc_info.value is error

    @pytest.mark.asyncio
    @patch(OPENAI_PATH)
    async def test_close_releases_client(self, mock_openai_class, mock_siliconflow_api_key):
        """Test that close shuts down the OpenAI client's connection pool."""
        mock_client = MagicMock()
        mock_client.close = AsyncMock()
        mock_openai_class.return_value = mock_client

        provider = SiliconFlowProvider(api_key=mock_siliconflow_api_key)
        await provider.close()

        mock_client.close.assert_awaited_once()
