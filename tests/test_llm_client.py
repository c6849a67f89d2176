"""
Unit tests for LLM Client.

Tests the unified async wrapper for OpenAI and Anthropic with mocked responses.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from signal_scout.agentic.llm_client import (
    LLMClient,
    LLMResponse,
    MODEL_PRICING,
    get_llm_client,
)
from signal_scout.core.config import Settings


def _response(content: str) -> LLMResponse:
    return LLMResponse(
        content=content,
        input_tokens=10,
        output_tokens=20,
        total_tokens=30,
        model="gpt-4o-mini",
        cost_usd=0.0001,
    )


# ============================================================================
# LLMResponse Tests
# ============================================================================

class TestLLMResponse:
    """Tests for LLMResponse dataclass."""

    def test_parse_json_valid(self):
        result = _response('{"tags": ["Lighting", "AV"]}').parse_json()
        assert result == {"tags": ["Lighting", "AV"]}

    def test_parse_json_with_markdown_code_block(self):
        """JSON wrapped in markdown code blocks."""
        result = _response('```json\n{"name": "Neon Velvet"}\n```').parse_json()
        assert result == {"name": "Neon Velvet"}

    def test_parse_json_wrapped_in_prose(self):
        result = _response('Here you go: {"phone": null} Hope that helps.').parse_json()
        assert result == {"phone": None}

    def test_parse_json_invalid(self):
        assert _response("This is not JSON").parse_json() is None

    def test_parse_json_empty(self):
        assert _response("   ").parse_json() is None

    def test_parse_json_array_is_rejected(self):
        """Agents expect an object; a bare array is treated as unusable."""
        assert _response('[{"firstName": "Jane"}]').parse_json() is None


# ============================================================================
# LLMClient Initialization Tests
# ============================================================================

class TestLLMClientInit:
    """Tests for LLMClient initialization."""

    def test_default_openai_init(self):
        client = LLMClient(provider="openai", api_key="test-key")

        assert client.provider == "openai"
        assert client.model == "gpt-4o-mini"
        assert client.max_tokens == 2000
        assert client.temperature == 0.1

    def test_default_anthropic_init(self):
        client = LLMClient(provider="anthropic", api_key="test-key")

        assert client.provider == "anthropic"
        assert client.model == "claude-3-5-haiku-20241022"

    def test_provider_case_insensitive(self):
        assert LLMClient(provider="OpenAI", api_key="k").provider == "openai"
        assert LLMClient(provider="ANTHROPIC", api_key="k").provider == "anthropic"

    def test_not_available_without_key(self):
        assert LLMClient(provider="openai", api_key=None).is_available is False
        assert LLMClient(provider="openai", api_key="").is_available is False

    def test_not_available_unknown_provider(self):
        assert LLMClient(provider="cohere", api_key="k").is_available is False


# ============================================================================
# Cost Calculation Tests
# ============================================================================

class TestCostCalculation:

    def test_calculate_cost_gpt4o_mini(self):
        client = LLMClient(provider="openai", api_key="test-key")
        cost = client._calculate_cost("gpt-4o-mini", 1000, 500)
        # (1000/1M * 0.15) + (500/1M * 0.60) = 0.00015 + 0.0003 = 0.00045
        assert abs(cost - 0.00045) < 0.0001

    def test_calculate_cost_unknown_model(self):
        client = LLMClient(provider="openai", api_key="test-key")
        assert client._calculate_cost("unknown-model", 1000, 500) == 0.0

    def test_model_pricing_covers_scout_models(self):
        for model in ["gpt-4o", "gpt-4o-mini", "claude-3-5-haiku-20241022"]:
            assert model in MODEL_PRICING


# ============================================================================
# Completion Tests (Mocked)
# ============================================================================

class TestOpenAICompletion:

    @pytest.mark.asyncio
    async def test_openai_complete_json_mode(self):
        mock_response = MagicMock()
        mock_response.choices = [MagicMock()]
        mock_response.choices[0].message.content = '{"tags": []}'
        mock_response.usage = MagicMock()
        mock_response.usage.prompt_tokens = 100
        mock_response.usage.completion_tokens = 50

        mock_openai_client = AsyncMock()
        mock_openai_client.chat.completions.create = AsyncMock(return_value=mock_response)

        with patch("signal_scout.agentic.llm_client.AsyncOpenAI", return_value=mock_openai_client):
            client = LLMClient(provider="openai", api_key="test-key")
            response = await client.complete(
                "Body text", system_prompt="Extract tags", json_mode=True, model="gpt-4o", temperature=0.0
            )

        assert response.content == '{"tags": []}'
        assert response.total_tokens == 150
        assert client.total_tokens_used == 150

        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.0
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "Extract tags"}
        assert kwargs["messages"][1] == {"role": "user", "content": "Body text"}

    @pytest.mark.asyncio
    async def test_complete_unavailable_raises(self):
        client = LLMClient(provider="openai", api_key=None)
        with pytest.raises(ValueError):
            await client.complete("hello")

    @pytest.mark.asyncio
    async def test_sdk_errors_propagate(self):
        """No retries: the first SDK error reaches the caller."""
        mock_openai_client = AsyncMock()
        mock_openai_client.chat.completions.create = AsyncMock(side_effect=RuntimeError("boom"))

        with patch("signal_scout.agentic.llm_client.AsyncOpenAI", return_value=mock_openai_client):
            client = LLMClient(provider="openai", api_key="test-key")
            with pytest.raises(RuntimeError):
                await client.complete("hello")

        assert mock_openai_client.chat.completions.create.await_count == 1


class TestAnthropicCompletion:

    @pytest.mark.asyncio
    async def test_anthropic_complete_uses_system_kwarg(self):
        mock_response = MagicMock()
        mock_response.content = [MagicMock(text='{"name": "Neon Velvet"}')]
        mock_response.usage = MagicMock(input_tokens=200, output_tokens=20)

        mock_anthropic_client = AsyncMock()
        mock_anthropic_client.messages.create = AsyncMock(return_value=mock_response)

        with patch("signal_scout.agentic.llm_client.AsyncAnthropic", return_value=mock_anthropic_client):
            client = LLMClient(provider="anthropic", api_key="test-key")
            response = await client.complete("Title: Neon Velvet", system_prompt="Extract identity", json_mode=True)

        assert response.parse_json() == {"name": "Neon Velvet"}
        kwargs = mock_anthropic_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Extract identity"
        assert "response_format" not in kwargs


# ============================================================================
# get_llm_client Tests
# ============================================================================

class TestGetLLMClient:

    def test_none_without_keys(self, clean_env):
        assert get_llm_client(settings=Settings(_env_file=None)) is None

    def test_openai_first_with_agent_model(self, clean_env, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

        client = get_llm_client(settings=Settings(_env_file=None))

        assert client.provider == "openai"
        assert client.model == "gpt-4o-mini"
        assert client.max_tokens == 2000

    def test_anthropic_fallback(self, clean_env, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

        client = get_llm_client(settings=Settings(_env_file=None))

        assert client.provider == "anthropic"
        assert client.model == "claude-3-5-haiku-20241022"
