"""Tests for the AI provider layer."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from proposal_studio.core.config import get_settings
from proposal_studio.intelligence.providers import (
    GeminiProvider,
    GrokProvider,
    OpenAIProvider,
    ProviderError,
    clean_json_response,
    create_ai_provider,
)


@pytest.fixture
def mock_llm():
    """Patch the crewai LLM wrapper used by providers."""
    with patch("proposal_studio.intelligence.providers.LLM") as mock_cls:
        yield mock_cls


def _mock_http(response: MagicMock):
    """Patch httpx.AsyncClient so posts return the given response."""
    http_client = AsyncMock()
    http_client.post.return_value = response
    patcher = patch("proposal_studio.intelligence.providers.httpx.AsyncClient")
    mock_cls = patcher.start()
    mock_cls.return_value.__aenter__.return_value = http_client
    return patcher, http_client


class TestCleanJsonResponse:
    """Tests for clean_json_response."""

    def test_json_fence(self):
        """Test a ```json fence is removed."""
        assert clean_json_response('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        """Test an unlabelled fence is removed."""
        assert clean_json_response('```\n[1, 2]\n```') == "[1, 2]"

    def test_unfenced(self):
        """Test bare JSON passes through."""
        assert clean_json_response('  {"a": 1} ') == '{"a": 1}'


class TestProviderFactory:
    """Tests for create_ai_provider."""

    def test_known_names(self):
        """Test names are matched case-insensitively."""
        assert isinstance(create_ai_provider("gemini"), GeminiProvider)
        assert isinstance(create_ai_provider("GROK"), GrokProvider)

    def test_default_from_settings(self):
        """Test the configured provider is used by default."""
        provider = create_ai_provider()

        assert provider.name == get_settings().AI_PROVIDER

    def test_unknown_name(self):
        """Test unknown providers are rejected."""
        with pytest.raises(ValueError):
            create_ai_provider("llama")


class TestBuildLLM:
    """Tests for the crewai LLM configuration."""

    def test_model_prefixed(self, mock_llm):
        """Test the provider prefix and explicit key are passed."""
        OpenAIProvider(api_key="sk-explicit", model="gpt-test").build_llm(temperature=0.2, max_tokens=100)

        mock_llm.assert_called_once_with(
            model="openai/gpt-test",
            api_key="sk-explicit",
            temperature=0.2,
            max_tokens=100,
        )

    def test_grok_uses_base_url(self, mock_llm):
        """Test Grok is routed to the xAI endpoint."""
        GrokProvider(api_key="xai-key", model="grok-test").build_llm()

        kwargs = mock_llm.call_args.kwargs
        assert kwargs["model"] == "xai/grok-test"
        assert kwargs["base_url"] == get_settings().XAI_BASE_URL
        assert kwargs["temperature"] == get_settings().AI_TEMPERATURE


class TestGeneration:
    """Tests for text, JSON and diagram generation."""

    def test_generate_text(self, mock_llm):
        """Test system and user messages are sent and the reply trimmed."""
        mock_llm.return_value.call.return_value = "  Hello there \n"

        result = asyncio.run(OpenAIProvider(api_key="k").generate_text("Hi", system_prompt="Be brief"))

        assert result == "Hello there"
        messages = mock_llm.return_value.call.call_args[0][0]
        assert messages == [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Hi"},
        ]

    def test_generate_text_failure(self, mock_llm):
        """Test call failures are wrapped."""
        mock_llm.return_value.call.side_effect = RuntimeError("rate limited")

        with pytest.raises(ProviderError):
            asyncio.run(OpenAIProvider(api_key="k").generate_text("Hi"))

    def test_generate_json(self, mock_llm):
        """Test fenced JSON replies are parsed."""
        mock_llm.return_value.call.return_value = '```json\n{"sections": 3}\n```'

        assert asyncio.run(GeminiProvider(api_key="k").generate_json("Plan")) == {"sections": 3}

    def test_generate_json_invalid(self, mock_llm):
        """Test unparseable replies raise ProviderError."""
        mock_llm.return_value.call.return_value = "not json"

        with pytest.raises(ProviderError):
            asyncio.run(GeminiProvider(api_key="k").generate_json("Plan"))

    def test_generate_diagram_sanitized(self, mock_llm):
        """Test diagram replies are cleaned and use a low temperature."""
        mock_llm.return_value.call.return_value = "```mermaid\ngraph TD\nA-->B\n```"

        code = asyncio.run(OpenAIProvider(api_key="k").generate_diagram("login flow"))

        assert code == "graph TD\nA-->B"
        assert mock_llm.call_args.kwargs["temperature"] == 0.3


class TestEmbeddings:
    """Tests for embedding requests."""

    def test_openai_embedding(self):
        """Test the OpenAI embeddings endpoint and response shape."""
        response = MagicMock(status_code=200)
        response.json.return_value = {"data": [{"embedding": [0.1, 0.2]}]}
        patcher, http_client = _mock_http(response)
        try:
            result = asyncio.run(OpenAIProvider(api_key="sk-embed").generate_embedding("text"))
        finally:
            patcher.stop()

        assert result == [0.1, 0.2]
        url = http_client.post.call_args[0][0]
        assert url.endswith("/embeddings")
        assert http_client.post.call_args.kwargs["headers"] == {"Authorization": "Bearer sk-embed"}

    def test_gemini_embedding(self):
        """Test the Gemini embedContent response shape."""
        response = MagicMock(status_code=200)
        response.json.return_value = {"embedding": {"values": [0.5]}}
        patcher, http_client = _mock_http(response)
        try:
            result = asyncio.run(GeminiProvider(api_key="g-key").generate_embedding("text"))
        finally:
            patcher.stop()

        assert result == [0.5]
        assert ":embedContent" in http_client.post.call_args[0][0]

    def test_http_error_status(self):
        """Test non-200 responses raise ProviderError."""
        response = MagicMock(status_code=429, text="Too many requests")
        patcher, _ = _mock_http(response)
        try:
            with pytest.raises(ProviderError):
                asyncio.run(OpenAIProvider(api_key="k").generate_embedding("text"))
        finally:
            patcher.stop()

    def test_grok_has_no_embeddings(self):
        """Test Grok refuses embedding requests."""
        with pytest.raises(ProviderError):
            asyncio.run(GrokProvider(api_key="k").generate_embedding("text"))
