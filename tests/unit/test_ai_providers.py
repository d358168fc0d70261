"""
Unit tests for ai_providers - prompt building, Gemini provider and factory
"""
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from ai_providers import (
    AIConfig,
    AIProviderType,
    GeminiProvider,
    PROVIDER_INFO,
    build_subtitle_prompt,
    create_provider,
)


def fake_gemini_response(text="Bonjour"):
    return SimpleNamespace(
        text=text,
        usage_metadata=SimpleNamespace(prompt_token_count=12, candidates_token_count=5),
        candidates=[SimpleNamespace(finish_reason=SimpleNamespace(name="STOP"))],
    )


class TestPrompt:
    """Test the translation prompt."""

    def test_prompt_mentions_language_context_and_batch(self):
        prompt = build_subtitle_prompt("1\n00:00 --> 00:01\nHi\n", "French", "Period drama")

        assert "translate them to French" in prompt
        assert "Period drama" in prompt
        assert prompt.endswith("1\n00:00 --> 00:01\nHi\n")
        assert "only translated subtitles" in prompt


class TestGeminiProvider:
    """Test GeminiProvider with a mocked google-genai client."""

    @pytest.fixture
    def provider(self):
        return GeminiProvider(AIConfig(api_key="key-1", model="gemini-1.5-flash-8b"))

    def test_metadata(self, provider):
        assert provider.provider_type == AIProviderType.GEMINI
        assert "gemini-1.5-flash-8b" in provider.supported_models

    @pytest.mark.asyncio
    async def test_initialize_uses_job_api_key(self, provider):
        with patch("ai_providers.gemini_provider.genai.Client") as client_cls:
            await provider.initialize()

        client_cls.assert_called_once()
        assert client_cls.call_args.kwargs["api_key"] == "key-1"

    @pytest.mark.asyncio
    async def test_translate_subtitles(self, provider):
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=fake_gemini_response())
        provider._client = client

        response = await provider.translate_subtitles("1\n...", "French", "Drama", model="gemini-2.0-flash")

        assert response.content == "Bonjour"
        assert response.model == "gemini-2.0-flash"
        assert response.usage == {"input_tokens": 12, "output_tokens": 5}
        assert response.finish_reason == "STOP"

        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        assert kwargs["contents"][0]["role"] == "user"
        assert "translate them to French" in kwargs["contents"][0]["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_default_model_used_when_not_overridden(self, provider):
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=fake_gemini_response())
        provider._client = client

        await provider.translate_subtitles("1\n...", "uk")

        assert client.aio.models.generate_content.call_args.kwargs["model"] == "gemini-1.5-flash-8b"

    @pytest.mark.asyncio
    async def test_errors_propagate(self, provider):
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("quota"))
        provider._client = client

        with pytest.raises(RuntimeError):
            await provider.translate_subtitles("1\n...", "uk")


class TestFactory:
    """Test create_provider."""

    def test_creates_gemini_with_job_settings(self):
        provider = create_provider("key-2", "gemini-1.5-pro")

        assert isinstance(provider, GeminiProvider)
        assert provider.config.api_key == "key-2"
        assert provider.config.model == "gemini-1.5-pro"

    def test_default_model(self):
        provider = create_provider("key-3")
        assert provider.config.model == PROVIDER_INFO[AIProviderType.GEMINI].default_model
