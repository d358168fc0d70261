"""
AI Providers Package
AI Subtitle Translator - translation oracle

Usage:
    from ai_providers import create_provider

    provider = create_provider(api_key="...", model="gemini-1.5-flash-8b")
    response = await provider.translate_subtitles(
        text=batch_text,
        target_lang="French",
        context="Season 2 of a crime drama",
    )
    print(response.content)
"""

from .base import (
    BaseAIProvider,
    AIProviderType,
    AIMessage,
    AIResponse,
    AIConfig,
    build_subtitle_prompt,
)

from .gemini_provider import GeminiProvider

from .manager import (
    ProviderInfo,
    PROVIDER_REGISTRY,
    PROVIDER_INFO,
    create_provider,
)

__all__ = [
    # Base classes
    "BaseAIProvider",
    "AIProviderType",
    "AIMessage",
    "AIResponse",
    "AIConfig",
    "build_subtitle_prompt",

    # Providers
    "GeminiProvider",

    # Manager
    "ProviderInfo",
    "PROVIDER_REGISTRY",
    "PROVIDER_INFO",
    "create_provider",
]

__version__ = "1.0.0"
