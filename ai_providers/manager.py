"""
AI Provider Manager
AI Subtitle Translator

Builds a provider instance for one translation job.
"""

from typing import Optional, Dict, Type
from dataclasses import dataclass

from .base import BaseAIProvider, AIProviderType, AIConfig
from .gemini_provider import GeminiProvider


@dataclass
class ProviderInfo:
    """Information about an AI provider"""
    type: AIProviderType
    name: str
    description: str
    models: Dict[str, str]
    default_model: str
    env_key: str  # Environment variable name for API key


# Registry of all available providers
PROVIDER_REGISTRY: Dict[AIProviderType, Type[BaseAIProvider]] = {
    AIProviderType.GEMINI: GeminiProvider,
}

# Provider information
PROVIDER_INFO: Dict[AIProviderType, ProviderInfo] = {
    AIProviderType.GEMINI: ProviderInfo(
        type=AIProviderType.GEMINI,
        name="Google Gemini",
        description="Gemini - Fast, multilingual AI from Google",
        models=GeminiProvider.MODELS,
        default_model=GeminiProvider.DEFAULT_MODEL,
        env_key="GOOGLE_API_KEY"
    ),
}


def create_provider(
    api_key: str,
    model: Optional[str] = None,
    provider_type: AIProviderType = AIProviderType.GEMINI,
) -> BaseAIProvider:
    """
    Create a provider for one job.

    Args:
        api_key: Credential supplied with the job
        model: Model identifier (provider default if None)
        provider_type: Which provider to build

    Raises:
        ValueError: If the provider type is not registered
    """
    provider_class = PROVIDER_REGISTRY.get(provider_type)
    if provider_class is None:
        raise ValueError(f"Unsupported provider: {provider_type}")

    info = PROVIDER_INFO[provider_type]
    return provider_class(AIConfig(api_key=api_key, model=model or info.default_model))
