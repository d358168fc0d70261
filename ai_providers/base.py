"""
Base AI Provider - Abstract Interface
AI Subtitle Translator - translation oracle seam
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from dataclasses import dataclass
from enum import Enum

from config.constants import TRANSLATION_MAX_TOKENS, TRANSLATION_TEMPERATURE


class AIProviderType(Enum):
    """Supported AI Providers"""
    GEMINI = "gemini"


@dataclass
class AIMessage:
    """Unified message format across providers"""
    role: str  # "user", "assistant", "system"
    content: str


@dataclass
class AIResponse:
    """Unified response format"""
    content: str
    model: str
    provider: AIProviderType
    usage: Optional[Dict[str, int]] = None  # tokens used
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None


@dataclass
class AIConfig:
    """Provider configuration"""
    api_key: str
    model: str
    max_tokens: int = TRANSLATION_MAX_TOKENS
    temperature: float = TRANSLATION_TEMPERATURE
    base_url: Optional[str] = None  # For custom endpoints


SUBTITLE_PROMPT = (
    "I'll give you subtitles batch is srt format. "
    "I need you to translate them to {language}, "
    "understanding the context of the subtitles: {context}. "
    "You answer should consist of only translated subtitles. "
    "Here is the subtitles batch: \n"
)


def build_subtitle_prompt(text: str, language: str, context: str = "") -> str:
    """Prompt for one SRT batch; the batch text is appended verbatim."""
    return SUBTITLE_PROMPT.format(language=language, context=context) + text


class BaseAIProvider(ABC):
    """
    Abstract base class for AI providers.
    All providers must implement these methods.
    """

    def __init__(self, config: AIConfig):
        self.config = config
        self._client = None

    @property
    @abstractmethod
    def provider_type(self) -> AIProviderType:
        """Return the provider type"""
        pass

    @property
    @abstractmethod
    def supported_models(self) -> List[str]:
        """Return list of supported models"""
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the client connection"""
        pass

    @abstractmethod
    async def complete(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """
        Generate a completion from the AI model.

        Args:
            messages: List of conversation messages
            system_prompt: Optional system prompt
            **kwargs: Provider-specific parameters (model, temperature, max_tokens)

        Returns:
            AIResponse with the generated content
        """
        pass

    async def translate_subtitles(
        self,
        text: str,
        target_lang: str,
        context: str = "",
        model: Optional[str] = None,
    ) -> AIResponse:
        """
        Translate one batch of SRT replicas.

        Args:
            text: Concatenated replicas
            target_lang: Target language, free text ("French", "uk")
            context: Free-text hint (title, plot, speaker names)
            model: Overrides the configured model for this call

        Returns:
            AIResponse whose content is the translated batch
        """
        messages = [
            AIMessage(role="user", content=build_subtitle_prompt(text, target_lang, context))
        ]
        kwargs = {"model": model} if model else {}
        return await self.complete(messages, **kwargs)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} model={self.config.model}>"
