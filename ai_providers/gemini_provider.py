"""
Google Gemini Provider
AI Subtitle Translator - the default translation oracle
"""

from typing import Optional, List, Dict, Any

from google import genai
from google.genai import types

from .base import (
    BaseAIProvider,
    AIProviderType,
    AIMessage,
    AIResponse,
    AIConfig
)


class GeminiProvider(BaseAIProvider):
    """
    Google Gemini AI Provider

    Each instance owns its own client, so jobs started with different
    API keys never share credentials.

    Supports:
    - Gemini 2.0 Flash
    - Gemini 1.5 Pro / Flash / Flash 8B
    """

    MODELS = {
        "gemini-2.0-flash": "Gemini 2.0 Flash",
        "gemini-1.5-pro": "Gemini 1.5 Pro",
        "gemini-1.5-flash": "Gemini 1.5 Flash",
        "gemini-1.5-flash-8b": "Gemini 1.5 Flash 8B (Fast)",
    }

    DEFAULT_MODEL = "gemini-1.5-flash-8b"

    @property
    def provider_type(self) -> AIProviderType:
        return AIProviderType.GEMINI

    @property
    def supported_models(self) -> List[str]:
        return list(self.MODELS.keys())

    async def initialize(self) -> None:
        """Initialize Gemini client"""
        http_options = None
        if self.config.base_url:
            http_options = types.HttpOptions(base_url=self.config.base_url)
        self._client = genai.Client(api_key=self.config.api_key, http_options=http_options)

    def _convert_messages(self, messages: List[AIMessage]) -> List[Dict[str, Any]]:
        """Convert AIMessage to Gemini format"""
        return [
            {
                "role": "user" if msg.role == "user" else "model",
                "parts": [{"text": msg.content}],
            }
            for msg in messages
        ]

    async def complete(
        self,
        messages: List[AIMessage],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """Generate completion using Gemini"""
        if not self._client:
            await self.initialize()

        model = kwargs.get("model", self.config.model)
        response = await self._client.aio.models.generate_content(
            model=model,
            contents=self._convert_messages(messages),
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=kwargs.get("temperature", self.config.temperature),
                max_output_tokens=kwargs.get("max_tokens", self.config.max_tokens),
            ),
        )

        # Extract usage if available
        usage = None
        if getattr(response, "usage_metadata", None):
            usage = {
                "input_tokens": response.usage_metadata.prompt_token_count,
                "output_tokens": response.usage_metadata.candidates_token_count
            }

        finish_reason = None
        if response.candidates and response.candidates[0].finish_reason:
            finish_reason = response.candidates[0].finish_reason.name

        return AIResponse(
            content=response.text,
            model=model,
            provider=self.provider_type,
            usage=usage,
            finish_reason=finish_reason,
            raw_response=response
        )
