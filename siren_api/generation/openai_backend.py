"""Direct API-key adapter for the text-generation port."""

from __future__ import annotations

import logging
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from ..config import GenerationSettings, OpenAISettings
from ..errors import AIGenerationError, ConfigurationError
from .base import TextGenerator

logger = logging.getLogger(__name__)


class OpenAITextGenerator(TextGenerator):
    """Backend that talks to a chat-completions API with an API key."""

    name = "openai"

    def __init__(
        self,
        openai_settings: OpenAISettings,
        generation_settings: GenerationSettings,
        client: Optional[Any] = None,
    ):
        if client is None and not openai_settings.api_key:
            raise ConfigurationError("SIREN_OPENAI_API_KEY is required for the openai backend")

        self.model = openai_settings.model
        self.default_temperature = generation_settings.temperature
        self.default_max_tokens = generation_settings.max_tokens
        self._client = client or AsyncOpenAI(
            api_key=openai_settings.api_key,
            base_url=openai_settings.base_url,
        )

    async def generate_text(self, prompt: str) -> str:
        return await self.generate_with_parameters(prompt)

    async def generate_with_parameters(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        temperature = self.default_temperature if temperature is None else temperature
        max_tokens = self.default_max_tokens if max_tokens is None else max_tokens
        metadata = {
            "backend": self.name,
            "model": self.model,
            "prompt_length": len(prompt),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise AIGenerationError(f"OpenAI generation failed: {e}", metadata) from e

        text = None
        if response.choices:
            text = response.choices[0].message.content

        if not text or not text.strip():
            raise AIGenerationError("No content generated", metadata)

        logger.debug(f"OpenAI returned {len(text)} characters for model {self.model}")
        return text
