"""Amazon Bedrock adapter for the text-generation port."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..aws import AWSClient
from ..config import AWSSettings, GenerationSettings
from ..errors import AIGenerationError
from .base import TextGenerator

logger = logging.getLogger(__name__)


class BedrockTextGenerator(TextGenerator):
    """Cloud-hosted enterprise backend using the AWS default credential chain."""

    name = "bedrock"

    def __init__(
        self,
        aws_settings: AWSSettings,
        generation_settings: GenerationSettings,
        client: Optional[AWSClient] = None,
    ):
        self.model_id = aws_settings.model_id
        self.default_temperature = generation_settings.temperature
        self.default_max_tokens = generation_settings.max_tokens
        self._client = client or AWSClient(aws_settings)

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
            "model_id": self.model_id,
            "prompt_length": len(prompt),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            # boto3 is blocking; keep the event loop free
            text = await asyncio.to_thread(
                self._client.invoke_bedrock_text,
                self.model_id,
                prompt,
                temperature,
                max_tokens,
            )
        except (BotoCoreError, ClientError) as e:
            raise AIGenerationError(f"Bedrock generation failed: {e}", metadata) from e
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError, e.g. a gateway error page
            raise AIGenerationError("Bedrock returned an unreadable response", metadata) from e

        if not text or not text.strip():
            raise AIGenerationError("No content generated", metadata)

        logger.debug(f"Bedrock returned {len(text)} characters for model {self.model_id}")
        return text
