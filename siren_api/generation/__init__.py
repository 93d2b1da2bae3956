"""Text-generation port and its backend adapters."""

from ..config import Settings
from .base import TextGenerator
from .bedrock import BedrockTextGenerator
from .openai_backend import OpenAITextGenerator


def build_text_generator(settings: Settings) -> TextGenerator:
    """Select the backend adapter named by ``settings.generation.backend``."""
    if settings.generation.backend == "openai":
        return OpenAITextGenerator(settings.openai, settings.generation)
    return BedrockTextGenerator(settings.aws, settings.generation)


__all__ = [
    "TextGenerator",
    "BedrockTextGenerator",
    "OpenAITextGenerator",
    "build_text_generator",
]
