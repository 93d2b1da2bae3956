from abc import ABC, abstractmethod
from typing import Optional


class TextGenerator(ABC):
    """Text-generation port: a prompt goes in, text comes out.

    Implementations raise ``AIGenerationError`` when the backend fails or
    returns no content. They never retry on their own.
    """

    name: str = "generator"

    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """Generate text with the backend's default parameters."""

    @abstractmethod
    async def generate_with_parameters(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate text with explicit sampling parameters."""
