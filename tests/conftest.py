"""Shared fixtures: a scripted text generator, a deterministic clock and sample documents."""

from datetime import UTC, datetime, timedelta
from typing import Callable, List, Optional, Union

import pytest

from siren_api.design.architect import DesignArchitect
from siren_api.design.models import DesignDocument, ObjectDesignPhase, SystemDesignPhase, UseCase
from siren_api.errors import AIGenerationError
from siren_api.generation.base import TextGenerator

Reply = Union[str, Exception, Callable[[str], str]]


class FakeTextGenerator(TextGenerator):
    """Returns scripted replies in order and records every prompt it receives."""

    name = "fake"

    def __init__(self, *replies: Reply):
        self.replies: List[Reply] = list(replies)
        self.prompts: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def queue(self, *replies: Reply) -> None:
        self.replies.extend(replies)

    async def generate_text(self, prompt: str) -> str:
        return await self.generate_with_parameters(prompt)

    async def generate_with_parameters(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise AIGenerationError("No content generated", {"backend": self.name})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


class FakeClock:
    """Clock that advances one second per reading."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


DOMAIN_MODEL = "classDiagram\n    class Order\n    class Customer\n    Customer --> Order"
ARCHITECTURE = "graph TD\n    UI --> Service\n    Service --> DB"
CLASS_DIAGRAM = "classDiagram\n    class OrderService {\n        +placeOrder()\n    }"


def mermaid_block(code: str) -> str:
    return f"Here is the diagram:\n```mermaid\n{code}\n```\nLet me know."


def sample_use_case(uid: str = "uc-1", title: str = "Place order") -> UseCase:
    return UseCase(
        id=uid,
        title=title,
        narrative="The customer selects products and places an order.",
        actors=["Customer"],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def architect(generator: FakeTextGenerator, clock: FakeClock) -> DesignArchitect:
    return DesignArchitect(generator, clock=clock)


@pytest.fixture
def new_document(architect: DesignArchitect) -> DesignDocument:
    """Fresh analysis-phase document with no use cases."""
    return architect.start_session("Shop", "An online shop", "user-1", include_requirements=False)


@pytest.fixture
def analyzed_document(new_document: DesignDocument) -> DesignDocument:
    analysis = new_document.analysis.model_copy(update={"use_cases": [sample_use_case()]})
    return new_document.model_copy(update={"analysis": analysis})


@pytest.fixture
def designed_document(analyzed_document: DesignDocument) -> DesignDocument:
    """Document with use cases and all three diagrams."""
    analysis = analyzed_document.analysis.model_copy(update={"domain_model_mermaid": DOMAIN_MODEL})
    return analyzed_document.model_copy(update={
        "analysis": analysis,
        "system_design": SystemDesignPhase(architecture_diagram_mermaid=ARCHITECTURE),
        "object_design": ObjectDesignPhase(class_diagram_mermaid=CLASS_DIAGRAM),
    })
