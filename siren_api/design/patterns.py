"""Keyword heuristics suggesting GoF design patterns for a document's use cases."""

from typing import Dict, List, Literal, Sequence, Tuple

from pydantic import BaseModel

from .models import DesignDocument

Likelihood = Literal["High", "Medium", "Low"]


class DesignPattern(BaseModel):
    id: str
    name: str
    category: Literal["Creational", "Structural", "Behavioral"]
    applicability: str
    consequences: str


class PatternSuggestion(DesignPattern):
    usage_probability: Likelihood
    reason: str


CATALOG: Dict[str, DesignPattern] = {
    pattern.id: pattern for pattern in (
        DesignPattern(
            id="observer",
            name="Observer",
            category="Behavioral",
            applicability=(
                "When an abstraction has two aspects, one dependent on the other. "
                "When a change to one object requires changing others."
            ),
            consequences="Abstract coupling between Subject and Observer. Support for broadcast communication.",
        ),
        DesignPattern(
            id="strategy",
            name="Strategy",
            category="Behavioral",
            applicability=(
                "When many related classes differ only in their behavior. "
                "When you need different variants of an algorithm."
            ),
            consequences="Families of related algorithms. Alternative to subclassing.",
        ),
        DesignPattern(
            id="state",
            name="State",
            category="Behavioral",
            applicability=(
                "When an object's behavior depends on its state and it must change its "
                "behavior at run-time depending on that state."
            ),
            consequences="Localizes state-specific behavior. Makes state transitions explicit.",
        ),
        DesignPattern(
            id="factory-method",
            name="Factory Method",
            category="Creational",
            applicability="When a class can't anticipate the class of objects it must create.",
            consequences="Provides hooks for subclasses. Connects parallel class hierarchies.",
        ),
        DesignPattern(
            id="singleton",
            name="Singleton",
            category="Creational",
            applicability=(
                "When there must be exactly one instance of a class, and it must be "
                "accessible to clients from a well-known access point."
            ),
            consequences="Controlled access to sole instance. Reduced name space.",
        ),
    )
}

# (pattern id, likelihood, keywords, reason), checked in order
HEURISTICS: Sequence[Tuple[str, Likelihood, Tuple[str, ...], str]] = (
    (
        "observer", "High",
        ("notify", "alert", "broadcast", "subscribe", "listener", "when a change occurs"),
        "Detected keywords related to event notification or state change propagation.",
    ),
    (
        "strategy", "High",
        ("algorithm", "calculation method", "sorting", "payment method", "mode", "interchangeable"),
        "Detected need for varying algorithms or interchangeable behaviors.",
    ),
    (
        "state", "Medium",
        ("state", "transition", "status", "lifecycle", "phase"),
        "Detected keywords suggesting complex state transitions or lifecycle management.",
    ),
    (
        "factory-method", "Medium",
        ("create", "instantiate", "types of", "various kinds of"),
        "Detected need for flexible object creation logic.",
    ),
    (
        "singleton", "Low",
        ("global", "single instance", "central manager", "configuration"),
        "Detected potential single-instance resource (Project Manager, Configuration).",
    ),
)


class DesignPatternAdvisor:
    """Suggest patterns by substring matching over use case titles and narratives."""

    def suggest_patterns(self, document: DesignDocument) -> List[PatternSuggestion]:
        text = " ".join(f"{uc.title} {uc.narrative}" for uc in document.use_cases).lower()
        if not text:
            return []

        suggestions = []
        for pattern_id, likelihood, keywords, reason in HEURISTICS:
            if any(keyword in text for keyword in keywords):
                suggestions.append(PatternSuggestion(
                    **CATALOG[pattern_id].model_dump(),
                    usage_probability=likelihood,
                    reason=reason,
                ))
        return suggestions
