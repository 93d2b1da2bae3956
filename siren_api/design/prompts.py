"""
Prompt builders for each phase of the design workflow.

Builders are pure: the same inputs always produce the same prompt, and a
missing optional input is rendered as an explicit placeholder rather than an
empty string so the model never has to guess whether data was omitted.
"""

import json
from typing import Iterable, Optional

from .models import RequirementsSpecification, UseCase

NOT_PROVIDED = "(not provided)"

LANGUAGE_RULE = (
    "ADAPT TO THE USER'S LANGUAGE: write the \"reply\" field in the same language "
    "the user writes in."
)

PROACTIVE_RULE = (
    "BE PROACTIVE: when the information is sparse or ambiguous, end your reply with "
    "one or two LEADING questions that help the user fill the gaps (actors, goals, "
    "alternative flows, constraints)."
)


def _or_placeholder(value: Optional[str]) -> str:
    if value is None or not value.strip():
        return NOT_PROVIDED
    return value.strip()


def serialize_use_cases(use_cases: Iterable[UseCase]) -> str:
    """Serialize use cases as compact JSON for embedding in prompts."""
    return json.dumps(
        [uc.model_dump() for uc in use_cases],
        ensure_ascii=False,
        separators=(",", ":"),
    )


def render_requirements_context(spec: Optional[RequirementsSpecification]) -> Optional[str]:
    """Render a requirements specification as a short summary, or None when empty."""
    if spec is None or spec.is_empty():
        return None

    functional = "\n".join(
        f"- {fr.title} ({fr.priority}): {fr.description}" for fr in spec.functional_requirements
    )
    quality = "\n".join(
        f"- {qr.category}: {qr.description}" for qr in spec.quality_requirements
    )

    return (
        f"Purpose: {_or_placeholder(spec.project_purpose)}\n\n"
        f"Functional Requirements:\n{functional or NOT_PROVIDED}\n\n"
        f"Quality Requirements:\n{quality or NOT_PROVIDED}"
    )


def build_requirements_extraction_prompt(chat_log: str) -> str:
    return f"""You are a senior requirements engineer helping a user write a Requirements Specification.

Analyze the conversation below and extract the project purpose, stakeholders, constraints,
functional requirements and quality requirements mentioned so far.

Conversation:
\"\"\"
{_or_placeholder(chat_log)}
\"\"\"

Rules:
- {LANGUAGE_RULE}
- {PROACTIVE_RULE}
- Only include fields you have evidence for; omit a field entirely to keep its previous value.
- Constraint "type" is one of: technical, business, regulatory, schedule.
- Functional requirement "priority" is one of: high, medium, low.
- Quality requirement "category" is one of: performance, security, usability, maintainability, reliability.

Respond with a single JSON object and nothing else:
{{
  "reply": "string - your conversational answer to the user",
  "projectPurpose": "string",
  "stakeholders": [{{"id": "string", "name": "string", "role": "string", "interests": ["string"]}}],
  "constraints": [{{"id": "string", "type": "technical", "description": "string"}}],
  "functionalRequirements": [{{"id": "string", "title": "string", "description": "string", "priority": "high"}}],
  "qualityRequirements": [{{"id": "string", "category": "performance", "description": "string", "metric": "string"}}]
}}
"""


def build_use_case_extraction_prompt(chat_log: str, requirements_context: Optional[str] = None) -> str:
    return f"""You are an expert object-oriented analyst guiding a user through the Analysis phase.

Analyze the conversation below and extract the use cases of the system. Keep the use cases
you already identified and refine them as the user adds detail.

Requirements context:
{_or_placeholder(requirements_context)}

Conversation:
\"\"\"
{_or_placeholder(chat_log)}
\"\"\"

Rules:
- {LANGUAGE_RULE}
- {PROACTIVE_RULE}
- Each use case needs a stable "id", a short "title", a narrative of at least one full
  sentence and at least one actor.

Respond with a single JSON object and nothing else:
{{
  "reply": "string - your conversational answer to the user",
  "useCases": [
    {{"id": "uc-1", "title": "string", "narrative": "string", "actors": ["string"]}}
  ]
}}
"""


def build_domain_model_prompt(use_cases: Iterable[UseCase]) -> str:
    serialized = serialize_use_cases(use_cases)
    return f"""You are an expert object-oriented analyst. Create the Domain Model for the use cases below.

Use cases (JSON):
{serialized if serialized != "[]" else NOT_PROVIDED}

Guidelines:
- Model conceptual classes only (no methods, no software classes).
- Give each class its key attributes.
- Show the relationships between classes (association, aggregation, composition,
  generalization) with multiplicities.

Return ONLY a Mermaid classDiagram wrapped in a ```mermaid code block.
"""


def build_architecture_prompt(domain_model: str, requirements: str) -> str:
    return f"""You are a software architect. Produce the System Architecture for the system described below.

Domain Model (Mermaid):
{_or_placeholder(domain_model)}

Requirements and description:
{_or_placeholder(requirements)}

Guidelines:
- Choose a Layered architecture or a Microservices decomposition and justify it by the requirements.
- Identify the subsystems and the dependencies between them.
- Keep presentation, application, domain and infrastructure concerns separated.

Return ONLY a Mermaid diagram (flowchart or graph) wrapped in a ```mermaid code block.
"""


def build_class_diagram_prompt(domain_model: str, architecture: str) -> str:
    return f"""You are a software designer. Produce the detailed Design Class Diagram for the system.

Domain Model (Mermaid):
{_or_placeholder(domain_model)}

System Architecture (Mermaid):
{_or_placeholder(architecture)}

Guidelines:
- Include attributes with types and methods with parameters and return types.
- Mark visibility on every member (+ public, - private, # protected).
- Apply GRASP (Information Expert, Creator, Controller, High Cohesion, Low Coupling).
- Apply SOLID principles; prefer interfaces at subsystem boundaries.
- Aim for High Cohesion inside classes and Low Coupling between subsystems.

Return ONLY a Mermaid classDiagram wrapped in a ```mermaid code block.
"""


def build_validation_prompt(use_cases: Iterable[UseCase], class_diagram: str) -> str:
    serialized = serialize_use_cases(use_cases)
    return f"""You are a design reviewer. Validate the design against its use cases.

Use cases (JSON):
{serialized if serialized != "[]" else NOT_PROVIDED}

Design Class Diagram (Mermaid):
{_or_placeholder(class_diagram)}

Produce a Markdown report with these sections:
1. Traceability Matrix: a table mapping every use case to the classes that realize it.
2. Gaps: use cases or steps that no class supports, and classes no use case needs.
3. Quality Score: a score from 0 to 100 with a short justification (cohesion, coupling, completeness).
"""
