"""
Parsing and validation of text-generation responses.

The model is an untrusted, non-deterministic source. Chat replies are parsed
into a tagged outcome (``Parsed`` or ``Degraded``) so callers can fall back
gracefully; diagram replies either pass the Mermaid shape check or raise.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from ..errors import ValidationError
from .models import (
    MERMAID_DIAGRAM_TYPES, Constraint, FunctionalRequirement, QualityRequirement,
    Stakeholder, UseCase
)

T = TypeVar("T")

SNIPPET_LENGTH = 200

_JSON_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?(.*)```", re.DOTALL | re.IGNORECASE)
_STRAY_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_MERMAID_FENCE_RE = re.compile(r"```mermaid(.*?)```", re.DOTALL)
_MERMAID_TYPE_RE = re.compile(r"^(?:" + "|".join(MERMAID_DIAGRAM_TYPES) + r")")


class ChatAnalysisResponse(BaseModel):
    """Expected reply when extracting use cases from a chat."""
    model_config = ConfigDict(populate_by_name=True)

    reply: str = Field(..., min_length=1)
    use_cases: List[UseCase] = Field(default_factory=list, alias="useCases")


class RequirementsAnalysisResponse(BaseModel):
    """Expected reply when extracting requirements from a chat."""
    model_config = ConfigDict(populate_by_name=True)

    reply: str = Field(..., min_length=1)
    project_purpose: Optional[str] = Field(default=None, alias="projectPurpose")
    stakeholders: Optional[List[Stakeholder]] = None
    constraints: Optional[List[Constraint]] = None
    functional_requirements: Optional[List[FunctionalRequirement]] = Field(
        default=None, alias="functionalRequirements"
    )
    quality_requirements: Optional[List[QualityRequirement]] = Field(
        default=None, alias="qualityRequirements"
    )


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """A reply that passed JSON decoding and schema validation."""
    value: T


@dataclass(frozen=True)
class Degraded:
    """A reply that could not be used; ``reason`` is a machine-readable code."""
    reason: str
    detail: str


ParseOutcome = Union[Parsed[T], Degraded]


def snippet(text: str, length: int = SNIPPET_LENGTH) -> str:
    """Truncate model output for diagnostics."""
    return text[:length]


def strip_code_fences(text: str) -> str:
    """
    Remove Markdown code fences around a JSON payload.

    The body runs from the first opening fence to the last closing one, so
    fences quoted inside JSON strings survive.
    """
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return _STRAY_FENCE_RE.sub("", text).strip()


def load_json_object(text: str) -> Any:
    """
    Decode JSON from model output.

    Tries the fence-stripped text first, then the outermost ``{...}`` span of
    the raw text. Raises ``json.JSONDecodeError`` when neither decodes, and
    ``RecursionError`` on pathologically nested input.
    """
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start:end + 1])


def _format_schema_errors(exc: PydanticValidationError) -> str:
    return ", ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    )


def _parse_model(raw: str, model: type) -> ParseOutcome:
    try:
        data = load_json_object(raw)
    except json.JSONDecodeError as exc:
        return Degraded(reason="invalid_json", detail=f"{exc.msg} at position {exc.pos}")
    except RecursionError:
        return Degraded(reason="invalid_json", detail="JSON nested too deeply")

    if not isinstance(data, dict):
        return Degraded(reason="invalid_schema", detail="Expected a JSON object")

    try:
        return Parsed(model.model_validate(data))
    except PydanticValidationError as exc:
        return Degraded(reason="invalid_schema", detail=_format_schema_errors(exc))


def parse_chat_analysis(raw: str) -> ParseOutcome:
    """Parse a use-case extraction reply. Never raises."""
    return _parse_model(raw, ChatAnalysisResponse)


def parse_requirements_analysis(raw: str) -> ParseOutcome:
    """Parse a requirements extraction reply. Never raises."""
    return _parse_model(raw, RequirementsAnalysisResponse)


def extract_mermaid(raw: str) -> str:
    """Return the body of a ```mermaid block, or the whole text when there is none."""
    match = _MERMAID_FENCE_RE.search(raw)
    if match:
        return match.group(1).strip()
    return raw.strip()


def is_mermaid_diagram(code: str) -> bool:
    return bool(code) and bool(_MERMAID_TYPE_RE.match(code.strip()))


def validate_mermaid(code: str, metadata: Optional[Dict[str, Any]] = None) -> str:
    """
    Check that ``code`` starts with a recognized Mermaid diagram declaration.

    Raises:
        ValidationError: carrying a truncated copy of the offending output.
    """
    if is_mermaid_diagram(code):
        return code.strip()

    details = dict(metadata or {})
    details["generated_code"] = snippet(code)
    details["expected_types"] = list(MERMAID_DIAGRAM_TYPES)
    raise ValidationError("Invalid Mermaid diagram generated", details)
