"""
Phase transitions as total functions over design documents.

Each function takes a document plus the validated output of one phase and
returns a new document. Inputs are never mutated, so callers may cache or
compare documents across operations without aliasing surprises.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, TypeVar

from pydantic import BaseModel

from .models import (
    AnalysisPhase, DesignDocument, ObjectDesignPhase, ProjectPhase,
    RequirementsSpecification, ReviewComment, SystemDesignPhase, UseCase,
    ValidationPhase
)
from .parsing import RequirementsAnalysisResponse

M = TypeVar("M", bound=BaseModel)

_TICK = timedelta(microseconds=1)


def next_timestamp(previous: datetime, now: datetime) -> datetime:
    """Return ``now``, nudged forward so it is strictly later than ``previous``."""
    return now if now > previous else previous + _TICK


def merge_by_id(existing: Sequence[M], incoming: Iterable[M]) -> List[M]:
    """
    Merge two lists of id-bearing models.

    Items whose id already exists are replaced in place, new ids are appended
    in arrival order, and existing items absent from ``incoming`` are kept.
    """
    merged = list(existing)
    positions = {getattr(item, "id"): index for index, item in enumerate(merged)}
    for item in incoming:
        key = getattr(item, "id")
        if key in positions:
            merged[positions[key]] = item
        else:
            positions[key] = len(merged)
            merged.append(item)
    return merged


def _stamped(document: DesignDocument, now: datetime, **changes) -> DesignDocument:
    changes["updated_at"] = next_timestamp(document.updated_at, now)
    # Deep copy after the update so no nested record is shared with the input
    return document.model_copy(update=changes).model_copy(deep=True)


def apply_requirements(
    document: DesignDocument,
    response: RequirementsAnalysisResponse,
    now: datetime,
) -> DesignDocument:
    """Merge extracted requirements field by field; missing fields keep their values."""
    current = document.requirements_spec or RequirementsSpecification()

    merged = RequirementsSpecification(
        project_purpose=response.project_purpose or current.project_purpose,
        stakeholders=(
            current.stakeholders if response.stakeholders is None
            else merge_by_id(current.stakeholders, response.stakeholders)
        ),
        constraints=(
            current.constraints if response.constraints is None
            else merge_by_id(current.constraints, response.constraints)
        ),
        functional_requirements=(
            current.functional_requirements if response.functional_requirements is None
            else merge_by_id(current.functional_requirements, response.functional_requirements)
        ),
        quality_requirements=(
            current.quality_requirements if response.quality_requirements is None
            else merge_by_id(current.quality_requirements, response.quality_requirements)
        ),
        completed=current.completed,
    )
    return _stamped(document, now, requirements_spec=merged)


def apply_use_cases(document: DesignDocument, use_cases: Sequence[UseCase], now: datetime) -> DesignDocument:
    analysis = document.analysis or AnalysisPhase()
    updated = analysis.model_copy(update={"use_cases": merge_by_id(analysis.use_cases, use_cases)})
    return _stamped(document, now, analysis=updated)


def apply_domain_model(document: DesignDocument, diagram: str, now: datetime) -> DesignDocument:
    analysis = document.analysis or AnalysisPhase()
    updated = analysis.model_copy(update={"domain_model_mermaid": diagram})
    return _stamped(document, now, analysis=updated)


def init_system_design(document: DesignDocument) -> DesignDocument:
    """Attach an empty system design record, replacing any existing one."""
    return document.model_copy(deep=True, update={"system_design": SystemDesignPhase()})


def apply_architecture(document: DesignDocument, diagram: str, now: datetime) -> DesignDocument:
    system_design = document.system_design or SystemDesignPhase()
    updated = system_design.model_copy(update={"architecture_diagram_mermaid": diagram})
    return _stamped(document, now, system_design=updated)


def apply_class_diagram(document: DesignDocument, diagram: str, now: datetime) -> DesignDocument:
    object_design = document.object_design or ObjectDesignPhase()
    updated = object_design.model_copy(update={"class_diagram_mermaid": diagram})
    return _stamped(document, now, object_design=updated)


def append_review(document: DesignDocument, review: ReviewComment, now: datetime) -> DesignDocument:
    validation = document.validation or ValidationPhase()
    updated = validation.model_copy(update={"reviews": [*validation.reviews, review]})
    return _stamped(document, now, validation=updated)


def mark_completed(document: DesignDocument, phase: ProjectPhase, now: datetime) -> DesignDocument:
    """Set the ``completed`` flag of a phase record that exists."""
    attribute = {
        ProjectPhase.REQUIREMENTS_SPEC: "requirements_spec",
        ProjectPhase.ANALYSIS: "analysis",
        ProjectPhase.SYSTEM_DESIGN: "system_design",
        ProjectPhase.OBJECT_DESIGN: "object_design",
    }.get(phase)
    record = getattr(document, attribute) if attribute else None
    if record is None:
        return document
    return _stamped(document, now, **{attribute: record.model_copy(update={"completed": True})})


def set_phase(document: DesignDocument, phase: ProjectPhase, now: datetime) -> DesignDocument:
    return _stamped(document, now, current_phase=phase)


def store_report(
    document: DesignDocument,
    report: str,
    now: datetime,
    phase: Optional[ProjectPhase] = None,
) -> DesignDocument:
    validation = document.validation or ValidationPhase()
    updated = validation.model_copy(
        update={"generated_report": report, "report_generated_at": now}
    )
    changes = {"validation": updated}
    if phase is not None:
        changes["current_phase"] = phase
    return _stamped(document, now, **changes)
