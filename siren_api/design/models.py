"""
Pydantic models for the design workflow.

This module defines the design document aggregate and the per-phase records
nested inside it. Documents are treated as values: workflow operations build
updated copies instead of mutating a document in place.
"""

from datetime import datetime, UTC
from enum import Enum
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class ProjectPhase(str, Enum):
    """Phases of the design workflow, in the order they are visited."""
    REQUIREMENTS_SPEC = "requirements_spec"
    ANALYSIS = "analysis"
    SYSTEM_DESIGN = "system_design"
    OBJECT_DESIGN = "object_design"
    VALIDATION = "validation"
    COMPLETED = "completed"

    @property
    def order(self) -> int:
        """Position of the phase in the workflow."""
        return list(ProjectPhase).index(self)


MERMAID_DIAGRAM_TYPES = (
    "graph",
    "classDiagram",
    "sequenceDiagram",
    "flowchart",
    "stateDiagram",
    "erDiagram",
)

AI_VALIDATOR_AUTHOR = "AI Validator"


class UseCase(BaseModel):
    """A use case extracted during analysis."""
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    narrative: str = Field(..., min_length=10)
    actors: List[str] = Field(..., min_length=1)


class GlossaryTerm(BaseModel):
    term: str = Field(..., min_length=1)
    definition: str = Field(..., min_length=1)


class OperationContract(BaseModel):
    operation: str = Field(..., min_length=1)
    pre_conditions: List[str] = Field(default_factory=list)
    post_conditions: List[str] = Field(default_factory=list)


class ReviewComment(BaseModel):
    """A review attached to the validation phase. Reviews are append-only."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    author: str = Field(..., min_length=1)
    content: str
    timestamp: datetime
    resolved: bool = False


class Stakeholder(BaseModel):
    id: str
    name: str
    role: str
    interests: List[str] = Field(default_factory=list)


class Constraint(BaseModel):
    id: str
    type: Literal["technical", "business", "regulatory", "schedule"]
    description: str


class FunctionalRequirement(BaseModel):
    id: str
    title: str
    description: str
    priority: Literal["high", "medium", "low"]


class QualityRequirement(BaseModel):
    id: str
    category: Literal["performance", "security", "usability", "maintainability", "reliability"]
    description: str
    metric: Optional[str] = None


class RequirementsSpecification(BaseModel):
    """Phase 0: requirements gathered through the requirements chat."""
    project_purpose: str = ""
    stakeholders: List[Stakeholder] = Field(default_factory=list)
    constraints: List[Constraint] = Field(default_factory=list)
    functional_requirements: List[FunctionalRequirement] = Field(default_factory=list)
    quality_requirements: List[QualityRequirement] = Field(default_factory=list)
    completed: bool = False

    def is_empty(self) -> bool:
        return not (
            self.project_purpose
            or self.stakeholders
            or self.constraints
            or self.functional_requirements
            or self.quality_requirements
        )


class AnalysisPhase(BaseModel):
    """Phase 1: use cases and the domain model."""
    use_cases: List[UseCase] = Field(default_factory=list)
    domain_model_mermaid: str = ""
    glossary: List[GlossaryTerm] = Field(default_factory=list)
    completed: bool = False


class SystemDesignPhase(BaseModel):
    """Phase 2: architecture diagram and subsystems."""
    architecture_diagram_mermaid: str = ""
    subsystems: List[str] = Field(default_factory=list)
    deployment_diagram_mermaid: Optional[str] = None
    completed: bool = False


class ObjectDesignPhase(BaseModel):
    """Phase 3: design class diagram and operation contracts."""
    class_diagram_mermaid: str = ""
    sequence_diagrams_mermaid: List[str] = Field(default_factory=list)
    contracts: List[OperationContract] = Field(default_factory=list)
    completed: bool = False


class ValidationPhase(BaseModel):
    """Phase 4: reviews and the generated report."""
    reviews: List[ReviewComment] = Field(default_factory=list)
    is_approved: bool = False
    export_url: Optional[str] = None
    generated_report: Optional[str] = None
    report_generated_at: Optional[datetime] = None


class DesignDocument(BaseModel):
    """Root aggregate of the design workflow, one per project."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str = Field(..., min_length=1)
    project_name: str = Field(..., min_length=1)
    description: str = ""
    current_phase: ProjectPhase = ProjectPhase.REQUIREMENTS_SPEC

    requirements_spec: Optional[RequirementsSpecification] = None
    analysis: Optional[AnalysisPhase] = None
    system_design: Optional[SystemDesignPhase] = None
    object_design: Optional[ObjectDesignPhase] = None
    validation: Optional[ValidationPhase] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator('project_name')
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        """Project names must contain something other than whitespace."""
        if not v.strip():
            raise ValueError("Project name cannot be empty")
        return v.strip()

    @property
    def use_cases(self) -> List[UseCase]:
        return self.analysis.use_cases if self.analysis else []

    @property
    def domain_model(self) -> str:
        return self.analysis.domain_model_mermaid if self.analysis else ""

    @property
    def architecture_diagram(self) -> str:
        return self.system_design.architecture_diagram_mermaid if self.system_design else ""

    @property
    def class_diagram(self) -> str:
        return self.object_design.class_diagram_mermaid if self.object_design else ""

    def latest_review(self, author: str = AI_VALIDATOR_AUTHOR) -> Optional[ReviewComment]:
        """Return the most recent review written by ``author``."""
        if not self.validation:
            return None
        for review in reversed(self.validation.reviews):
            if review.author == author:
                return review
        return None


class DocumentSummary(BaseModel):
    """Listing entry for a design document."""
    id: str
    project_name: str
    current_phase: ProjectPhase
    updated_at: datetime

    @classmethod
    def from_document(cls, document: DesignDocument) -> 'DocumentSummary':
        return cls(
            id=document.id,
            project_name=document.project_name,
            current_phase=document.current_phase,
            updated_at=document.updated_at,
        )
