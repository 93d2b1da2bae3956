from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .design.models import DesignDocument, DocumentSummary, ProjectPhase
from .design.patterns import PatternSuggestion


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    timestamp: datetime


class CreateDesignRequest(BaseModel):
    project_name: str = Field(..., min_length=1, description="Name of the project to design")
    description: str = Field(default="", description="Free-text description of the system")
    include_requirements: bool = Field(
        default=True, description="Start with the requirements phase instead of analysis"
    )


class ChatRequest(BaseModel):
    message: str = Field(..., description="User chat message for the current phase")


class ChatResponse(BaseModel):
    document: DesignDocument
    reply: str
    degraded: bool


class DesignListResponse(BaseModel):
    designs: list[DocumentSummary]


class PhaseTransitionRequest(BaseModel):
    target_phase: ProjectPhase


class ReportResponse(BaseModel):
    document_id: str
    markdown: str


class PatternListResponse(BaseModel):
    document_id: str
    patterns: list[PatternSuggestion]


class ErrorResponse(BaseModel):
    kind: str
    code: str
    message: str
    status_code: int
    classification: str
    category: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    details: str | None = None
    timestamp: datetime
