"""Design workflow: models, prompts, parsing, orchestration and reporting."""

from .architect import ChatAccepted, ChatDegraded, DesignArchitect
from .automation import AutomationProgress, PhaseAutomation, transition_phase
from .models import DesignDocument, ProjectPhase, UseCase
from .report import ReportCompiler

__all__ = [
    "AutomationProgress",
    "ChatAccepted",
    "ChatDegraded",
    "DesignArchitect",
    "DesignDocument",
    "PhaseAutomation",
    "ProjectPhase",
    "ReportCompiler",
    "UseCase",
    "transition_phase",
]
