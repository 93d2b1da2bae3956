"""
Phase orchestrator for the design workflow.

``DesignArchitect`` runs one operation per phase: it checks the document's
preconditions, builds the prompt, calls the text-generation backend once,
parses and validates the reply, and returns an updated copy of the document.

Two failure policies apply:

* Chat operations soft-fail. When the backend reply is not valid JSON or does
  not match the expected schema, the caller gets a ``ChatDegraded`` result
  carrying the untouched document and a fallback reply.
* Diagram operations hard-fail. A reply that is not a recognized Mermaid
  diagram raises ``ValidationError`` and nothing is stored.

The architect never changes ``current_phase``; that is the caller's job (see
``siren_api.design.automation``).
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Callable, Dict, Optional, Union

from ..errors import ValidationError
from ..generation.base import TextGenerator
from ..logging import log_design_operation
from . import prompts, transitions
from .models import (
    AI_VALIDATOR_AUTHOR, AnalysisPhase, DesignDocument, ProjectPhase,
    RequirementsSpecification, ReviewComment
)
from .parsing import Degraded, extract_mermaid, parse_chat_analysis, parse_requirements_analysis, validate_mermaid
from .report import ReportCompiler

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

CHAT_FALLBACK_REPLY = "I had trouble processing the design updates, but I'm still listening."
REQUIREMENTS_FALLBACK_REPLY = "I had trouble processing the requirements, but I'm still listening."


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ChatAccepted:
    """The reply was parsed and merged into ``document``."""
    document: DesignDocument
    reply: str

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class ChatDegraded:
    """The reply was unusable; ``document`` is the caller's document, unchanged."""
    document: DesignDocument
    reply: str
    reason: str
    detail: str

    @property
    def degraded(self) -> bool:
        return True


ChatOutcome = Union[ChatAccepted, ChatDegraded]


class DesignArchitect:
    """Run the AI-backed operations of each design phase."""

    def __init__(
        self,
        generator: TextGenerator,
        clock: Optional[Clock] = None,
        report_compiler: Optional[ReportCompiler] = None,
    ):
        self.generator = generator
        self._clock = clock or _utcnow
        self.report_compiler = report_compiler or ReportCompiler()

    # Helpers

    def _precondition_failed(self, document: DesignDocument, message: str) -> ValidationError:
        return ValidationError(message, {
            "document_id": document.id,
            "current_phase": document.current_phase.value,
        })

    def _require_chat(self, document: DesignDocument, chat_log: str) -> None:
        if not chat_log or not chat_log.strip():
            raise self._precondition_failed(document, "Chat message cannot be empty")

    async def _generate_diagram(self, document: DesignDocument, prompt: str, operation: str) -> str:
        raw = await self.generator.generate_text(prompt)
        return validate_mermaid(extract_mermaid(raw), {
            "document_id": document.id,
            "current_phase": document.current_phase.value,
            "operation": operation,
        })

    def _log(self, document: DesignDocument, operation: str, level: int = logging.INFO, **extra: Any) -> None:
        log_design_operation(
            logger,
            operation,
            document_id=document.id,
            phase=document.current_phase.value,
            user_id=document.user_id,
            level=level,
            **extra,
        )

    # Session

    def start_session(
        self,
        project_name: str,
        description: str,
        user_id: str,
        include_requirements: bool = True,
    ) -> DesignDocument:
        """Create a new design document with the default records for the first phase."""
        if not project_name or not project_name.strip():
            raise ValidationError("Project name cannot be empty", {"user_id": user_id})
        if not user_id:
            raise ValidationError("A document must have an owner")

        now = self._clock()
        document = DesignDocument(
            user_id=user_id,
            project_name=project_name,
            description=description or "",
            current_phase=(
                ProjectPhase.REQUIREMENTS_SPEC if include_requirements else ProjectPhase.ANALYSIS
            ),
            requirements_spec=RequirementsSpecification() if include_requirements else None,
            analysis=AnalysisPhase(),
            created_at=now,
            updated_at=now,
        )
        self._log(document, "session_started", include_requirements=include_requirements)
        return document

    # Phase 0: requirements

    async def analyze_requirements_chat(self, document: DesignDocument, chat_log: str) -> ChatOutcome:
        """Extract requirements from a chat message and merge them field by field."""
        self._require_chat(document, chat_log)
        if document.requirements_spec is None:
            raise self._precondition_failed(document, "Requirements phase not initialized")

        raw = await self.generator.generate_text(
            prompts.build_requirements_extraction_prompt(chat_log)
        )
        outcome = parse_requirements_analysis(raw)

        if isinstance(outcome, Degraded):
            self._log(
                document, "requirements_chat_degraded", logging.WARNING,
                reason=outcome.reason, detail=outcome.detail,
            )
            return ChatDegraded(document, REQUIREMENTS_FALLBACK_REPLY, outcome.reason, outcome.detail)

        updated = transitions.apply_requirements(document, outcome.value, self._clock())
        self._log(updated, "requirements_chat_applied")
        return ChatAccepted(updated, outcome.value.reply)

    # Phase 1: analysis

    async def analyze_chat(self, document: DesignDocument, chat_log: str) -> ChatOutcome:
        """Extract use cases from a chat message and merge them by id."""
        self._require_chat(document, chat_log)
        if document.analysis is None:
            raise self._precondition_failed(document, "Analysis phase not initialized")

        context = prompts.render_requirements_context(document.requirements_spec)
        raw = await self.generator.generate_text(
            prompts.build_use_case_extraction_prompt(chat_log, context)
        )
        outcome = parse_chat_analysis(raw)

        if isinstance(outcome, Degraded):
            self._log(
                document, "analysis_chat_degraded", logging.WARNING,
                reason=outcome.reason, detail=outcome.detail,
            )
            return ChatDegraded(document, CHAT_FALLBACK_REPLY, outcome.reason, outcome.detail)

        updated = transitions.apply_use_cases(document, outcome.value.use_cases, self._clock())
        self._log(updated, "analysis_chat_applied", use_case_count=len(updated.use_cases))
        return ChatAccepted(updated, outcome.value.reply)

    async def generate_domain_model(self, document: DesignDocument) -> DesignDocument:
        if not document.use_cases:
            raise self._precondition_failed(document, "No use cases found to generate domain model")

        diagram = await self._generate_diagram(
            document,
            prompts.build_domain_model_prompt(document.use_cases),
            "generate_domain_model",
        )
        updated = transitions.apply_domain_model(document, diagram, self._clock())
        self._log(updated, "domain_model_generated")
        return updated

    # Phase 2: system design

    def start_system_design(self, document: DesignDocument) -> DesignDocument:
        """Attach an empty system design record."""
        return transitions.init_system_design(document)

    def _requirements_text(self, document: DesignDocument) -> str:
        context = prompts.render_requirements_context(document.requirements_spec)
        parts = [part for part in (document.description.strip(), context) if part]
        return "\n\n".join(parts)

    async def generate_system_architecture(self, document: DesignDocument) -> DesignDocument:
        if not document.domain_model:
            raise self._precondition_failed(document, "Domain model required for architecture")

        diagram = await self._generate_diagram(
            document,
            prompts.build_architecture_prompt(document.domain_model, self._requirements_text(document)),
            "generate_system_architecture",
        )
        updated = transitions.apply_architecture(document, diagram, self._clock())
        self._log(updated, "architecture_generated")
        return updated

    # Phase 3: object design

    async def generate_object_design(self, document: DesignDocument) -> DesignDocument:
        if not document.architecture_diagram:
            raise self._precondition_failed(document, "Architecture required for object design")

        diagram = await self._generate_diagram(
            document,
            prompts.build_class_diagram_prompt(document.domain_model, document.architecture_diagram),
            "generate_object_design",
        )
        updated = transitions.apply_class_diagram(document, diagram, self._clock())
        self._log(updated, "object_design_generated")
        return updated

    # Phase 4: validation

    async def validate_design(self, document: DesignDocument) -> DesignDocument:
        """Ask the backend for a traceability review and append it verbatim."""
        if not document.class_diagram or not document.use_cases:
            raise self._precondition_failed(document, "Class diagram and use cases required for validation")

        content = await self.generator.generate_text(
            prompts.build_validation_prompt(document.use_cases, document.class_diagram)
        )
        now = self._clock()
        review = ReviewComment(author=AI_VALIDATOR_AUTHOR, content=content, timestamp=now)
        updated = transitions.append_review(document, review, now)
        self._log(updated, "design_validated", review_count=len(updated.validation.reviews))
        return updated

    def generate_final_report(self, document: DesignDocument) -> str:
        """Compile the Markdown report. Never mutates the document or calls the backend."""
        return self.report_compiler.compile(document)


def outcome_payload(outcome: ChatOutcome) -> Dict[str, Any]:
    """Flatten a chat outcome into the shape the HTTP layer returns."""
    return {
        "document": outcome.document,
        "reply": outcome.reply,
        "degraded": outcome.degraded,
    }
