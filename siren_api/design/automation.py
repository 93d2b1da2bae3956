"""
Caller-side phase sequencing.

The architect never decides the next phase. This module owns that decision:
``transition_phase`` moves a document forward on request, and
``PhaseAutomation`` runs every generation phase in dependency order, ending
with a stored report and the document in the ``completed`` phase.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable, Optional

from ..errors import ValidationError
from ..logging import log_design_operation
from . import transitions
from .architect import DesignArchitect
from .models import DesignDocument, ProjectPhase

logger = logging.getLogger(__name__)

TOTAL_STEPS = 5


@dataclass(frozen=True)
class AutomationProgress:
    current: int
    total: int
    message: str


UpdateCallback = Callable[[DesignDocument], None]
ProgressCallback = Callable[[AutomationProgress], None]


def transition_phase(
    document: DesignDocument,
    target: ProjectPhase,
    now: Optional[datetime] = None,
) -> DesignDocument:
    """
    Move ``document`` to ``target``.

    Moving to the current phase is a no-op. Moving backwards raises
    ``ValidationError``.
    """
    if target.order < document.current_phase.order:
        raise ValidationError(
            f"Cannot move from {document.current_phase.value} back to {target.value}",
            {
                "document_id": document.id,
                "current_phase": document.current_phase.value,
                "target_phase": target.value,
            },
        )
    if target == document.current_phase:
        return document
    return transitions.set_phase(document, target, now or datetime.now(UTC))


class PhaseAutomation:
    """Drive a document from analysis to a completed report."""

    def __init__(self, architect: DesignArchitect, clock: Optional[Callable[[], datetime]] = None):
        self.architect = architect
        self._clock = clock or (lambda: datetime.now(UTC))

    def _advance(self, document: DesignDocument, phase: ProjectPhase) -> DesignDocument:
        if document.current_phase.order >= phase.order:
            return document
        return transitions.set_phase(document, phase, self._clock())

    async def run(
        self,
        document: DesignDocument,
        on_update: Optional[UpdateCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> DesignDocument:
        """
        Run domain model, architecture, object design, validation and report.

        The domain model step is skipped when a domain model already exists.
        Errors from any step propagate unchanged; ``on_update`` has then
        already seen every document produced before the failure.
        """
        def progress(step: int, message: str) -> None:
            if on_progress:
                on_progress(AutomationProgress(step, TOTAL_STEPS, message))

        def publish(doc: DesignDocument) -> DesignDocument:
            if on_update:
                on_update(doc)
            return doc

        log_design_operation(
            logger, "automation_started",
            document_id=document.id, phase=document.current_phase.value, user_id=document.user_id,
        )

        progress(1, "Generating domain model...")
        doc = self._advance(document, ProjectPhase.ANALYSIS)
        if not doc.domain_model:
            doc = publish(await self.architect.generate_domain_model(doc))

        progress(2, "Designing system architecture...")
        doc = self._advance(doc, ProjectPhase.SYSTEM_DESIGN)
        doc = await self.architect.generate_system_architecture(doc)
        doc = publish(transitions.mark_completed(doc, ProjectPhase.SYSTEM_DESIGN, self._clock()))

        progress(3, "Creating class diagrams...")
        doc = self._advance(doc, ProjectPhase.OBJECT_DESIGN)
        doc = await self.architect.generate_object_design(doc)
        doc = publish(transitions.mark_completed(doc, ProjectPhase.OBJECT_DESIGN, self._clock()))

        progress(4, "Validating design...")
        doc = self._advance(doc, ProjectPhase.VALIDATION)
        doc = publish(await self.architect.validate_design(doc))

        progress(5, "Generating final report...")
        report = self.architect.generate_final_report(doc)
        doc = publish(transitions.store_report(doc, report, self._clock(), phase=ProjectPhase.COMPLETED))

        log_design_operation(
            logger, "automation_completed",
            document_id=doc.id, phase=doc.current_phase.value, user_id=doc.user_id,
        )
        return doc
