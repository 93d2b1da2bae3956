import pytest

from conftest import ARCHITECTURE, CLASS_DIAGRAM, DOMAIN_MODEL, mermaid_block
from siren_api.design.automation import PhaseAutomation, transition_phase
from siren_api.design.models import ProjectPhase
from siren_api.errors import ValidationError


class TestTransitionPhase:

    def test_moves_forward(self, new_document):
        updated = transition_phase(new_document, ProjectPhase.SYSTEM_DESIGN)

        assert updated.current_phase == ProjectPhase.SYSTEM_DESIGN
        assert updated.updated_at > new_document.updated_at
        assert new_document.current_phase == ProjectPhase.ANALYSIS

    def test_same_phase_is_noop(self, new_document):
        assert transition_phase(new_document, ProjectPhase.ANALYSIS) is new_document

    def test_rejects_moving_backwards(self, new_document):
        with pytest.raises(ValidationError) as exc_info:
            transition_phase(new_document, ProjectPhase.REQUIREMENTS_SPEC)

        assert exc_info.value.metadata["target_phase"] == "requirements_spec"


class TestPhaseAutomation:

    @pytest.mark.asyncio
    async def test_full_run(self, architect, generator, analyzed_document, clock):
        generator.queue(
            mermaid_block(DOMAIN_MODEL),
            mermaid_block(ARCHITECTURE),
            mermaid_block(CLASS_DIAGRAM),
            "# Traceability\n| UC | Class |",
        )
        updates = []
        progress = []

        result = await PhaseAutomation(architect, clock=clock).run(
            analyzed_document, on_update=updates.append, on_progress=progress.append,
        )

        assert result.current_phase == ProjectPhase.COMPLETED
        assert result.domain_model == DOMAIN_MODEL
        assert result.system_design.completed is True
        assert result.object_design.completed is True
        assert result.validation.generated_report is not None
        assert result.validation.report_generated_at is not None
        assert "## Phase 4: Validation" in result.validation.generated_report
        assert [p.current for p in progress] == [1, 2, 3, 4, 5]
        assert all(p.total == 5 for p in progress)
        assert len(updates) == 5
        assert updates[-1] == result
        assert generator.calls == 4

    @pytest.mark.asyncio
    async def test_skips_existing_domain_model(self, architect, generator, designed_document, clock):
        generator.queue(mermaid_block(ARCHITECTURE), mermaid_block(CLASS_DIAGRAM), "review")

        result = await PhaseAutomation(architect, clock=clock).run(designed_document)

        assert generator.calls == 3
        assert "classDiagram" in generator.prompts[1]
        assert result.current_phase == ProjectPhase.COMPLETED

    @pytest.mark.asyncio
    async def test_error_propagates_after_partial_updates(self, architect, generator, analyzed_document, clock):
        generator.queue(mermaid_block(DOMAIN_MODEL), "not a diagram")
        updates = []

        with pytest.raises(ValidationError):
            await PhaseAutomation(architect, clock=clock).run(analyzed_document, on_update=updates.append)

        assert len(updates) == 1
        assert updates[0].domain_model == DOMAIN_MODEL
