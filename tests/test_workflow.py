"""Tests for the lead workflow orchestrator."""

import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from leadflow.core.errors import InvalidStateTransition, PersistenceError, ProviderError
from leadflow.models import QualificationCategory, WorkflowState, WorkflowStatus
from leadflow.services.routing import route_for
from leadflow.services.workflow import WorkflowRun, can_transition, run_workflow


def _only_workflow(store, lead_id):
    workflows = store.workflows_for_lead(lead_id)
    assert len(workflows) == 1
    return workflows[0]


class TestStateMachine:
    """Allowed and rejected transitions."""

    def test_happy_path_transitions(self):
        path = [
            WorkflowState.CREATED,
            WorkflowState.RESEARCHING,
            WorkflowState.QUALIFYING,
            WorkflowState.ROUTE_OUTREACH,
            WorkflowState.DRAFTING,
            WorkflowState.AWAITING_APPROVAL,
            WorkflowState.COMPLETED,
        ]
        for current, target in zip(path, path[1:]):
            assert can_transition(current, target)

    def test_any_non_terminal_state_can_fail(self):
        for state in WorkflowState:
            expected = state not in (WorkflowState.COMPLETED, WorkflowState.FAILED)
            assert can_transition(state, WorkflowState.FAILED) == expected

    def test_invalid_transition_raises(self, sample_lead):
        run = WorkflowRun(sample_lead)
        with pytest.raises(InvalidStateTransition):
            run.transition(WorkflowState.DRAFTING)
        assert run.state == WorkflowState.CREATED

    def test_terminal_states_are_final(self, sample_lead):
        run = WorkflowRun(sample_lead)
        run.transition(WorkflowState.FAILED)
        with pytest.raises(InvalidStateTransition):
            run.transition(WorkflowState.RESEARCHING)


class TestRouting:
    """Category to outreach routing."""

    @pytest.mark.parametrize("category,outreach", [
        (QualificationCategory.QUALIFIED, True),
        (QualificationCategory.FOLLOW_UP, True),
        (QualificationCategory.UNQUALIFIED, False),
        (QualificationCategory.SUPPORT, False),
    ])
    def test_every_category_is_routed(self, category, outreach):
        decision = route_for(category)
        assert decision.is_outreach == outreach
        assert decision.draft_email == outreach
        assert decision.request_approval == outreach


class TestWorkflowRun:
    """End-to-end runs against the in-memory store."""

    @pytest.mark.asyncio
    async def test_qualified_lead_end_to_end(
        self, workflow, seeded_store, sample_lead, drafter, approval_gate
    ):
        run = await workflow.execute(sample_lead)

        stored = _only_workflow(seeded_store, sample_lead.id)
        assert stored.status == WorkflowStatus.COMPLETED
        assert stored.completed_at is not None
        assert stored.email_draft == "<p>Hi Jane, thanks for reaching out.</p>"
        assert stored.research_results == {"research": "Acme Corp is a 200-person logistics company."}

        lead = await seeded_store.get_lead(sample_lead.id)
        assert lead.qualification_category == QualificationCategory.QUALIFIED
        assert lead.qualification_reason == "[MOCK] Strong product fit"

        assert len(approval_gate.requests) == 1
        assert approval_gate.requests[0]["workflow_id"] == stored.id
        assert run.history == [
            WorkflowState.CREATED,
            WorkflowState.RESEARCHING,
            WorkflowState.QUALIFYING,
            WorkflowState.ROUTE_OUTREACH,
            WorkflowState.DRAFTING,
            WorkflowState.AWAITING_APPROVAL,
            WorkflowState.COMPLETED,
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("category", [
        QualificationCategory.UNQUALIFIED,
        QualificationCategory.SUPPORT,
    ])
    async def test_non_outreach_categories_skip_drafting(
        self, workflow, seeded_store, sample_lead, classifier, drafter, approval_gate, category
    ):
        classifier.category = category

        run = await workflow.execute(sample_lead)

        stored = _only_workflow(seeded_store, sample_lead.id)
        assert stored.status == WorkflowStatus.COMPLETED
        assert stored.email_draft is None
        assert drafter.calls == []
        assert approval_gate.requests == []
        assert WorkflowState.ROUTE_TERMINAL in run.history

        lead = await seeded_store.get_lead(sample_lead.id)
        assert lead.qualification_category == category

    @pytest.mark.asyncio
    async def test_follow_up_lead_gets_outreach(
        self, workflow, seeded_store, sample_lead, classifier, approval_gate
    ):
        classifier.category = QualificationCategory.FOLLOW_UP

        await workflow.run(sample_lead)

        stored = _only_workflow(seeded_store, sample_lead.id)
        assert stored.email_draft is not None
        assert approval_gate.requests[0]["qualification"].category == QualificationCategory.FOLLOW_UP

    @pytest.mark.asyncio
    async def test_steps_receive_previous_outputs(
        self, workflow, sample_lead, researcher, classifier, drafter, approval_gate
    ):
        await workflow.run(sample_lead)

        report = researcher.report
        assert researcher.calls[0].id == sample_lead.id
        assert classifier.calls[0]["research"] == report
        assert drafter.calls[0]["research"] == report
        assert drafter.calls[0]["qualification"].category == QualificationCategory.QUALIFIED
        assert approval_gate.requests[0]["email"] == drafter.email
        assert approval_gate.requests[0]["research"] == report


class TestWorkflowFailures:
    """Failure isolation: the run is marked failed and the error propagates."""

    @pytest.mark.asyncio
    async def test_research_failure(
        self, workflow, seeded_store, sample_lead, researcher, classifier
    ):
        researcher.error = ProviderError("research", "firecrawl down")

        with pytest.raises(ProviderError, match="firecrawl down"):
            await workflow.run(sample_lead)

        stored = _only_workflow(seeded_store, sample_lead.id)
        assert stored.status == WorkflowStatus.FAILED
        assert stored.completed_at is not None
        assert classifier.calls == []

        lead = await seeded_store.get_lead(sample_lead.id)
        assert lead.qualification_category is None

    @pytest.mark.asyncio
    async def test_drafting_failure_keeps_qualification(
        self, workflow, seeded_store, sample_lead, drafter, approval_gate
    ):
        drafter.error = ProviderError("email_drafter", "model timeout")

        with pytest.raises(ProviderError):
            await workflow.run(sample_lead)

        stored = _only_workflow(seeded_store, sample_lead.id)
        assert stored.status == WorkflowStatus.FAILED
        assert stored.email_draft is None
        assert approval_gate.requests == []

        lead = await seeded_store.get_lead(sample_lead.id)
        assert lead.qualification_category == QualificationCategory.QUALIFIED

    @pytest.mark.asyncio
    async def test_approval_delivery_failure_fails_run(
        self, workflow, seeded_store, sample_lead, approval_gate
    ):
        approval_gate.error = ProviderError("slack", "channel_not_found")

        with pytest.raises(ProviderError):
            await workflow.run(sample_lead)

        stored = _only_workflow(seeded_store, sample_lead.id)
        assert stored.status == WorkflowStatus.FAILED
        # The draft was persisted before the approval request
        assert stored.email_draft is not None

    @pytest.mark.asyncio
    async def test_qualification_failure(
        self, workflow, seeded_store, sample_lead, classifier, drafter
    ):
        classifier.error = ProviderError("qualification", "bad output")

        with pytest.raises(ProviderError):
            await workflow.run(sample_lead)

        assert _only_workflow(seeded_store, sample_lead.id).status == WorkflowStatus.FAILED
        assert drafter.calls == []

        lead = await seeded_store.get_lead(sample_lead.id)
        assert lead.qualification_category is None

    @pytest.mark.asyncio
    async def test_cancelled_run_is_marked_failed(
        self, workflow, seeded_store, sample_lead, researcher, classifier
    ):
        researcher.error = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await workflow.run(sample_lead)

        stored = _only_workflow(seeded_store, sample_lead.id)
        assert stored.status == WorkflowStatus.FAILED
        assert stored.completed_at is not None
        assert classifier.calls == []

    @pytest.mark.asyncio
    async def test_create_failure_runs_nothing(
        self, workflow, seeded_store, sample_lead, researcher
    ):
        seeded_store.create_workflow = AsyncMock(side_effect=PersistenceError("db down"))
        seeded_store.finalize_workflow = AsyncMock()

        with pytest.raises(PersistenceError, match="db down"):
            await workflow.run(sample_lead)

        assert researcher.calls == []
        seeded_store.finalize_workflow.assert_not_called()

    @pytest.mark.asyncio
    async def test_finalize_failure_does_not_mask_original_error(
        self, workflow, seeded_store, sample_lead, researcher
    ):
        researcher.error = ProviderError("research", "original failure")
        seeded_store.finalize_workflow = AsyncMock(side_effect=PersistenceError("db down"))

        with pytest.raises(ProviderError, match="original failure"):
            await workflow.run(sample_lead)

        seeded_store.finalize_workflow.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_completion_write_failure_marks_failed(
        self, workflow, seeded_store, sample_lead
    ):
        seeded_store.finalize_workflow = AsyncMock(
            side_effect=[PersistenceError("write lost"), None]
        )

        with pytest.raises(PersistenceError, match="write lost"):
            await workflow.run(sample_lead)

        statuses = [c.args[1] for c in seeded_store.finalize_workflow.await_args_list]
        assert statuses == [WorkflowStatus.COMPLETED, WorkflowStatus.FAILED]


class TestConcurrency:
    """Independent runs."""

    @pytest.mark.asyncio
    async def test_duplicate_runs_for_one_lead_create_two_workflows(
        self, workflow, seeded_store, sample_lead, approval_gate
    ):
        # No dedup: both runs proceed independently
        await asyncio.gather(workflow.run(sample_lead), workflow.run(sample_lead))

        workflows = seeded_store.workflows_for_lead(sample_lead.id)
        assert len(workflows) == 2
        assert all(wf.status == WorkflowStatus.COMPLETED for wf in workflows)
        assert {r["workflow_id"] for r in approval_gate.requests} == {wf.id for wf in workflows}

    @pytest.mark.asyncio
    async def test_run_workflow_uses_given_orchestrator(self, workflow, seeded_store, sample_lead):
        await run_workflow(sample_lead, workflow)

        assert _only_workflow(seeded_store, sample_lead.id).status == WorkflowStatus.COMPLETED


class TestBuildWorkflow:
    """Orchestrator wiring from settings."""

    def test_mock_providers(self, store):
        from leadflow.intelligence.mock_providers import MockApprovalGate, MockResearchProvider
        from leadflow.services.workflow import build_workflow

        with patch("leadflow.core.config.get_settings") as mock_settings:
            mock_settings.return_value.MOCK_PROVIDERS = True
            built = build_workflow(store)

        assert built.store is store
        assert isinstance(built.researcher, MockResearchProvider)
        assert isinstance(built.approval_gate, MockApprovalGate)

    def test_production_providers(self, store):
        from leadflow.integrations.slack import SlackApprovalGate
        from leadflow.intelligence.providers import CrewResearchProvider
        from leadflow.services.workflow import build_workflow

        with patch("leadflow.core.config.get_settings") as mock_settings:
            mock_settings.return_value.MOCK_PROVIDERS = False
            built = build_workflow(store)

        assert isinstance(built.researcher, CrewResearchProvider)
        assert isinstance(built.approval_gate, SlackApprovalGate)
