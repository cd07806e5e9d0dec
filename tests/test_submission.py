"""Tests for the quiz submission service."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from leadflow.core.errors import InvalidQuestionSet, InvalidSubmission, ProviderError
from leadflow.models import LeadTier
from leadflow.services.lead_processor import QuizSubmissionService

TENANT_ID = "org_test_123"


class TestSubmit:
    """QuizSubmissionService.submit"""

    @pytest.mark.asyncio
    async def test_qualified_submission(self, seeded_store, qualified_responses):
        service = QuizSubmissionService(seeded_store)

        result = await service.submit(TENANT_ID, qualified_responses)

        assert result.score.readiness_score == 100
        assert result.score.tier == LeadTier.QUALIFIED
        assert result.start_workflow is True

        lead = await seeded_store.get_lead(result.lead.id)
        assert lead.name == "Jane Doe"
        assert lead.company == "Acme Corp"
        assert lead.message == "Quiz submission - Readiness Score: 100% (qualified)"
        assert [r.points_earned for r in seeded_store.responses[lead.id]] == [0, 20, 10, 0]
        assert seeded_store.scores[lead.id].total_points == 30

    @pytest.mark.asyncio
    async def test_warm_submission_is_not_researched(self, seeded_store, warm_responses):
        result = await QuizSubmissionService(seeded_store).submit(TENANT_ID, warm_responses)

        assert result.score.tier == LeadTier.WARM
        assert result.start_workflow is False

    @pytest.mark.asyncio
    async def test_ai_research_disabled(self, seeded_store, qualified_responses):
        service = QuizSubmissionService(seeded_store)
        service._settings = MagicMock(ENABLE_AI_RESEARCH=False)

        result = await service.submit(TENANT_ID, qualified_responses)

        assert result.score.tier == LeadTier.QUALIFIED
        assert result.start_workflow is False

    @pytest.mark.asyncio
    async def test_tenant_without_questions(self, store, qualified_responses):
        with pytest.raises(InvalidQuestionSet):
            await QuizSubmissionService(store).submit("org_empty", qualified_responses)

    @pytest.mark.asyncio
    async def test_missing_contact_details(self, seeded_store, qualified_responses):
        qualified_responses["q_contact"] = {"full_name": "Jane Doe"}

        with pytest.raises(InvalidSubmission):
            await QuizSubmissionService(seeded_store).submit(TENANT_ID, qualified_responses)

        assert len(seeded_store.leads) == 1

    @pytest.mark.asyncio
    async def test_malformed_email(self, seeded_store, qualified_responses):
        qualified_responses["q_contact"]["email"] = "not-an-email"

        with pytest.raises(InvalidSubmission):
            await QuizSubmissionService(seeded_store).submit(TENANT_ID, qualified_responses)


class TestProcessWorkflow:
    """Background workflow wrapper."""

    @pytest.mark.asyncio
    async def test_runs_injected_workflow(self, seeded_store, sample_lead, workflow, approval_gate):
        service = QuizSubmissionService(seeded_store, workflow_factory=lambda: workflow)

        await service.process_workflow(sample_lead)

        assert len(seeded_store.workflows_for_lead(sample_lead.id)) == 1
        assert len(approval_gate.requests) == 1

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, seeded_store, sample_lead, workflow, researcher):
        researcher.error = ProviderError("research", "boom")
        service = QuizSubmissionService(seeded_store, workflow_factory=lambda: workflow)

        await service.process_workflow(sample_lead)

        assert seeded_store.workflows_for_lead(sample_lead.id)[0].status.value == "failed"

    @pytest.mark.asyncio
    async def test_default_factory_builds_from_settings(self, seeded_store, sample_lead):
        service = QuizSubmissionService(seeded_store)

        with patch("leadflow.services.lead_processor.build_workflow") as mock_build:
            mock_build.return_value.run = AsyncMock()
            await service.process_workflow(sample_lead)

        mock_build.assert_called_once_with(seeded_store)
        mock_build.return_value.run.assert_awaited_once_with(sample_lead)
