"""Quiz Submission Service - scores a submission, stores the lead and hands it to the workflow."""

import logging
from typing import Any, Callable, Dict, NamedTuple, Optional

from pydantic import ValidationError

from leadflow.core.config import get_settings
from leadflow.core.errors import InvalidQuestionSet, InvalidSubmission
from leadflow.models import Lead, LeadScore, NewLead, TierAction
from leadflow.services import scoring
from leadflow.services.contracts import PersistenceStore
from leadflow.services.workflow import LeadWorkflow, build_workflow, run_workflow

logger = logging.getLogger(__name__)


class SubmissionResult(NamedTuple):
    lead: Lead
    score: LeadScore
    start_workflow: bool


class QuizSubmissionService:
    """
    Handles the quiz-submission flow:
    1. Load the tenant's questions and extract contact info
    2. Score the answers
    3. Save lead, per-question responses and score
    4. Decide whether the lead gets the AI workflow

    The workflow itself is started by the caller (as a background task),
    so a slow or failing run never blocks the submission response.
    """

    def __init__(
        self,
        store: PersistenceStore,
        workflow_factory: Optional[Callable[[], LeadWorkflow]] = None
    ):
        self.store = store
        self._workflow_factory = workflow_factory
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def _build_workflow(self) -> LeadWorkflow:
        if self._workflow_factory is not None:
            return self._workflow_factory()
        return build_workflow(self.store)

    async def submit(self, tenant_id: str, responses: Dict[str, Any]) -> SubmissionResult:
        """
        Score and store a quiz submission.

        Args:
            tenant_id: Organization that owns the quiz
            responses: Answers keyed by question ID

        Returns:
            SubmissionResult with the stored lead, its score and the workflow decision

        Raises:
            InvalidQuestionSet: Tenant has no questions, or a choice question has no options
            InvalidSubmission: Name or email missing or malformed
        """
        questions = await self.store.list_quiz_questions(tenant_id)
        if not questions:
            raise InvalidQuestionSet(f"No quiz questions configured for tenant {tenant_id}")

        contact = scoring.extract_contact_info(questions, responses)
        if not contact.is_complete:
            raise InvalidSubmission("Email and name are required")

        lead_score = scoring.score(questions, responses)

        try:
            new_lead = NewLead(
                tenant_id=tenant_id,
                name=contact.name,
                email=contact.email,
                company=contact.company or None,
                phone=contact.phone or None,
                message=(
                    f"Quiz submission - Readiness Score: {lead_score.readiness_score}% "
                    f"({lead_score.tier.value})"
                )
            )
        except ValidationError as e:
            raise InvalidSubmission(f"Invalid contact information: {e.errors()[0]['msg']}") from e

        lead = await self.store.create_lead(new_lead)
        logger.info(
            f"Created lead {lead.id} for {lead.email}: "
            f"{lead_score.readiness_score}% ({lead_score.tier.value})"
        )

        await self.store.save_quiz_responses(
            tenant_id,
            lead.id,
            scoring.score_responses(questions, responses)
        )
        await self.store.save_lead_score(tenant_id, lead.id, lead_score)

        action = scoring.tier_action(lead_score.tier)
        start_workflow = action == TierAction.AI_WORKFLOW and self.settings.ENABLE_AI_RESEARCH
        if action == TierAction.AI_WORKFLOW and not start_workflow:
            logger.info(f"AI research disabled, lead {lead.id} not sent to the workflow")

        return SubmissionResult(lead=lead, score=lead_score, start_workflow=start_workflow)

    async def process_workflow(self, lead: Lead) -> None:
        """
        Background entry point for one workflow run.

        The workflow row already records the failure, so the error is
        logged here and not re-raised into the web server.
        """
        try:
            await run_workflow(lead, self._build_workflow())
        except Exception as e:
            logger.error(f"Workflow for lead {lead.id} failed: {e}")
