"""
Lead Workflow - orchestrates research, qualification and outreach for one lead.

The run is an explicit state machine:

    CREATED -> RESEARCHING -> QUALIFYING -> ROUTE_TERMINAL -> COMPLETED
                                         -> ROUTE_OUTREACH -> DRAFTING
                                            -> AWAITING_APPROVAL -> COMPLETED

Any non-terminal state may move to FAILED. The persisted Workflow row is
the only durable checkpoint: it is created first and finalized last, and a
run that raises is always finalized as failed when the row exists.
"""

import asyncio
import logging
from typing import Dict, FrozenSet, List, Optional

from leadflow.core.errors import InvalidStateTransition
from leadflow.models import (
    Lead,
    Qualification,
    Workflow,
    WorkflowState,
    WorkflowStatus,
)
from leadflow.services.contracts import (
    ApprovalGate,
    EmailDrafter,
    PersistenceStore,
    QualificationClassifier,
    ResearchProvider,
)
from leadflow.services.routing import route_for

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[WorkflowState, FrozenSet[WorkflowState]] = {
    WorkflowState.CREATED: frozenset({WorkflowState.RESEARCHING}),
    WorkflowState.RESEARCHING: frozenset({WorkflowState.QUALIFYING}),
    WorkflowState.QUALIFYING: frozenset({
        WorkflowState.ROUTE_TERMINAL,
        WorkflowState.ROUTE_OUTREACH,
    }),
    WorkflowState.ROUTE_OUTREACH: frozenset({WorkflowState.DRAFTING}),
    WorkflowState.DRAFTING: frozenset({WorkflowState.AWAITING_APPROVAL}),
    WorkflowState.AWAITING_APPROVAL: frozenset({WorkflowState.COMPLETED}),
    WorkflowState.ROUTE_TERMINAL: frozenset({WorkflowState.COMPLETED}),
    WorkflowState.COMPLETED: frozenset(),
    WorkflowState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({WorkflowState.COMPLETED, WorkflowState.FAILED})


def can_transition(current: WorkflowState, target: WorkflowState) -> bool:
    """Every non-terminal state may fail; other moves follow the table."""
    if target == WorkflowState.FAILED:
        return current not in TERMINAL_STATES
    return target in ALLOWED_TRANSITIONS[current]


class WorkflowRun:
    """In-process state of a single workflow run."""

    def __init__(self, lead: Lead):
        self.lead = lead
        self.workflow: Optional[Workflow] = None
        self.state = WorkflowState.CREATED
        self.history: List[WorkflowState] = [WorkflowState.CREATED]
        self.research: Optional[str] = None
        self.qualification: Optional[Qualification] = None
        self.email_draft: Optional[str] = None
        self.error: Optional[BaseException] = None

    @property
    def workflow_id(self) -> Optional[str]:
        return self.workflow.id if self.workflow else None

    def transition(self, target: WorkflowState) -> None:
        if not can_transition(self.state, target):
            raise InvalidStateTransition(
                f"Workflow {self.workflow_id}: {self.state.value} -> {target.value}"
            )
        logger.debug(f"Workflow {self.workflow_id}: {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)


class LeadWorkflow:
    """
    Lead-processing orchestrator.

    Sequences research, qualification and (for QUALIFIED / FOLLOW_UP leads)
    email drafting plus an approval request. Collaborators are injected so
    the same orchestrator runs against production services or in-memory
    fakes. Nothing is retried: a failing step fails the run.
    """

    def __init__(
        self,
        store: PersistenceStore,
        researcher: ResearchProvider,
        classifier: QualificationClassifier,
        drafter: EmailDrafter,
        approval_gate: ApprovalGate
    ):
        self.store = store
        self.researcher = researcher
        self.classifier = classifier
        self.drafter = drafter
        self.approval_gate = approval_gate

    async def run(self, lead: Lead) -> None:
        """
        Process a lead end to end.

        Raises the failing step's error after marking the workflow failed.
        If the workflow row cannot be created, nothing else runs.
        """
        await self.execute(lead)

    async def execute(self, lead: Lead) -> WorkflowRun:
        """Same as run(), but returns the run state for inspection."""
        run = WorkflowRun(lead)

        # Durability checkpoint. Failure here leaves no row to finalize.
        run.workflow = await self.store.create_workflow(lead.tenant_id, lead.id)
        logger.info(f"Workflow {run.workflow_id} started for lead {lead.id}")

        try:
            await self._research(run)
            await self._qualify(run)

            decision = route_for(run.qualification.category)
            if decision.is_outreach:
                run.transition(WorkflowState.ROUTE_OUTREACH)
                await self._outreach(run, decision.request_approval)
            else:
                run.transition(WorkflowState.ROUTE_TERMINAL)
                logger.info(
                    f"Workflow {run.workflow_id}: {run.qualification.category.value} lead, "
                    f"no outreach"
                )

            await self.store.finalize_workflow(run.workflow_id, WorkflowStatus.COMPLETED)
            run.transition(WorkflowState.COMPLETED)
            logger.info(f"Workflow {run.workflow_id} completed")
            return run

        except (Exception, asyncio.CancelledError) as e:
            # Cancellation is a BaseException; the row must not stay running
            run.error = e
            logger.error(
                f"Workflow {run.workflow_id} failed in state {run.state.value}: {e}"
            )
            await self._mark_failed(run)
            raise

    async def _research(self, run: WorkflowRun) -> None:
        run.transition(WorkflowState.RESEARCHING)
        # Held in memory; persisted together with the draft on the outreach branch
        run.research = await self.researcher.research(run.lead)
        logger.info(f"Workflow {run.workflow_id}: research complete ({len(run.research)} chars)")

    async def _qualify(self, run: WorkflowRun) -> None:
        run.transition(WorkflowState.QUALIFYING)
        qualification = await self.classifier.classify(run.lead, run.research)
        run.qualification = qualification

        # Persisted before branching so a later failure keeps the classification
        await self.store.update_lead_qualification(
            run.lead.id,
            qualification.category,
            qualification.reason
        )
        logger.info(
            f"Workflow {run.workflow_id}: lead {run.lead.id} qualified as "
            f"{qualification.category.value}"
        )

    async def _outreach(self, run: WorkflowRun, request_approval: bool) -> None:
        run.transition(WorkflowState.DRAFTING)
        run.email_draft = await self.drafter.draft(run.research, run.qualification)

        await self.store.update_workflow_outreach(
            run.workflow_id,
            run.research,
            run.email_draft
        )

        run.transition(WorkflowState.AWAITING_APPROVAL)
        if request_approval:
            # Fire-and-forget; the decision arrives out of band keyed by workflow id
            await self.approval_gate.request(
                run.lead,
                run.research,
                run.email_draft,
                run.qualification,
                run.workflow_id
            )
            logger.info(f"Workflow {run.workflow_id}: approval requested")

    async def _mark_failed(self, run: WorkflowRun) -> None:
        """Best-effort failure bookkeeping; never masks the original error."""
        if run.state not in TERMINAL_STATES:
            run.transition(WorkflowState.FAILED)

        try:
            await self.store.finalize_workflow(run.workflow_id, WorkflowStatus.FAILED)
        except Exception as finalize_error:
            logger.error(
                f"Could not mark workflow {run.workflow_id} as failed: {finalize_error}"
            )


def build_workflow(store: Optional[PersistenceStore] = None) -> LeadWorkflow:
    """Build the orchestrator from settings (Supabase, CrewAI, Slack, or mocks)."""
    from leadflow.core.config import get_settings
    from leadflow.core.database import SupabaseStore

    if get_settings().MOCK_PROVIDERS:
        from leadflow.intelligence.mock_providers import (
            MockResearchProvider,
            MockQualificationClassifier,
            MockEmailDrafter,
            MockApprovalGate,
        )

        logger.warning("Using mock workflow providers")
        return LeadWorkflow(
            store=store or SupabaseStore(),
            researcher=MockResearchProvider(),
            classifier=MockQualificationClassifier(),
            drafter=MockEmailDrafter(),
            approval_gate=MockApprovalGate()
        )

    from leadflow.intelligence.providers import (
        CrewResearchProvider,
        CrewQualificationClassifier,
        CrewEmailDrafter,
    )
    from leadflow.integrations.slack import SlackApprovalGate

    return LeadWorkflow(
        store=store or SupabaseStore(),
        researcher=CrewResearchProvider(),
        classifier=CrewQualificationClassifier(),
        drafter=CrewEmailDrafter(),
        approval_gate=SlackApprovalGate()
    )


async def run_workflow(lead: Lead, workflow: Optional[LeadWorkflow] = None) -> None:
    """Run the lead workflow, building the production orchestrator if none is given."""
    if workflow is None:
        workflow = build_workflow()
    await workflow.run(lead)
