"""Supabase persistence store for Leadflow."""

import logging
from typing import Optional, Dict, Any, List
from datetime import datetime
from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions

from leadflow.core.config import get_settings
from leadflow.core.errors import PersistenceError
from leadflow.models import (
    Lead,
    LeadScore,
    LeadStatus,
    NewLead,
    QualificationCategory,
    QuizQuestion,
    QuizResponse,
    Workflow,
    WorkflowStatus,
)
from leadflow.services.contracts import PersistenceStore

logger = logging.getLogger(__name__)

# leads.user_id is NOT NULL; public quiz submissions have no signed-in user
QUIZ_SUBMISSION_USER_ID = "quiz_submission"


def _lead_from_row(row: Dict[str, Any]) -> Lead:
    data = dict(row)
    data["tenant_id"] = data.pop("org_id", None)
    return Lead(**data)


def _workflow_from_row(row: Dict[str, Any]) -> Workflow:
    data = dict(row)
    data["tenant_id"] = data.pop("org_id", None)
    return Workflow(**data)


def _question_from_row(row: Dict[str, Any]) -> QuizQuestion:
    data = dict(row)
    data["tenant_id"] = data.pop("org_id", None)
    return QuizQuestion(**data)


class SupabaseStore(PersistenceStore):
    """
    PersistenceStore backed by Supabase (PostgREST).

    Tables: leads, workflows, quiz_questions, quiz_responses, lead_scores.
    Tenant columns are named org_id. Every failed call is logged and
    re-raised as PersistenceError; callers decide how to recover.
    """

    LEADS_TABLE = "leads"
    WORKFLOWS_TABLE = "workflows"
    QUESTIONS_TABLE = "quiz_questions"
    RESPONSES_TABLE = "quiz_responses"
    SCORES_TABLE = "lead_scores"

    def __init__(self, client: Optional[Client] = None):
        """Initialize with an optional pre-built Supabase client."""
        self._client: Optional[Client] = client

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            settings = get_settings()
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                raise PersistenceError("Supabase credentials not configured")

            self._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_KEY,
                options=ClientOptions(
                    postgrest_client_timeout=30,
                    storage_client_timeout=30
                )
            )
            logger.info("Supabase client initialized")
        return self._client

    def _execute(self, operation: str, build_query) -> List[Dict[str, Any]]:
        """Run a query, translating any client failure into PersistenceError."""
        try:
            response = build_query(self.client).execute()
            return response.data or []
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Failed to {operation}: {e}")
            raise PersistenceError(f"Failed to {operation}: {e}") from e

    # ===========================================
    # Workflow checkpoints
    # ===========================================

    async def create_workflow(self, tenant_id: str, lead_id: str) -> Workflow:
        """Insert a workflow row with status=running."""
        rows = self._execute(
            "create workflow",
            lambda c: c.table(self.WORKFLOWS_TABLE).insert({
                "org_id": tenant_id,
                "lead_id": lead_id,
                "status": WorkflowStatus.RUNNING.value,
                "created_at": datetime.utcnow().isoformat()
            })
        )

        if not rows:
            raise PersistenceError("Workflow insert returned no data")

        workflow = _workflow_from_row(rows[0])
        logger.info(f"Created workflow: {workflow.id}")
        return workflow

    async def update_lead_qualification(
        self,
        lead_id: str,
        category: QualificationCategory,
        reason: str
    ) -> None:
        """Persist the classifier output onto the lead."""
        await self._update_lead(lead_id, {
            "qualification_category": QualificationCategory(category).value,
            "qualification_reason": reason
        })

    async def update_workflow_outreach(
        self,
        workflow_id: str,
        research: str,
        email_draft: str
    ) -> None:
        """Persist research and email draft onto the workflow in one write."""
        rows = self._execute(
            "save workflow outreach",
            lambda c: c.table(self.WORKFLOWS_TABLE)
            .update({"research_results": {"research": research}, "email_draft": email_draft})
            .eq("id", workflow_id)
        )
        if not rows:
            raise PersistenceError(f"Workflow not found: {workflow_id}")

    async def finalize_workflow(self, workflow_id: str, status: WorkflowStatus) -> None:
        """
        Move a running workflow to a terminal status.

        The status filter makes the write a compare-and-set: terminal rows
        never match, so they cannot be finalized twice.
        """
        status = WorkflowStatus(status)
        if not status.is_terminal:
            raise PersistenceError(f"Cannot finalize workflow with status {status.value}")

        rows = self._execute(
            "finalize workflow",
            lambda c: c.table(self.WORKFLOWS_TABLE)
            .update({"status": status.value, "completed_at": datetime.utcnow().isoformat()})
            .eq("id", workflow_id)
            .eq("status", WorkflowStatus.RUNNING.value)
        )
        if not rows:
            raise PersistenceError(f"Workflow {workflow_id} is missing or not running")

        logger.info(f"Finalized workflow {workflow_id}: {status.value}")

    # ===========================================
    # Reads
    # ===========================================

    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        """Fetch workflow by ID."""
        rows = self._execute(
            f"get workflow {workflow_id}",
            lambda c: c.table(self.WORKFLOWS_TABLE).select("*").eq("id", workflow_id).limit(1)
        )
        if not rows:
            logger.warning(f"Workflow not found: {workflow_id}")
            return None
        return _workflow_from_row(rows[0])

    async def get_lead(self, lead_id: str) -> Optional[Lead]:
        """Fetch lead by ID."""
        rows = self._execute(
            f"get lead {lead_id}",
            lambda c: c.table(self.LEADS_TABLE).select("*").eq("id", lead_id).limit(1)
        )
        if not rows:
            logger.warning(f"Lead not found: {lead_id}")
            return None
        return _lead_from_row(rows[0])

    async def list_quiz_questions(self, tenant_id: str) -> List[QuizQuestion]:
        """Fetch a tenant's quiz questions in display order."""
        rows = self._execute(
            f"list quiz questions for {tenant_id}",
            lambda c: c.table(self.QUESTIONS_TABLE)
            .select("*")
            .eq("org_id", tenant_id)
            .order("question_number")
        )
        return [_question_from_row(row) for row in rows]

    # ===========================================
    # Submission path
    # ===========================================

    async def create_lead(self, lead: NewLead) -> Lead:
        """Insert a lead from a quiz submission."""
        data = lead.model_dump(exclude_none=True)
        data["org_id"] = data.pop("tenant_id")
        data["user_id"] = QUIZ_SUBMISSION_USER_ID
        data["status"] = LeadStatus.PENDING.value
        data["created_at"] = datetime.utcnow().isoformat()

        rows = self._execute(
            "create lead",
            lambda c: c.table(self.LEADS_TABLE).insert(data)
        )
        if not rows:
            raise PersistenceError("Lead insert returned no data")

        record = _lead_from_row(rows[0])
        logger.info(f"Created lead: {record.id}")
        return record

    async def save_quiz_responses(
        self,
        tenant_id: str,
        lead_id: str,
        responses: List[QuizResponse]
    ) -> None:
        """Insert one response row per question."""
        if not responses:
            return

        records = [
            {"org_id": tenant_id, "lead_id": lead_id, **response.model_dump()}
            for response in responses
        ]
        self._execute(
            f"save quiz responses for {lead_id}",
            lambda c: c.table(self.RESPONSES_TABLE).insert(records)
        )

    async def save_lead_score(self, tenant_id: str, lead_id: str, score: LeadScore) -> None:
        """Insert the lead's aggregate score."""
        data = score.model_dump(mode="json")
        data["scoring_breakdown"] = data.pop("breakdown")
        self._execute(
            f"save lead score for {lead_id}",
            lambda c: c.table(self.SCORES_TABLE).insert({
                "org_id": tenant_id,
                "lead_id": lead_id,
                **data
            })
        )

    # ===========================================
    # Approval decisions
    # ===========================================

    async def record_approval_decision(
        self,
        workflow_id: str,
        approved: bool,
        user_id: str
    ) -> bool:
        """
        Record who approved or rejected the workflow's draft.

        Only undecided rows match, so concurrent clicks on different
        workers record a single decision. Returns False when nothing matched.
        """
        column = "approved_by" if approved else "rejected_by"
        rows = self._execute(
            f"record decision for {workflow_id}",
            lambda c: c.table(self.WORKFLOWS_TABLE)
            .update({column: user_id})
            .eq("id", workflow_id)
            .is_("approved_by", "null")
            .is_("rejected_by", "null")
        )
        return bool(rows)

    async def update_lead_status(self, lead_id: str, status: LeadStatus) -> None:
        """Update lead review status."""
        await self._update_lead(lead_id, {"status": LeadStatus(status).value})

    async def _update_lead(self, lead_id: str, updates: Dict[str, Any]) -> None:
        """Update lead with partial data."""
        updates["updated_at"] = datetime.utcnow().isoformat()

        rows = self._execute(
            f"update lead {lead_id}",
            lambda c: c.table(self.LEADS_TABLE).update(updates).eq("id", lead_id)
        )
        if not rows:
            raise PersistenceError(f"Lead not found: {lead_id}")

        logger.info(f"Updated lead {lead_id}: {list(updates.keys())}")

    # ===========================================
    # Health Check
    # ===========================================

    async def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            self._execute(
                "run health check",
                lambda c: c.table(self.WORKFLOWS_TABLE).select("id").limit(1)
            )
            return True
        except PersistenceError as e:
            logger.error(f"Database health check failed: {e}")
            return False
