"""In-memory persistence store for tests and local runs."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

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


class InMemoryStore(PersistenceStore):
    """
    Dict-backed PersistenceStore.

    Enforces the same row rules as the database: workflows only move
    running -> completed/failed, and completed_at is set exactly when a
    workflow becomes terminal. A lock serializes writes so concurrent
    runs behave like row-level transactions.
    """

    def __init__(self):
        self.leads: Dict[str, Lead] = {}
        self.workflows: Dict[str, Workflow] = {}
        self.questions: Dict[str, List[QuizQuestion]] = {}
        self.responses: Dict[str, List[QuizResponse]] = {}
        self.scores: Dict[str, LeadScore] = {}
        self._lock = asyncio.Lock()

    # ===========================================
    # Seeding helpers
    # ===========================================

    def add_lead(self, lead: Lead) -> Lead:
        self.leads[lead.id] = lead
        return lead

    def add_quiz_questions(self, tenant_id: str, questions: List[QuizQuestion]) -> None:
        self.questions[tenant_id] = list(questions)

    def workflows_for_lead(self, lead_id: str) -> List[Workflow]:
        return [wf for wf in self.workflows.values() if wf.lead_id == lead_id]

    def _require_lead(self, lead_id: str) -> Lead:
        lead = self.leads.get(lead_id)
        if lead is None:
            raise PersistenceError(f"Lead not found: {lead_id}")
        return lead

    def _require_workflow(self, workflow_id: str) -> Workflow:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            raise PersistenceError(f"Workflow not found: {workflow_id}")
        return workflow

    # ===========================================
    # Workflow checkpoints
    # ===========================================

    async def create_workflow(self, tenant_id: str, lead_id: str) -> Workflow:
        async with self._lock:
            workflow = Workflow(
                id=str(uuid.uuid4()),
                tenant_id=tenant_id,
                lead_id=lead_id,
                status=WorkflowStatus.RUNNING,
                created_at=datetime.utcnow()
            )
            self.workflows[workflow.id] = workflow
            return workflow.model_copy()

    async def update_lead_qualification(
        self,
        lead_id: str,
        category: QualificationCategory,
        reason: str
    ) -> None:
        async with self._lock:
            lead = self._require_lead(lead_id)
            lead.qualification_category = QualificationCategory(category)
            lead.qualification_reason = reason
            lead.updated_at = datetime.utcnow()

    async def update_workflow_outreach(
        self,
        workflow_id: str,
        research: str,
        email_draft: str
    ) -> None:
        async with self._lock:
            workflow = self._require_workflow(workflow_id)
            workflow.research_results = {"research": research}
            workflow.email_draft = email_draft

    async def finalize_workflow(self, workflow_id: str, status: WorkflowStatus) -> None:
        status = WorkflowStatus(status)
        if not status.is_terminal:
            raise PersistenceError(f"Cannot finalize workflow with status {status.value}")

        async with self._lock:
            workflow = self._require_workflow(workflow_id)
            if workflow.status.is_terminal:
                raise PersistenceError(
                    f"Workflow {workflow_id} is already {workflow.status.value}"
                )
            workflow.status = status
            workflow.completed_at = datetime.utcnow()

    # ===========================================
    # Reads
    # ===========================================

    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        workflow = self.workflows.get(workflow_id)
        return workflow.model_copy() if workflow else None

    async def get_lead(self, lead_id: str) -> Optional[Lead]:
        lead = self.leads.get(lead_id)
        return lead.model_copy() if lead else None

    async def list_quiz_questions(self, tenant_id: str) -> List[QuizQuestion]:
        return sorted(self.questions.get(tenant_id, []), key=lambda q: q.question_number)

    # ===========================================
    # Submission path
    # ===========================================

    async def create_lead(self, lead: NewLead) -> Lead:
        async with self._lock:
            now = datetime.utcnow()
            record = Lead(
                id=str(uuid.uuid4()),
                status=LeadStatus.PENDING,
                created_at=now,
                updated_at=now,
                **lead.model_dump()
            )
            self.leads[record.id] = record
            return record.model_copy()

    async def save_quiz_responses(
        self,
        tenant_id: str,
        lead_id: str,
        responses: List[QuizResponse]
    ) -> None:
        async with self._lock:
            self.responses[lead_id] = list(responses)

    async def save_lead_score(self, tenant_id: str, lead_id: str, score: LeadScore) -> None:
        async with self._lock:
            if lead_id in self.scores:
                raise PersistenceError(f"Lead {lead_id} already has a score")
            self.scores[lead_id] = score

    # ===========================================
    # Approval decisions
    # ===========================================

    async def record_approval_decision(
        self,
        workflow_id: str,
        approved: bool,
        user_id: str
    ) -> bool:
        async with self._lock:
            workflow = self._require_workflow(workflow_id)
            if workflow.is_decided:
                return False
            if approved:
                workflow.approved_by = user_id
            else:
                workflow.rejected_by = user_id
            return True

    async def update_lead_status(self, lead_id: str, status: LeadStatus) -> None:
        async with self._lock:
            lead = self._require_lead(lead_id)
            lead.status = LeadStatus(status)
            lead.updated_at = datetime.utcnow()
