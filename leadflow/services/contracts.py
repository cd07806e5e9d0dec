"""
Collaborator contracts consumed by the workflow orchestrator.

The orchestrator only sees these interfaces. Each has a production
implementation (Supabase, CrewAI, Slack) and an in-memory one used by
tests and local runs.
"""

from abc import ABC, abstractmethod
from typing import Optional, List

from leadflow.models import (
    Lead,
    NewLead,
    LeadScore,
    LeadStatus,
    Qualification,
    QualificationCategory,
    QuizQuestion,
    QuizResponse,
    Workflow,
    WorkflowStatus,
)


class PersistenceStore(ABC):
    """
    Durable storage for leads, workflows and quiz data.

    Every method raises PersistenceError when the store is unreachable
    or rejects the write.
    """

    # ===========================================
    # Workflow checkpoints
    # ===========================================

    @abstractmethod
    async def create_workflow(self, tenant_id: str, lead_id: str) -> Workflow:
        """Insert a workflow row with status=running."""

    @abstractmethod
    async def update_lead_qualification(
        self,
        lead_id: str,
        category: QualificationCategory,
        reason: str
    ) -> None:
        """Persist the classifier output onto the lead."""

    @abstractmethod
    async def update_workflow_outreach(
        self,
        workflow_id: str,
        research: str,
        email_draft: str
    ) -> None:
        """Persist research and email draft onto the workflow in one write."""

    @abstractmethod
    async def finalize_workflow(self, workflow_id: str, status: WorkflowStatus) -> None:
        """
        Move a running workflow to a terminal status and stamp completed_at.

        Raises PersistenceError if the workflow is missing or already terminal.
        """

    # ===========================================
    # Reads
    # ===========================================

    @abstractmethod
    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        """Fetch a workflow by ID."""

    @abstractmethod
    async def get_lead(self, lead_id: str) -> Optional[Lead]:
        """Fetch a lead by ID."""

    @abstractmethod
    async def list_quiz_questions(self, tenant_id: str) -> List[QuizQuestion]:
        """Fetch a tenant's questions ordered by question number."""

    # ===========================================
    # Submission path
    # ===========================================

    @abstractmethod
    async def create_lead(self, lead: NewLead) -> Lead:
        """Insert a lead with status=pending."""

    @abstractmethod
    async def save_quiz_responses(
        self,
        tenant_id: str,
        lead_id: str,
        responses: List[QuizResponse]
    ) -> None:
        """Insert one response row per question."""

    @abstractmethod
    async def save_lead_score(self, tenant_id: str, lead_id: str, score: LeadScore) -> None:
        """Insert the lead's aggregate score."""

    # ===========================================
    # Approval decisions
    # ===========================================

    @abstractmethod
    async def record_approval_decision(
        self,
        workflow_id: str,
        approved: bool,
        user_id: str
    ) -> bool:
        """
        Set approved_by or rejected_by on an undecided workflow.

        Returns False without writing when the workflow is already decided.
        """

    @abstractmethod
    async def update_lead_status(self, lead_id: str, status: LeadStatus) -> None:
        """Set the lead's human review status."""

    async def health_check(self) -> bool:
        """Check store connectivity."""
        return True


class ResearchProvider(ABC):
    """Produces a free-text research report about a lead."""

    @abstractmethod
    async def research(self, lead: Lead) -> str:
        """Research the lead. Raises ProviderError on failure."""


class QualificationClassifier(ABC):
    """Assigns a qualification category to a researched lead."""

    @abstractmethod
    async def classify(self, lead: Lead, research: str) -> Qualification:
        """Classify the lead. Raises ProviderError on failure."""


class EmailDrafter(ABC):
    """Drafts an outreach email for a qualified lead."""

    @abstractmethod
    async def draft(self, research: str, qualification: Qualification) -> str:
        """Draft the email body. Raises ProviderError on failure."""


class ApprovalGate(ABC):
    """
    Publishes a drafted email for human review.

    Fire-and-forget: the decision arrives later, out of band, keyed by
    the workflow ID passed here.
    """

    @abstractmethod
    async def request(
        self,
        lead: Lead,
        research: str,
        email: str,
        qualification: Qualification,
        workflow_id: str
    ) -> None:
        """Publish the review request. Raises ProviderError if delivery fails."""
