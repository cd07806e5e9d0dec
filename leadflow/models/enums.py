"""Enumeration types for the lead pipeline."""

from enum import Enum


class LeadStatus(str, Enum):
    """Review status of a lead, set by the human approve/reject action."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class QualificationCategory(str, Enum):
    """Classifier output that drives workflow branching."""
    QUALIFIED = "QUALIFIED"
    FOLLOW_UP = "FOLLOW_UP"
    UNQUALIFIED = "UNQUALIFIED"
    SUPPORT = "SUPPORT"


class LeadTier(str, Enum):
    """Readiness bucket derived from the quiz score."""
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"
    QUALIFIED = "qualified"


class TierAction(str, Enum):
    """What the submission handler does with a lead of a given tier."""
    AI_WORKFLOW = "ai_workflow"
    NURTURE = "nurture"
    MANUAL_REVIEW = "manual_review"


class QuestionType(str, Enum):
    """Supported quiz question types."""
    CONTACT_INFO = "contact_info"
    MULTIPLE_CHOICE = "multiple_choice"
    CHECKBOX = "checkbox"
    TEXT = "text"


class WorkflowStatus(str, Enum):
    """Persisted status of a workflow run."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not WorkflowStatus.RUNNING


class WorkflowState(str, Enum):
    """In-process states of the orchestrator state machine."""
    CREATED = "created"
    RESEARCHING = "researching"
    QUALIFYING = "qualifying"
    ROUTE_TERMINAL = "route_terminal"
    ROUTE_OUTREACH = "route_outreach"
    DRAFTING = "drafting"
    AWAITING_APPROVAL = "awaiting_approval"
    COMPLETED = "completed"
    FAILED = "failed"
