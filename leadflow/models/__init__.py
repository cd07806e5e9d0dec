"""Models package - All Pydantic models organized by domain."""

from leadflow.models.enums import (
    LeadStatus,
    QualificationCategory,
    LeadTier,
    TierAction,
    QuestionType,
    WorkflowStatus,
    WorkflowState,
)
from leadflow.models.lead import ContactInfo, NewLead, Lead, Qualification
from leadflow.models.quiz import (
    QuizOption,
    QuizQuestion,
    QuizResponse,
    ScoreBreakdownEntry,
    LeadScore,
)
from leadflow.models.workflow import Workflow

__all__ = [
    # Enums
    "LeadStatus",
    "QualificationCategory",
    "LeadTier",
    "TierAction",
    "QuestionType",
    "WorkflowStatus",
    "WorkflowState",
    # Lead models
    "ContactInfo",
    "NewLead",
    "Lead",
    "Qualification",
    # Quiz models
    "QuizOption",
    "QuizQuestion",
    "QuizResponse",
    "ScoreBreakdownEntry",
    "LeadScore",
    # Workflow models
    "Workflow",
]
