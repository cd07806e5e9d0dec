"""Quiz models - questions, answers and the computed lead score."""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator

from leadflow.models.enums import LeadTier, QuestionType


class QuizOption(BaseModel):
    """A selectable answer for a choice question."""
    value: str = Field(..., description="Value submitted when selected")
    label: Optional[str] = Field(None, description="Display label")
    score: int = Field(0, ge=0, description="Points awarded before weighting")

    @field_validator("score", mode="before")
    @classmethod
    def unscored_option(cls, value: Any) -> Any:
        # Options stored without a score are worth nothing
        return 0 if value is None else value


class QuizQuestion(BaseModel):
    """A tenant's quiz question definition."""
    id: str = Field(..., description="Question ID")
    tenant_id: Optional[str] = Field(None, description="Owning organization ID")
    question_number: int = Field(..., ge=1, description="Display order")
    question_type: QuestionType = Field(..., description="How the answer is shaped and scored")
    question_text: str = Field("", description="Question prompt")
    options: Optional[List[QuizOption]] = Field(
        None,
        description="Options for multiple_choice and checkbox questions"
    )
    scoring_weight: int = Field(1, ge=0, description="Multiplier applied to option scores")

    @field_validator("scoring_weight", mode="before")
    @classmethod
    def unweighted_question(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def is_scored(self) -> bool:
        return self.question_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.CHECKBOX)


class QuizResponse(BaseModel):
    """One answered question with its computed points."""
    question_id: str = Field(..., description="Question ID")
    question_number: int = Field(..., description="Question display order")
    answer: Any = Field(None, description="Raw submitted answer")
    points_earned: int = Field(0, ge=0, description="Weighted points for this answer")


class ScoreBreakdownEntry(BaseModel):
    """Points earned and available for one question type."""
    points: int = Field(0, description="Points earned")
    max_points: int = Field(0, description="Maximum points available")


class LeadScore(BaseModel):
    """Aggregate quiz score for a lead."""
    readiness_score: int = Field(..., ge=0, le=100, description="Percentage score 0-100")
    total_points: int = Field(..., ge=0, description="Sum of weighted points earned")
    max_possible_points: int = Field(..., ge=0, description="Sum of weighted points available")
    tier: LeadTier = Field(..., description="Readiness tier")
    breakdown: Dict[str, ScoreBreakdownEntry] = Field(
        default_factory=dict,
        description="Points by question type"
    )
