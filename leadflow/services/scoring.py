"""
Quiz scoring engine.

Converts raw quiz answers into weighted points, a 0-100 readiness score
and a tier. Everything here is pure; callers persist the results.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from leadflow.core.errors import InvalidQuestionSet
from leadflow.models import (
    ContactInfo,
    LeadScore,
    LeadTier,
    QuestionType,
    QuizOption,
    QuizQuestion,
    QuizResponse,
    ScoreBreakdownEntry,
    TierAction,
)

logger = logging.getLogger(__name__)


# Lower bound (inclusive) of each tier, highest first
TIER_THRESHOLDS: Tuple[Tuple[int, LeadTier], ...] = (
    (80, LeadTier.QUALIFIED),
    (60, LeadTier.HOT),
    (40, LeadTier.WARM),
)

TIER_DESCRIPTIONS: Dict[LeadTier, str] = {
    LeadTier.QUALIFIED: "High Priority - Ready to Buy",
    LeadTier.HOT: "Strong Fit - Near-Term Opportunity",
    LeadTier.WARM: "Potential Fit - Mid-Term Nurture",
    LeadTier.COLD: "Early Stage - Long-Term Nurture",
}


def tier_for_score(readiness_score: int) -> LeadTier:
    """Map a 0-100 readiness score onto its tier."""
    for lower_bound, tier in TIER_THRESHOLDS:
        if readiness_score >= lower_bound:
            return tier
    return LeadTier.COLD


def readiness_percentage(total_points: int, max_possible_points: int) -> int:
    """
    Round 100 * total / max half-up to an integer.

    Integer arithmetic keeps .5 cases exact; 0 when nothing is scoreable.
    """
    if max_possible_points <= 0:
        return 0
    return (200 * total_points + max_possible_points) // (2 * max_possible_points)


def _require_options(question: QuizQuestion) -> List[QuizOption]:
    if not question.options:
        raise InvalidQuestionSet(
            f"Question {question.id} ({question.question_type.value}) has no options"
        )
    return question.options


def _find_option(options: Sequence[QuizOption], value: Any) -> Optional[QuizOption]:
    for option in options:
        if option.value == value:
            return option
    return None


def _selected_values(answer: Any) -> List[str]:
    """Checkbox answers are a list of option values; anything else selects nothing."""
    if not isinstance(answer, (list, tuple)):
        return []

    selected = []
    for value in answer:
        if isinstance(value, str) and value not in selected:
            selected.append(value)
    return selected


def question_points(question: QuizQuestion, answer: Any) -> Tuple[int, int]:
    """
    Compute (points_earned, max_points) for one question.

    Malformed answers score as no selection rather than raising.
    """
    # contact_info and text questions never affect the score
    if not question.is_scored:
        return 0, 0

    weight = question.scoring_weight

    if question.question_type == QuestionType.MULTIPLE_CHOICE:
        options = _require_options(question)
        max_points = max(option.score for option in options) * weight
        if not isinstance(answer, str):
            return 0, max_points
        option = _find_option(options, answer)
        return (option.score * weight if option else 0), max_points

    if question.question_type == QuestionType.CHECKBOX:
        options = _require_options(question)
        max_points = sum(option.score for option in options) * weight
        earned = 0
        for value in _selected_values(answer):
            option = _find_option(options, value)
            if option:
                earned += option.score * weight
        return earned, max_points

    return 0, 0


def score_responses(
    questions: Sequence[QuizQuestion],
    responses: Mapping[str, Any]
) -> List[QuizResponse]:
    """Score each question individually, in question order."""
    scored = []
    for question in questions:
        answer = responses.get(question.id)
        points, _ = question_points(question, answer)
        scored.append(QuizResponse(
            question_id=question.id,
            question_number=question.question_number,
            answer=answer,
            points_earned=points
        ))
    return scored


def score(
    questions: Sequence[QuizQuestion],
    responses: Mapping[str, Any]
) -> LeadScore:
    """
    Score a quiz submission.

    Args:
        questions: Tenant's questions, ordered by question number
        responses: Answers keyed by question ID

    Returns:
        LeadScore with readiness score, tier and per-type breakdown

    Raises:
        InvalidQuestionSet: A choice question has no options
    """
    total_points = 0
    max_possible_points = 0
    breakdown: Dict[str, ScoreBreakdownEntry] = {}

    for question in questions:
        points, max_points = question_points(question, responses.get(question.id))
        total_points += points
        max_possible_points += max_points

        entry = breakdown.setdefault(question.question_type.value, ScoreBreakdownEntry())
        entry.points += points
        entry.max_points += max_points

    readiness_score = readiness_percentage(total_points, max_possible_points)
    tier = tier_for_score(readiness_score)

    logger.debug(
        f"Scored {len(questions)} questions: {total_points}/{max_possible_points} "
        f"= {readiness_score}% ({tier.value})"
    )

    return LeadScore(
        readiness_score=readiness_score,
        total_points=total_points,
        max_possible_points=max_possible_points,
        tier=tier,
        breakdown=breakdown
    )


def extract_contact_info(
    questions: Sequence[QuizQuestion],
    responses: Mapping[str, Any]
) -> ContactInfo:
    """Read contact fields from the first contact_info question's answer."""
    contact_question = next(
        (q for q in questions if q.question_type == QuestionType.CONTACT_INFO),
        None
    )
    if contact_question is None:
        return ContactInfo()

    answer = responses.get(contact_question.id)
    if not isinstance(answer, dict):
        return ContactInfo()

    def field(key: str) -> str:
        value = answer.get(key)
        return value.strip() if isinstance(value, str) else ""

    return ContactInfo(
        name=field("full_name"),
        email=field("email"),
        company=field("company"),
        phone=field("phone"),
        job_title=field("job_title")
    )


def tier_description(tier: LeadTier) -> str:
    """Human-readable label for a tier."""
    return TIER_DESCRIPTIONS.get(tier, "Unknown")


def tier_action(tier: LeadTier) -> TierAction:
    """Hot and qualified leads get the AI workflow; the rest are nurtured."""
    if tier in (LeadTier.QUALIFIED, LeadTier.HOT):
        return TierAction.AI_WORKFLOW
    if tier in (LeadTier.WARM, LeadTier.COLD):
        return TierAction.NURTURE
    return TierAction.MANUAL_REVIEW
