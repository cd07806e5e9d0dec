"""API Routes - quiz submissions, Slack approval callbacks and workflow status."""

import json
import logging
from typing import Dict, Any, Optional
from urllib.parse import parse_qs

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from leadflow.core.errors import InvalidQuestionSet, InvalidSubmission, WorkflowNotFound
from leadflow.integrations.slack import APPROVE_ACTION_ID, REJECT_ACTION_ID, slack_service
from leadflow.services.approvals import ApprovalDecisionHandler
from leadflow.services.contracts import PersistenceStore
from leadflow.services.lead_processor import QuizSubmissionService

logger = logging.getLogger(__name__)

quiz_router = APIRouter(prefix="/quiz", tags=["quiz"])
slack_router = APIRouter(prefix="/slack", tags=["slack"])
workflow_router = APIRouter(prefix="/workflows", tags=["workflows"])
test_router = APIRouter(prefix="/test", tags=["testing"])


class QuizSubmitRequest(BaseModel):
    """Quiz submission body."""
    tenant_id: str = Field(..., min_length=1, description="Organization that owns the quiz")
    responses: Dict[str, Any] = Field(..., description="Answers keyed by question ID")


class QuizSubmitResponse(BaseModel):
    """Response for quiz submission."""
    status: str
    lead_id: str
    readiness_score: int
    tier: str
    workflow_started: bool
    message: str


class SlackActionResponse(BaseModel):
    """Response for Slack interactive callbacks."""
    status: str
    message: str


# ===========================================
# Dependencies
# ===========================================

_store: Optional[PersistenceStore] = None


def get_store() -> PersistenceStore:
    """Shared Supabase store, created on first request."""
    global _store
    if _store is None:
        from leadflow.core.database import SupabaseStore
        _store = SupabaseStore()
    return _store


def get_submission_service(
    store: PersistenceStore = Depends(get_store)
) -> QuizSubmissionService:
    return QuizSubmissionService(store)


def get_approval_handler(
    store: PersistenceStore = Depends(get_store)
) -> ApprovalDecisionHandler:
    return ApprovalDecisionHandler(store)


# ===========================================
# Quiz Submission - Workflow Entry Point
# ===========================================

@quiz_router.post(
    "/submit",
    response_model=QuizSubmitResponse,
    status_code=202,
    summary="Submit Quiz Answers"
)
async def submit_quiz(
    body: QuizSubmitRequest,
    background_tasks: BackgroundTasks,
    service: QuizSubmissionService = Depends(get_submission_service)
) -> QuizSubmitResponse:
    """
    Score a quiz submission and store the lead.

    Returns 202 Accepted once the lead is saved. Hot and qualified leads
    are handed to the AI workflow in the background.
    """
    try:
        result = await service.submit(body.tenant_id, body.responses)
    except (InvalidSubmission, InvalidQuestionSet) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Quiz submission error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to process: {str(e)}")

    if result.start_workflow:
        background_tasks.add_task(service.process_workflow, result.lead)

    return QuizSubmitResponse(
        status="accepted",
        lead_id=result.lead.id,
        readiness_score=result.score.readiness_score,
        tier=result.score.tier.value,
        workflow_started=result.start_workflow,
        message=(
            "Quiz received - lead research started"
            if result.start_workflow
            else "Quiz received"
        )
    )


# ===========================================
# Slack Actions - Approval Decisions
# ===========================================

@slack_router.post(
    "/actions",
    response_model=SlackActionResponse,
    summary="Process Slack Approve/Reject Buttons"
)
async def slack_actions(
    request: Request,
    background_tasks: BackgroundTasks,
    handler: ApprovalDecisionHandler = Depends(get_approval_handler)
) -> SlackActionResponse:
    """
    Handle Slack interactive callbacks.

    Slack expects an acknowledgement within three seconds, so the
    decision is applied in the background.
    """
    if not slack_service.is_available():
        raise HTTPException(status_code=503, detail="Slack credentials not configured")

    raw_body = await request.body()
    if not slack_service.verify_signature(
        timestamp=request.headers.get("X-Slack-Request-Timestamp", ""),
        body=raw_body,
        signature=request.headers.get("X-Slack-Signature", "")
    ):
        raise HTTPException(status_code=401, detail="Invalid Slack signature")

    try:
        payload = json.loads(parse_qs(raw_body.decode())["payload"][0])
    except (KeyError, IndexError, ValueError):
        raise HTTPException(status_code=400, detail="Missing or malformed payload")

    actions = payload.get("actions") or []
    action = actions[0] if actions else {}
    action_id = action.get("action_id")

    if action_id not in (APPROVE_ACTION_ID, REJECT_ACTION_ID):
        logger.info(f"Ignoring Slack action: {action_id}")
        return SlackActionResponse(status="ignored", message=f"Action '{action_id}' ignored")

    workflow_id = action.get("value")
    if not workflow_id:
        logger.error("No workflow ID provided in button action")
        raise HTTPException(status_code=400, detail="Missing workflow ID")

    background_tasks.add_task(
        _apply_decision_background,
        handler,
        workflow_id,
        action_id == APPROVE_ACTION_ID,
        (payload.get("user") or {}).get("id", "unknown"),
        (payload.get("channel") or {}).get("id"),
        (payload.get("message") or {}).get("ts")
    )

    return SlackActionResponse(status="accepted", message=f"Decision for {workflow_id} received")


async def _apply_decision_background(
    handler: ApprovalDecisionHandler,
    workflow_id: str,
    approved: bool,
    user_id: str,
    channel_id: Optional[str],
    message_ts: Optional[str]
):
    """Background task for approval decisions."""
    try:
        applied = await handler.apply_decision(workflow_id, approved, user_id)
    except Exception as e:
        logger.error(f"Approval decision for workflow {workflow_id} failed: {e}")
        return

    if applied and channel_id and message_ts:
        text = (
            f"✅ *Lead approved* by <@{user_id}>"
            if approved
            else f"❌ *Lead rejected* by <@{user_id}>"
        )
        try:
            await slack_service.update_message(channel_id, message_ts, text)
        except Exception as e:
            logger.warning(f"Could not update Slack message for workflow {workflow_id}: {e}")


# ===========================================
# Workflow Status
# ===========================================

@workflow_router.get(
    "/{workflow_id}",
    summary="Get Workflow Status"
)
async def get_workflow_status(
    workflow_id: str,
    store: PersistenceStore = Depends(get_store)
) -> Dict[str, Any]:
    """Get the current status of a workflow run."""
    try:
        workflow = await store.get_workflow(workflow_id)
        if not workflow:
            raise WorkflowNotFound(f"Workflow not found: {workflow_id}")

        return {
            "workflow_id": workflow.id,
            "lead_id": workflow.lead_id,
            "status": workflow.status.value,
            "has_email_draft": bool(workflow.email_draft),
            "approved_by": workflow.approved_by,
            "rejected_by": workflow.rejected_by,
            "created_at": workflow.created_at.isoformat() if workflow.created_at else None,
            "completed_at": workflow.completed_at.isoformat() if workflow.completed_at else None
        }

    except WorkflowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Status lookup error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ===========================================
# Test Endpoints
# ===========================================

@test_router.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "leadflow"}
