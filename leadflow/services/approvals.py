"""Approval decisions - applies a reviewer's approve/reject to a workflow."""

import asyncio
import logging
from typing import Optional

from leadflow.core.errors import PersistenceError, WorkflowNotFound
from leadflow.models import LeadStatus
from leadflow.services.contracts import PersistenceStore

logger = logging.getLogger(__name__)


def outreach_subject(company: Optional[str]) -> str:
    return f"Re: Your inquiry from {company or 'your company'}"


class ApprovalDecisionHandler:
    """
    Records a human decision delivered by the approval channel.

    The workflow status is never touched: by the time a reviewer clicks,
    the run is already terminal. Only approved_by / rejected_by and the
    lead's review status change. A second decision for the same workflow
    is ignored.
    """

    def __init__(self, store: PersistenceStore, email_sender=None):
        self.store = store
        self._email_sender = email_sender

    @property
    def email_sender(self):
        """Lazy load the Gmail sender."""
        if self._email_sender is None:
            from leadflow.integrations.email import email_service
            self._email_sender = email_service
        return self._email_sender

    async def apply_decision(self, workflow_id: str, approved: bool, user_id: str) -> bool:
        """
        Apply an approve/reject decision.

        Args:
            workflow_id: Correlation ID carried by the approval request
            approved: True to approve and send the draft
            user_id: Reviewer identity from the approval channel

        Returns:
            False if the workflow was already decided, True otherwise

        Raises:
            WorkflowNotFound: No workflow with this ID
            ProviderError: The approved email could not be sent
        """
        workflow = await self.store.get_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFound(f"Workflow not found: {workflow_id}")

        if workflow.is_decided:
            logger.info(
                f"Workflow {workflow_id} already decided "
                f"(approved_by={workflow.approved_by}, rejected_by={workflow.rejected_by}), "
                f"ignoring decision from {user_id}"
            )
            return False

        # Another worker may have decided since the read above
        if not await self.store.record_approval_decision(workflow_id, approved, user_id):
            logger.info(f"Workflow {workflow_id} decided concurrently, ignoring decision from {user_id}")
            return False

        status = LeadStatus.APPROVED if approved else LeadStatus.REJECTED
        await self.store.update_lead_status(workflow.lead_id, status)
        logger.info(f"Workflow {workflow_id} {status.value} by {user_id}")

        if approved:
            await self._send_draft(workflow_id, workflow.lead_id, workflow.email_draft)

        return True

    async def _send_draft(self, workflow_id: str, lead_id: str, email_draft: Optional[str]) -> None:
        if not email_draft:
            logger.warning(f"Workflow {workflow_id} approved without an email draft, nothing sent")
            return

        lead = await self.store.get_lead(lead_id)
        if lead is None:
            raise PersistenceError(f"Lead not found: {lead_id}")

        try:
            await asyncio.to_thread(
                self.email_sender.send_outreach_email,
                lead.email,
                outreach_subject(lead.company),
                email_draft
            )
        except Exception as e:
            logger.error(f"Approved email for workflow {workflow_id} was not sent: {e}")
            raise

        logger.info(f"Approved email sent to {lead.email} for workflow {workflow_id}")
