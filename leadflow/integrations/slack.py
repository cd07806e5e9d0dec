"""Slack integration - approval requests for drafted outreach emails."""

import hashlib
import hmac
import logging
import time
from typing import Optional, Dict, Any, List
import httpx

from leadflow.core.config import get_settings
from leadflow.core.errors import ProviderError
from leadflow.models import Lead, Qualification
from leadflow.services.contracts import ApprovalGate

logger = logging.getLogger(__name__)

APPROVE_ACTION_ID = "lead_approved"
REJECT_ACTION_ID = "lead_rejected"

# Slack rejects requests whose timestamp is more than five minutes old
SIGNATURE_MAX_AGE_SECONDS = 60 * 5


def build_approval_message(
    lead: Lead,
    research: str,
    email: str,
    qualification: Qualification
) -> str:
    """Build the mrkdwn review message."""
    return (
        f"*New Lead Qualification*\n\n"
        f"*Lead:* {lead.name} <{lead.email}>"
        f"{f' ({lead.company})' if lead.company else ''}\n"
        f"*Category:* {qualification.category.value}\n"
        f"*Reason:* {qualification.reason}\n\n"
        f"*Email:*\n{email}\n\n"
        f"*Research:*\n{research[:500]}...\n\n"
        f"*Please review and approve or reject this email*"
    )


def build_approval_blocks(message: str, workflow_id: str) -> List[Dict[str, Any]]:
    """Message section plus Approve/Reject buttons carrying the workflow id."""
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": message},
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Approve"},
                    "style": "primary",
                    "action_id": APPROVE_ACTION_ID,
                    "value": workflow_id,
                },
                {
                    "type": "button",
                    "text": {"type": "plain_text", "text": "Reject"},
                    "style": "danger",
                    "action_id": REJECT_ACTION_ID,
                    "value": workflow_id,
                },
            ],
        },
    ]


class SlackService:
    """
    Service for Slack Web API operations.

    Posts approval requests with interactive buttons and verifies the
    signed interaction callbacks Slack sends back.
    """

    def __init__(self):
        """Initialize service with settings."""
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def is_available(self) -> bool:
        """Check if Slack is configured."""
        return self.settings.slack_configured

    async def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Call a Slack Web API method.

        Raises:
            ProviderError: Transport failure, non-200 response, or ok=false
        """
        headers = {
            "Authorization": f"Bearer {self.settings.SLACK_BOT_TOKEN}",
            "Content-Type": "application/json; charset=utf-8"
        }

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    f"{self.settings.SLACK_API_URL}/{method}",
                    json=payload,
                    headers=headers
                )
        except httpx.TimeoutException as e:
            logger.error(f"Slack API timeout: {method}")
            raise ProviderError("slack", f"{method} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Slack API error: {method} - {e}")
            raise ProviderError("slack", f"{method} failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Slack API error: {response.status_code} - {response.text}")
            raise ProviderError("slack", f"{method} returned HTTP {response.status_code}")

        data = response.json()
        if not data.get("ok"):
            logger.error(f"Slack API error: {method} - {data.get('error')}")
            raise ProviderError("slack", f"{method} failed: {data.get('error', 'unknown_error')}")

        return data

    async def post_message(
        self,
        channel: str,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None
    ) -> str:
        """Post a message and return its timestamp."""
        payload: Dict[str, Any] = {"channel": channel, "text": text}
        if blocks:
            payload["blocks"] = blocks

        data = await self._call("chat.postMessage", payload)
        logger.info(f"Slack message posted to {channel}: {data.get('ts')}")
        return data.get("ts", "")

    async def update_message(self, channel: str, ts: str, text: str) -> None:
        """Replace a message's content (used to remove buttons after a decision)."""
        await self._call("chat.update", {
            "channel": channel,
            "ts": ts,
            "text": text,
            "blocks": [{"type": "section", "text": {"type": "mrkdwn", "text": text}}],
        })

    def verify_signature(
        self,
        timestamp: str,
        body: bytes,
        signature: str,
        now: Optional[float] = None
    ) -> bool:
        """Verify an X-Slack-Signature header against the signing secret."""
        secret = self.settings.SLACK_SIGNING_SECRET
        if not secret or not timestamp or not signature:
            return False

        try:
            age = abs((now or time.time()) - int(timestamp))
        except ValueError:
            return False
        if age > SIGNATURE_MAX_AGE_SECONDS:
            logger.warning("Rejected stale Slack request")
            return False

        basestring = f"v0:{timestamp}:".encode() + body
        expected = "v0=" + hmac.new(secret.encode(), basestring, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature)


class SlackApprovalGate(ApprovalGate):
    """
    Approval gate that posts the draft to a Slack channel.

    Fire-and-forget: returns once the message is posted. The decision
    comes back through the /slack/actions endpoint keyed by workflow id.
    """

    def __init__(self, service: Optional[SlackService] = None):
        self.service = service or slack_service

    async def request(
        self,
        lead: Lead,
        research: str,
        email: str,
        qualification: Qualification,
        workflow_id: str
    ) -> None:
        if not self.service.is_available():
            logger.warning(
                "SLACK_BOT_TOKEN or SLACK_SIGNING_SECRET is not set, "
                f"skipping approval request for workflow {workflow_id}"
            )
            return

        message = build_approval_message(lead, research, email, qualification)
        await self.service.post_message(
            channel=self.service.settings.SLACK_CHANNEL_ID,
            text=message,
            blocks=build_approval_blocks(message, workflow_id)
        )


# Singleton instance
slack_service = SlackService()
