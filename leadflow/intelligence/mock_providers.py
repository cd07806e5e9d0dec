"""
Mock workflow providers - canned responses for tests and local runs.

Activated with MOCK_PROVIDERS=1. Every external capability is replaced
with a scripted stand-in that records its calls, so the orchestrator can
be exercised end to end without CrewAI, Firecrawl or Slack.
"""

import logging
from typing import Any, Dict, List, Optional

from leadflow.models import Lead, Qualification, QualificationCategory
from leadflow.services.contracts import (
    ApprovalGate,
    EmailDrafter,
    QualificationClassifier,
    ResearchProvider,
)

logger = logging.getLogger("leadflow.mock")


class MockResearchProvider(ResearchProvider):
    """Returns a fixed report, or raises the configured error."""

    def __init__(self, report: Optional[str] = None, error: Optional[BaseException] = None):
        self.report = report
        self.error = error
        self.calls: List[Lead] = []

    async def research(self, lead: Lead) -> str:
        self.calls.append(lead)
        if self.error:
            raise self.error
        return self.report or (
            f"[MOCK] {lead.name} ({lead.email}) at {lead.company or 'an unknown company'} "
            f"wrote: {lead.message}"
        )


class MockQualificationClassifier(QualificationClassifier):
    """Returns a fixed category and reason, or raises the configured error."""

    def __init__(
        self,
        category: QualificationCategory = QualificationCategory.QUALIFIED,
        reason: str = "[MOCK] Strong product fit",
        error: Optional[BaseException] = None
    ):
        self.category = category
        self.reason = reason
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def classify(self, lead: Lead, research: str) -> Qualification:
        self.calls.append({"lead": lead, "research": research})
        if self.error:
            raise self.error
        return Qualification(category=self.category, reason=self.reason)


class MockEmailDrafter(EmailDrafter):
    """Returns a fixed draft, or raises the configured error."""

    def __init__(self, email: str = "<p>[MOCK] Hi there, thanks for reaching out.</p>",
                 error: Optional[BaseException] = None):
        self.email = email
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def draft(self, research: str, qualification: Qualification) -> str:
        self.calls.append({"research": research, "qualification": qualification})
        if self.error:
            raise self.error
        return self.email


class MockApprovalGate(ApprovalGate):
    """Records approval requests instead of publishing them."""

    def __init__(self, error: Optional[BaseException] = None):
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    async def request(
        self,
        lead: Lead,
        research: str,
        email: str,
        qualification: Qualification,
        workflow_id: str
    ) -> None:
        self.requests.append({
            "lead": lead,
            "research": research,
            "email": email,
            "qualification": qualification,
            "workflow_id": workflow_id,
        })
        if self.error:
            raise self.error
        logger.info(f"[MOCK] Approval requested for workflow {workflow_id}")
