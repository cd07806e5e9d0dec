"""Workflow record - the durable execution record of one pipeline run."""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

from leadflow.models.enums import WorkflowStatus


class Workflow(BaseModel):
    """Database record for one workflow run against one lead."""
    id: str = Field(..., description="Database record ID")
    tenant_id: str = Field(..., description="Owning organization ID")
    lead_id: Optional[str] = Field(None, description="Lead this run processed")
    status: WorkflowStatus = Field(WorkflowStatus.RUNNING, description="Run status")

    research_results: Optional[Dict[str, Any]] = Field(None, description="Research report")
    email_draft: Optional[str] = Field(None, description="Drafted outreach email")

    # Set by the approval channel, never by the orchestrator
    approved_by: Optional[str] = Field(None, description="User who approved the draft")
    rejected_by: Optional[str] = Field(None, description="User who rejected the draft")

    created_at: Optional[datetime] = Field(None, description="Run start time")
    completed_at: Optional[datetime] = Field(None, description="Set iff status is terminal")

    class Config:
        from_attributes = True

    @property
    def is_decided(self) -> bool:
        return bool(self.approved_by or self.rejected_by)
