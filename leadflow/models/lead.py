"""Lead-related models - submission, contact and qualification data."""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, EmailStr

from leadflow.models.enums import LeadStatus, QualificationCategory


class ContactInfo(BaseModel):
    """Contact fields captured by the quiz's contact_info question."""
    name: str = Field("", description="Full name")
    email: str = Field("", description="Contact email")
    company: str = Field("", description="Company name")
    phone: str = Field("", description="Phone number")
    job_title: str = Field("", description="Job title")

    @property
    def is_complete(self) -> bool:
        """Name and email are the minimum needed to create a lead."""
        return bool(self.name and self.email)


class NewLead(BaseModel):
    """Data needed to insert a lead row."""
    tenant_id: str = Field(..., description="Owning organization ID")
    name: str = Field(..., description="Contact name")
    email: EmailStr = Field(..., description="Contact email")
    company: Optional[str] = Field(None, description="Company name")
    phone: Optional[str] = Field(None, description="Phone number")
    message: str = Field(..., description="Free-text message or submission summary")


class Lead(BaseModel):
    """A prospective-customer submission as stored."""
    id: str = Field(..., description="Database record ID")
    tenant_id: str = Field(..., description="Owning organization ID")
    name: str = Field(..., description="Contact name")
    email: str = Field(..., description="Contact email")
    company: Optional[str] = Field(None, description="Company name")
    phone: Optional[str] = Field(None, description="Phone number")
    message: str = Field("", description="Free-text message")

    # Qualification
    qualification_category: Optional[QualificationCategory] = Field(
        None,
        description="Classifier category, unset until a qualification step succeeds"
    )
    qualification_reason: Optional[str] = Field(None, description="Classifier rationale")
    email_draft: Optional[str] = Field(None, description="Drafted outreach email")
    research_results: Optional[Dict[str, Any]] = Field(None, description="Research data")

    # Review
    status: LeadStatus = Field(LeadStatus.PENDING, description="Human review status")

    # Timestamps
    created_at: Optional[datetime] = Field(None, description="Record creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")

    class Config:
        from_attributes = True

    def research_payload(self) -> Dict[str, Any]:
        """Identity fields handed to the research provider."""
        return {
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "message": self.message,
        }


class Qualification(BaseModel):
    """Output of the qualification classifier."""
    category: QualificationCategory = Field(..., description="Qualification category")
    reason: str = Field(..., description="Why the lead was put in this category")
