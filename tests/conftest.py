"""Pytest fixtures and configuration for Leadflow tests."""

import os
import pytest
from datetime import datetime
from typing import Dict, Any, Generator, List

from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("FIRECRAWL_API_KEY", "fc-test")
os.environ.setdefault("SLACK_BOT_TOKEN", "xoxb-test")
os.environ.setdefault("SLACK_SIGNING_SECRET", "test-signing-secret")
os.environ.setdefault("SLACK_CHANNEL_ID", "C_TEST")
os.environ.setdefault("OUTREACH_SENDER", "sales@leadflow.test")
os.environ.setdefault("ENABLE_AI_RESEARCH", "true")
os.environ.setdefault("MOCK_PROVIDERS", "false")
os.environ.setdefault("DEBUG", "true")

from leadflow.core.memory import InMemoryStore
from leadflow.intelligence.mock_providers import (
    MockApprovalGate,
    MockEmailDrafter,
    MockQualificationClassifier,
    MockResearchProvider,
)
from leadflow.models import Lead, QuestionType, QuizOption, QuizQuestion
from leadflow.services.workflow import LeadWorkflow

TENANT_ID = "org_test_123"


# ===========================================
# Sample Data Fixtures
# ===========================================

@pytest.fixture
def sample_lead() -> Lead:
    """Lead as stored after a quiz submission."""
    now = datetime(2026, 1, 15, 9, 30)
    return Lead(
        id="lead_test_12345",
        tenant_id=TENANT_ID,
        name="Jane Doe",
        email="jane@acmecorp.com",
        company="Acme Corp",
        phone="+14155551234",
        message="Quiz submission - Readiness Score: 87% (qualified)",
        created_at=now,
        updated_at=now
    )


@pytest.fixture
def quiz_questions() -> List[QuizQuestion]:
    """
    Four-question quiz: contact info, a weighted multiple choice, a
    checkbox and a free-text question. Maximum score is 30 points.
    """
    return [
        QuizQuestion(
            id="q_contact",
            tenant_id=TENANT_ID,
            question_number=1,
            question_type=QuestionType.CONTACT_INFO,
            question_text="Your details"
        ),
        QuizQuestion(
            id="q_budget",
            tenant_id=TENANT_ID,
            question_number=2,
            question_type=QuestionType.MULTIPLE_CHOICE,
            question_text="What budget have you set aside?",
            options=[
                QuizOption(value="low", label="Under $10k", score=0),
                QuizOption(value="mid", label="$10k - $50k", score=5),
                QuizOption(value="high", label="Over $50k", score=10),
            ],
            scoring_weight=2
        ),
        QuizQuestion(
            id="q_tools",
            tenant_id=TENANT_ID,
            question_number=3,
            question_type=QuestionType.CHECKBOX,
            question_text="Which systems do you use?",
            options=[
                QuizOption(value="crm", label="CRM", score=2),
                QuizOption(value="erp", label="ERP", score=3),
                QuizOption(value="bi", label="BI", score=5),
            ],
            scoring_weight=1
        ),
        QuizQuestion(
            id="q_notes",
            tenant_id=TENANT_ID,
            question_number=4,
            question_type=QuestionType.TEXT,
            question_text="Anything else?"
        ),
    ]


@pytest.fixture
def contact_answer() -> Dict[str, Any]:
    return {
        "full_name": "Jane Doe",
        "email": "jane@acmecorp.com",
        "company": "Acme Corp",
        "phone": "+14155551234",
        "job_title": "VP Operations"
    }


@pytest.fixture
def qualified_responses(contact_answer) -> Dict[str, Any]:
    """Perfect score: 30/30 -> 100% (qualified)."""
    return {
        "q_contact": contact_answer,
        "q_budget": "high",
        "q_tools": ["crm", "erp", "bi"],
        "q_notes": "We want to automate intake."
    }


@pytest.fixture
def warm_responses(contact_answer) -> Dict[str, Any]:
    """12/30 -> 40% (warm)."""
    return {
        "q_contact": contact_answer,
        "q_budget": "mid",
        "q_tools": ["crm"],
    }


# ===========================================
# Store and Provider Fixtures
# ===========================================

@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def seeded_store(store, sample_lead, quiz_questions) -> InMemoryStore:
    """Store holding the sample lead and the tenant's quiz."""
    store.add_lead(sample_lead)
    store.add_quiz_questions(TENANT_ID, quiz_questions)
    return store


@pytest.fixture
def researcher() -> MockResearchProvider:
    return MockResearchProvider(report="Acme Corp is a 200-person logistics company.")


@pytest.fixture
def classifier() -> MockQualificationClassifier:
    return MockQualificationClassifier()


@pytest.fixture
def drafter() -> MockEmailDrafter:
    return MockEmailDrafter(email="<p>Hi Jane, thanks for reaching out.</p>")


@pytest.fixture
def approval_gate() -> MockApprovalGate:
    return MockApprovalGate()


@pytest.fixture
def workflow(seeded_store, researcher, classifier, drafter, approval_gate) -> LeadWorkflow:
    """Orchestrator wired to the in-memory store and mock providers."""
    return LeadWorkflow(
        store=seeded_store,
        researcher=researcher,
        classifier=classifier,
        drafter=drafter,
        approval_gate=approval_gate
    )


# ===========================================
# Client Fixtures
# ===========================================

@pytest.fixture
def client(seeded_store, workflow) -> Generator[TestClient, None, None]:
    """Test client backed by the in-memory store and mock providers."""
    from leadflow.main import app
    from leadflow.api.webhooks import get_store, get_submission_service
    from leadflow.services.lead_processor import QuizSubmissionService

    app.dependency_overrides[get_store] = lambda: seeded_store
    app.dependency_overrides[get_submission_service] = lambda: QuizSubmissionService(
        seeded_store,
        workflow_factory=lambda: workflow
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ===========================================
# Pytest Configuration
# ===========================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
