"""Core module - Configuration, errors and persistence."""

from leadflow.core.config import get_settings, Settings
from leadflow.core.errors import (
    LeadflowError,
    PersistenceError,
    ProviderError,
    InvalidQuestionSet,
    InvalidSubmission,
    WorkflowNotFound,
    InvalidStateTransition,
)

__all__ = [
    "get_settings",
    "Settings",
    "LeadflowError",
    "PersistenceError",
    "ProviderError",
    "InvalidQuestionSet",
    "InvalidSubmission",
    "WorkflowNotFound",
    "InvalidStateTransition",
]
