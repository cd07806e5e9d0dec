"""Exception taxonomy for the lead pipeline."""


class LeadflowError(Exception):
    """Base class for all application errors."""


class PersistenceError(LeadflowError):
    """The persistence store was unreachable or rejected a write."""


class ProviderError(LeadflowError):
    """An external capability (research, classification, drafting, approval delivery) failed."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class InvalidQuestionSet(LeadflowError):
    """Quiz questions cannot be scored (e.g. a choice question has no options)."""


class InvalidSubmission(LeadflowError):
    """A quiz submission is missing required contact information."""


class WorkflowNotFound(LeadflowError):
    """No workflow record exists for the given id."""


class InvalidStateTransition(LeadflowError):
    """The orchestrator attempted a transition the state machine does not allow."""
