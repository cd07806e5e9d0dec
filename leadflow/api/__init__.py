"""API module - FastAPI routers."""

from leadflow.api.webhooks import quiz_router, slack_router, workflow_router, test_router

__all__ = ["quiz_router", "slack_router", "workflow_router", "test_router"]
