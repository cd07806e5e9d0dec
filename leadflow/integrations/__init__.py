"""Integrations module - External service connectors."""

from leadflow.integrations.firecrawl import FirecrawlService, firecrawl_service
from leadflow.integrations.slack import SlackService, SlackApprovalGate, slack_service
from leadflow.integrations.email import EmailService, email_service

__all__ = [
    "FirecrawlService",
    "firecrawl_service",
    "SlackService",
    "SlackApprovalGate",
    "slack_service",
    "EmailService",
    "email_service",
]
