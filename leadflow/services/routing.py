"""Qualification routing policy - which outreach steps each category gets."""

from typing import Dict, NamedTuple

from leadflow.models import QualificationCategory


class RoutingDecision(NamedTuple):
    """Outreach steps to run after qualification."""
    draft_email: bool
    request_approval: bool

    @property
    def is_outreach(self) -> bool:
        return self.draft_email or self.request_approval


OUTREACH = RoutingDecision(draft_email=True, request_approval=True)
NO_ACTION = RoutingDecision(draft_email=False, request_approval=False)

# UNQUALIFIED and SUPPORT are reserved for future nurture/support routing
ROUTING_TABLE: Dict[QualificationCategory, RoutingDecision] = {
    QualificationCategory.QUALIFIED: OUTREACH,
    QualificationCategory.FOLLOW_UP: OUTREACH,
    QualificationCategory.UNQUALIFIED: NO_ACTION,
    QualificationCategory.SUPPORT: NO_ACTION,
}


def route_for(category: QualificationCategory) -> RoutingDecision:
    """Look up the routing decision for a qualification category."""
    return ROUTING_TABLE[QualificationCategory(category)]
