"""Qualification Agent for lead categorization."""

import json
import logging
from crewai import Agent, Task

from leadflow.core.config import get_settings
from leadflow.models import Lead, Qualification

logger = logging.getLogger(__name__)


class QualificationAgentFactory:
    """Factory for creating Qualification Agent."""

    @staticmethod
    def create() -> Agent:
        """Create a Qualification Agent."""
        return Agent(
            role="Lead Qualification Specialist",
            goal="""Categorize inbound leads so sales effort goes to the
            prospects most likely to buy.""",
            backstory="""You are a sales operations expert who triages every
            inbound lead. You read the lead's own words and the research
            report and decide, with a short justification, which bucket the
            lead belongs in:

            - QUALIFIED: clear fit, need and buying signals; contact now
            - FOLLOW_UP: plausible fit but not ready; worth a nurturing email
            - UNQUALIFIED: no fit, spam, students, competitors
            - SUPPORT: an existing customer asking for help""",
            llm=get_settings().OPENAI_MODEL,
            verbose=True,
            allow_delegation=False
        )

    @staticmethod
    def create_qualification_task(agent: Agent, lead: Lead, research: str) -> Task:
        """Create a qualification task."""
        lead_data = {
            "name": lead.name,
            "email": lead.email,
            "company": lead.company or "",
            "phone": lead.phone or "",
            "message": lead.message,
        }

        description = f"""
        Qualify the lead and give a reason for the qualification based on
        the following information.

        **LEAD DATA:**
        {json.dumps(lead_data)}

        **RESEARCH:**
        {research}

        **Output:**
        - category: one of QUALIFIED, FOLLOW_UP, UNQUALIFIED, SUPPORT
        - reason: one or two sentences explaining the category
        """

        return Task(
            description=description,
            expected_output="Structured JSON matching the Qualification schema",
            agent=agent,
            output_pydantic=Qualification
        )
