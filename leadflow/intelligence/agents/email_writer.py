"""Email Writer Agent for outreach drafts."""

import logging
from crewai import Agent, Task

from leadflow.core.config import get_settings
from leadflow.models import Qualification, QualificationCategory

logger = logging.getLogger(__name__)


class EmailWriterAgentFactory:
    """Factory for creating Email Writer Agent."""

    @staticmethod
    def create() -> Agent:
        """Create an Email Writer Agent for first-touch outreach."""
        return Agent(
            role="Sales Email Writer",
            goal="""Write short, specific first emails that earn a reply from
            qualified inbound leads.""",
            backstory="""You are an SDR lead who has written thousands of
            outbound emails. You know generic emails get ignored.

            Your writing approach:
            - Open with something specific to the lead, taken from the research
            - Connect their situation to a concrete outcome
            - One clear call to action
            - Under 150 words, plain and friendly, no buzzwords

            A human reviews every draft before it is sent.""",
            llm=get_settings().OPENAI_MODEL,
            verbose=True,
            allow_delegation=False
        )

    @staticmethod
    def create_email_task(
        agent: Agent,
        research: str,
        qualification: Qualification
    ) -> Task:
        """Create an email drafting task."""
        tone = (
            "Propose a short call this week."
            if qualification.category == QualificationCategory.QUALIFIED
            else "Offer a helpful resource and invite them to reply when ready."
        )

        description = f"""
        Write an email for a {qualification.category.value} lead based on the
        following information.

        **Qualification Reason:**
        {qualification.reason}

        **Research:**
        {research}

        **Guidelines:**
        - {tone}
        - Return only the email body as HTML paragraphs, no subject line
        """

        return Task(
            description=description,
            expected_output="Email body as simple HTML",
            agent=agent
        )
