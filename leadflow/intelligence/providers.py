"""
CrewAI-backed workflow providers.

Each provider wraps a single-agent crew. CrewAI is synchronous, so
kickoff runs in asyncio.to_thread() to keep the event loop free. Unlike
a best-effort pipeline there is no fallback output: any failure or empty
result is raised as ProviderError and fails the workflow run.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from crewai import Agent, Crew, Process, Task

from leadflow.core.errors import ProviderError
from leadflow.intelligence.agents.research import ResearchAgentFactory
from leadflow.intelligence.agents.qualification import QualificationAgentFactory
from leadflow.intelligence.agents.email_writer import EmailWriterAgentFactory
from leadflow.models import Lead, Qualification
from leadflow.services.contracts import (
    EmailDrafter,
    QualificationClassifier,
    ResearchProvider,
)

logger = logging.getLogger(__name__)


class CrewStep(ABC):
    """Shared single-agent crew runner."""

    provider_name = "crew"

    def __init__(self):
        self._agent: Optional[Agent] = None

    @abstractmethod
    def create_agent(self) -> Agent:
        """Build the step's agent."""

    @property
    def agent(self) -> Agent:
        """Lazily create the agent on first use."""
        if self._agent is None:
            self._agent = self.create_agent()
        return self._agent

    def kickoff(self, task: Task):
        """Run one task and return its output."""
        crew = Crew(
            agents=[self.agent],
            tasks=[task],
            process=Process.sequential,
            verbose=True
        )
        crew.kickoff()
        return task.output

    async def run_in_thread(self, func, *args):
        """Run a synchronous crew call off the event loop, normalizing errors."""
        try:
            return await asyncio.to_thread(func, *args)
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"{self.provider_name} failed: {e}")
            raise ProviderError(self.provider_name, str(e)) from e


class CrewResearchProvider(CrewStep, ResearchProvider):
    """Research provider backed by the Research Agent."""

    provider_name = "research"

    def create_agent(self) -> Agent:
        return ResearchAgentFactory.create()

    async def research(self, lead: Lead) -> str:
        logger.info(f"Running Research Agent for lead {lead.id}")
        return await self.run_in_thread(self.run, lead)

    def run(self, lead: Lead) -> str:
        task = ResearchAgentFactory.create_research_task(self.agent, lead)
        output = self.kickoff(task)

        report = (output.raw if output else "") or ""
        if not report.strip():
            raise ProviderError(self.provider_name, "research returned no output")
        return report.strip()


class CrewQualificationClassifier(CrewStep, QualificationClassifier):
    """Qualification classifier backed by the Qualification Agent."""

    provider_name = "qualification"

    def create_agent(self) -> Agent:
        return QualificationAgentFactory.create()

    async def classify(self, lead: Lead, research: str) -> Qualification:
        logger.info(f"Running Qualification Agent for lead {lead.id}")
        return await self.run_in_thread(self.run, lead, research)

    def run(self, lead: Lead, research: str) -> Qualification:
        task = QualificationAgentFactory.create_qualification_task(self.agent, lead, research)
        output = self.kickoff(task)

        if output and output.pydantic:
            qualification = output.pydantic
            logger.info(f"Qualification completed - Category: {qualification.category.value}")
            return qualification

        raise ProviderError(self.provider_name, "qualification returned no structured output")


class CrewEmailDrafter(CrewStep, EmailDrafter):
    """Email drafter backed by the Email Writer Agent."""

    provider_name = "email_drafter"

    def create_agent(self) -> Agent:
        return EmailWriterAgentFactory.create()

    async def draft(self, research: str, qualification: Qualification) -> str:
        logger.info(f"Running Email Writer Agent for {qualification.category.value} lead")
        return await self.run_in_thread(self.run, research, qualification)

    def run(self, research: str, qualification: Qualification) -> str:
        task = EmailWriterAgentFactory.create_email_task(self.agent, research, qualification)
        output = self.kickoff(task)

        email = (output.raw if output else "") or ""
        if not email.strip():
            raise ProviderError(self.provider_name, "email writer returned no output")
        return email.strip()
