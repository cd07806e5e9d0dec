"""Agent factories for CrewAI agents."""

from leadflow.intelligence.agents.research import ResearchAgentFactory
from leadflow.intelligence.agents.qualification import QualificationAgentFactory
from leadflow.intelligence.agents.email_writer import EmailWriterAgentFactory

__all__ = [
    "ResearchAgentFactory",
    "QualificationAgentFactory",
    "EmailWriterAgentFactory",
]
