"""Research Agent for lead intelligence gathering."""

import json
import logging
from crewai import Agent, Task
from crewai.tools import tool

from leadflow.core.config import get_settings
from leadflow.models import Lead
from leadflow.integrations.firecrawl import firecrawl_service

logger = logging.getLogger(__name__)


class ResearchAgentFactory:
    """Factory for creating Research Agent."""

    @staticmethod
    def create() -> Agent:
        """Create a Research Agent with web scraping tools."""

        @tool("scrape_website")
        def scrape_website(url: str) -> str:
            """
            Scrape a website to extract content.
            Use this to gather information about the lead's company.

            Args:
                url: The website URL or domain to scrape

            Returns:
                Extracted content from the website
            """
            result = firecrawl_service.scrape_website(url)

            if result and result.get("success"):
                return result.get("markdown", "No content extracted")
            if result:
                return f"Failed to scrape website: {result.get('error', 'Unknown error')}"
            return "No URL provided"

        @tool("search_web")
        def search_web(query: str) -> str:
            """
            Search the web for information about a company or person.

            Args:
                query: Search query (e.g., "Company Name news")

            Returns:
                Top results with short descriptions
            """
            results = firecrawl_service.search(query, limit=3)

            if results:
                return "\n".join(
                    f"- {r['title']} ({r['url']}): {r.get('description', '')[:200]}"
                    for r in results
                )
            return "No results found"

        return Agent(
            role="Lead Research Specialist",
            goal="""Find information about inbound leads and their companies so
            the sales team can judge fit and write a relevant first email.""",
            backstory="""You are an expert B2B researcher. Given a lead's name,
            email, company and message you quickly build a picture of who they
            are and what they need.

            Your research approach:
            - Start with the company website (use the email domain if no company is given)
            - Look for recent news about the company
            - Identify the company's industry, size and likely pain points
            - Note anything that suggests the lead is an existing customer
              asking for support rather than a new prospect

            You synthesize what you find into a concise, factual report.""",
            tools=[scrape_website, search_web],
            llm=get_settings().OPENAI_MODEL,
            verbose=True,
            allow_delegation=False
        )

    @staticmethod
    def create_research_task(agent: Agent, lead: Lead) -> Task:
        """Create a research task for the agent."""
        description = f"""
        Research the lead: {json.dumps(lead.research_payload())}

        **Research Tasks:**
        1. Identify the company (from the company field or email domain) and
           scrape its website to understand what it does.

        2. Search for recent news about the company.

        3. Based on your findings and the lead's message, describe:
           - Who the lead is and what their company does
           - What they appear to be asking for
           - Signals of budget, urgency and fit
           - Whether this looks like a sales opportunity or a support request

        **Output Requirements:**
        A comprehensive plain-text report, no more than 600 words.
        """

        return Task(
            description=description,
            expected_output="Plain-text research report about the lead",
            agent=agent
        )
