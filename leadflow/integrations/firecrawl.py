"""Firecrawl integration for lead research."""

import logging
from typing import Optional, List, Dict, Any

from leadflow.core.config import get_settings

logger = logging.getLogger(__name__)


class FirecrawlService:
    """
    Service for Firecrawl web scraping operations.

    Provides website scraping and web search for the research agent's
    tools. Calls are synchronous because CrewAI tools run inside the
    crew's worker thread.
    """

    def __init__(self):
        """Initialize service."""
        self._client = None
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def client(self):
        """Lazy initialize Firecrawl client."""
        if self._client is None:
            from firecrawl import FirecrawlApp
            self._client = FirecrawlApp(api_key=self.settings.FIRECRAWL_API_KEY)
            logger.info("Firecrawl client initialized")
        return self._client

    def scrape_website(self, url: str) -> Optional[Dict[str, Any]]:
        """
        Scrape a website and return its markdown content.

        Args:
            url: URL or bare domain to scrape

        Returns:
            Dict with url, markdown and success flag, or None for an empty url
        """
        if not url:
            return None

        if not url.startswith("http"):
            url = f"https://{url}"

        try:
            result = self.client.scrape_url(url, params={"formats": ["markdown"]})

            if result:
                logger.info(f"Scraped {url}: {len(result.get('markdown', ''))} chars")
                return {
                    "url": url,
                    "markdown": result.get("markdown", ""),
                    "metadata": result.get("metadata", {}),
                    "success": True
                }
            return None

        except Exception as e:
            # Reported to the agent as a failed result
            logger.warning(f"Failed to scrape {url}: {e}")
            return {
                "url": url,
                "error": str(e),
                "success": False
            }

    def search(self, query: str, limit: int = 3) -> List[Dict[str, Any]]:
        """
        Search the web.

        Args:
            query: Search query
            limit: Maximum results to return

        Returns:
            List of results with title, url and description
        """
        try:
            results = self.client.search(query, params={"limit": limit})
            if isinstance(results, dict):
                results = results.get("data", [])

            if results:
                logger.info(f"Search '{query}': {len(results)} results")
                return [
                    {
                        "title": r.get("title", ""),
                        "url": r.get("url", ""),
                        "description": r.get("description", ""),
                    }
                    for r in results
                ]
            return []

        except Exception as e:
            logger.warning(f"Search failed for '{query}': {e}")
            return []

    def is_available(self) -> bool:
        """Check if Firecrawl service is configured."""
        return bool(self.settings.FIRECRAWL_API_KEY)


# Singleton instance
firecrawl_service = FirecrawlService()
