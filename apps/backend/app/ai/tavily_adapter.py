"""
TavilyAdapter — General news search via the Tavily API.

Second-line source for the Overview "Top events" panel, tried only when the
event store and EventRegistry together still leave it short.

Graceful degradation: if TAVILY_API_KEY is not set, all search calls
return an empty list with a logged warning.

To swap to a different search provider (Serper, Brave, Bing):
  1. Implement the same `search()` interface
  2. Update the module-level singleton alias
"""

import logging

import httpx

from app.core.config import settings
from app.models.overview import NewsArticle

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"


class TavilyAdapter:
    """Thin async wrapper around Tavily's /search endpoint (news topic)."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.api_key = settings.tavily_api_key
        self.enabled = bool(self.api_key)
        self.timeout = timeout

        if not self.enabled:
            logger.warning(
                "TAVILY_API_KEY not set — web news enrichment disabled. "
                "Overview top events will not be padded from web search."
            )

    async def search(self, query: str, days: int = 1, max_results: int = 5) -> list[NewsArticle]:
        """
        Search recent news articles.

        Args:
            query:       Search query string.
            days:        Look-back window in days.
            max_results: Number of results to request.

        Returns:
            List of NewsArticle (title, content, url).
            Returns [] if not configured or on any error.
        """
        if not self.enabled:
            return []

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    TAVILY_SEARCH_URL,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "query": query,
                        "topic": "news",
                        "days": days,
                        "max_results": max_results,
                        "search_depth": "basic",
                    },
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "Tavily API error: %s — %s",
                    exc.response.status_code,
                    exc.response.text[:200],
                )
                return []
            except Exception as exc:
                logger.error("Tavily request failed: %s", exc)
                return []

        return [
            NewsArticle(
                title=(item.get("title") or "").strip(),
                content=(item.get("content") or "").strip(),
                url=item.get("url"),
            )
            for item in (data.get("results") or [])[:max_results]
        ]


# Module-level singleton
tavily_adapter = TavilyAdapter()
