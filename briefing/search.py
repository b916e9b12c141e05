"""Supplementary citation search.

Backends without built-in web search (Groq, Ollama) have their summaries
augmented with a handful of sources from the Wikipedia OpenSearch API. It is
free, needs no key and returns ``[term, titles, descriptions, urls]``.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote_plus

import httpx

from briefing.models import Source

logger = logging.getLogger(__name__)

WIKIPEDIA_API = "https://en.wikipedia.org/w/api.php"
GOOGLE_SEARCH_URL = "https://www.google.com/search?q={query}"


def fallback_source(query: str) -> Source:
    """Single pointer to a web search, used when the search call fails."""
    return Source(
        title="Search Results Unavailable",
        url=GOOGLE_SEARCH_URL.format(query=quote_plus(query)),
        snippet="Could not fetch real-time sources. Click to search Google.",
    )


class WikipediaSearch:
    """Looks up citation-style sources for a topic.

    ``transport`` lets tests plug in an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    async def search(self, query: str, max_results: int = 5) -> list[Source]:
        """Return up to *max_results* sources for *query*, in API order.

        Never raises: on failure a single Google search link is returned.
        """
        params = {
            "action": "opensearch",
            "format": "json",
            "search": query,
            "limit": max_results,
            "namespace": 0,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(WIKIPEDIA_API, params=params)
                response.raise_for_status()
                _term, titles, descriptions, urls = response.json()
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            logger.warning("Wikipedia search failed for query=%r: %s", query, exc)
            return [fallback_source(query)]

        sources = [
            Source(
                title=title,
                url=urls[i],
                snippet=(descriptions[i] if i < len(descriptions) else "") or "No description available",
            )
            for i, title in enumerate(titles)
            if i < len(urls)
        ]
        logger.info("Wikipedia search query=%r: %d sources", query, len(sources))
        return sources[:max_results]
