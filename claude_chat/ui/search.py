"""Web search via Tavily.

Search is best effort: without an API key, or when the call fails, the
chat turn goes ahead with no results.
"""

import logging

from tavily import AsyncTavilyClient

from claude_chat.errors import SearchError
from claude_chat.models.schemas import SearchResult

logger = logging.getLogger(__name__)


class WebSearch:
    """Tavily search client returning ``SearchResult`` lists."""

    def __init__(
        self,
        api_key: str | None,
        max_results: int = 5,
        client: AsyncTavilyClient | None = None,
    ) -> None:
        self._max_results = max_results
        if client is not None:
            self._client: AsyncTavilyClient | None = client
        elif api_key:
            self._client = AsyncTavilyClient(api_key=api_key)
            logger.info("Tavily search client initialized")
        else:
            self._client = None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def _search(self, query: str) -> list[SearchResult]:
        try:
            response = await self._client.search(
                query=query,
                search_depth="basic",
                max_results=self._max_results,
            )
            results = response.get("results") or []
            return [SearchResult.model_validate(r) for r in results[: self._max_results]]
        except Exception as e:
            raise SearchError(f"Tavily search failed: {e}") from e

    async def search(self, query: str) -> list[SearchResult]:
        """Search the web for a query.

        Returns:
            Up to ``max_results`` hits; an empty list when search is not
            configured or fails.
        """
        if self._client is None:
            logger.warning("Tavily API key not configured")
            return []

        try:
            results = await self._search(query)
        except SearchError as e:
            logger.error(f"Web search error: {e}")
            return []

        logger.info(f"Web search for {query!r} returned {len(results)} results")
        return results
