"""
Web Search Client

Thin async wrapper over the Tavily search REST API.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

logger = logging.getLogger("copilot.common.web_search_client")

TAVILY_SEARCH_URL = "https://api.tavily.com/search"

# Score given to hits the provider returns without one
DEFAULT_HIT_SCORE = 0.8


@dataclass
class WebHit:
    """A single web search hit as returned by the provider"""
    title: str
    url: str
    snippet: str
    score: float


class WebSearchClient:
    """
    Web Search capability: search(query, top_k) -> [WebHit].

    The caller owns the lifetime: call aclose() on shutdown.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        search_depth: str = "basic",
        timeout: float = 25.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key
        self._search_depth = search_depth
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        if not api_key:
            logger.info("Tavily API key not provided, web search unavailable")

    @classmethod
    def from_config(cls, web_search_config) -> "WebSearchClient":
        return cls(
            api_key=web_search_config.api_key or None,
            search_depth=web_search_config.search_depth,
        )

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    async def search(self, query: str, top_k: int) -> List[WebHit]:
        if not self.is_available:
            raise RuntimeError("Web search API key not configured")

        response = await self._http.post(TAVILY_SEARCH_URL, json={
            "api_key": self._api_key,
            "query": query,
            "search_depth": self._search_depth,
            "max_results": top_k,
            "include_answer": False,
            "include_images": False,
            "include_raw_content": False,
        })
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict) or "results" not in payload:
            raise ValueError("Invalid response from Tavily API")

        hits = []
        for i, item in enumerate(payload["results"]):
            hits.append(WebHit(
                title=item.get("title") or f"Result {i + 1}",
                url=item.get("url") or "",
                snippet=item.get("content") or item.get("snippet") or "",
                score=_hit_score(item.get("score")),
            ))
        return hits

    async def aclose(self) -> None:
        await self._http.aclose()


def _hit_score(value) -> float:
    """Provider score, or the default when missing or not numeric."""
    if value is None or isinstance(value, bool):
        return DEFAULT_HIT_SCORE
    try:
        return float(value)
    except (TypeError, ValueError):
        return DEFAULT_HIT_SCORE
