"""Web Retriever: top-K web snippets for a query."""

import logging
from typing import List, Optional
from urllib.parse import urlparse

from ..common.web_search_client import WebHit, WebSearchClient
from .types import RetrievalResult, SourceKind

logger = logging.getLogger("copilot.retriever.web_retriever")


class WebRetriever:
    """Wraps the web search capability and normalizes its hits."""

    def __init__(self, client: WebSearchClient, top_k: int = 3):
        self._client = client
        self._top_k = top_k

    async def retrieve(self, query: str, top_k: Optional[int] = None) -> List[RetrievalResult]:
        top_k = top_k or self._top_k
        hits = await self._client.search(query, top_k)
        results = [self._to_result(h) for h in hits[:top_k]]
        logger.info("Web search returned %d result(s) for %r", len(results), query[:80])
        return results

    @staticmethod
    def _to_result(hit: WebHit) -> RetrievalResult:
        host = urlparse(hit.url).hostname if hit.url else None
        return RetrievalResult(
            content=hit.snippet,
            score=max(0.0, min(1.0, hit.score)),
            source_id=hit.url or hit.title,
            source_kind=SourceKind.WEB,
            source=f"Web: {host or hit.title}",
            url=hit.url or None,
            title=hit.title,
        )
