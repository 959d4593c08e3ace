"""
Retrieval Orchestrator

Runs the document and web retrievers concurrently. Each branch captures
its own failure, so one provider erroring leaves the other's results intact
and the joint await always resolves.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from ..common.keywords import extract_keywords
from .document_retriever import DocumentRetriever
from .types import RetrievalBundle, RetrievalResult
from .web_retriever import WebRetriever

logger = logging.getLogger("copilot.retriever.orchestrator")

# Background keywords must be longer than three characters
BACKGROUND_KEYWORD_MIN_LENGTH = 4


class RetrievalOrchestrator:
    """Fans a query out to both sources and collects per-source results."""

    def __init__(
        self,
        document_retriever: DocumentRetriever,
        web_retriever: WebRetriever,
        background_keywords: int = 3,
    ):
        self._documents = document_retriever
        self._web = web_retriever
        self._background_keywords = background_keywords

    @property
    def document_retriever(self) -> DocumentRetriever:
        return self._documents

    @property
    def web_retriever(self) -> WebRetriever:
        return self._web

    def build_web_query(self, query: str, background: Optional[str] = None) -> str:
        """Append up to N background keywords to the web query."""
        if not background or self._background_keywords <= 0:
            return query
        keywords = extract_keywords(background, min_length=BACKGROUND_KEYWORD_MIN_LENGTH)
        if not keywords:
            return query
        return f"{query} {' '.join(keywords[:self._background_keywords])}"

    async def retrieve(self, query: str, background: Optional[str] = None) -> RetrievalBundle:
        """
        Search documents and the web in parallel.

        Args:
            query: Search query (extracted question or generated keywords)
            background: Optional caller context used to sharpen the web query

        Returns:
            RetrievalBundle; a failed source contributes an empty list
        """
        web_query = self.build_web_query(query, background)
        logger.info("Retrieving: documents=%r web=%r", query[:80], web_query[:80])

        pdf_results, web_results = await asyncio.gather(
            self._isolated("document", self._documents.retrieve, query),
            self._isolated("web", self._web.retrieve, web_query),
        )

        logger.info("Retrieved %d document and %d web result(s)", len(pdf_results), len(web_results))
        return RetrievalBundle(pdf_results=pdf_results, web_results=web_results)

    @staticmethod
    async def _isolated(
        source: str,
        search: Callable[[str], Awaitable[List[RetrievalResult]]],
        query: str,
    ) -> List[RetrievalResult]:
        try:
            return list(await search(query))
        except Exception as e:
            logger.error("%s search failed: %s", source.capitalize(), e, exc_info=True)
            return []
