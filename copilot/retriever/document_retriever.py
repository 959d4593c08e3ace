"""
Document Retriever

Embeds a query and searches the uploaded-document vector index.
Returns passages with relevance score and page locator for citation.
"""

import logging
from typing import Any, Dict, List, Optional

from ..common.embedding_service import EmbeddingService
from ..common.vector_store import VectorMatch
from .types import PageRange, RetrievalResult, SourceKind

logger = logging.getLogger("copilot.retriever.document_retriever")


class DocumentRetriever:
    """
    Searches uploaded documents ("embed then search" as one step).

    Errors from the embedding backend or the index propagate to the caller;
    the orchestrator isolates them per source.
    """

    def __init__(
        self,
        vector_store,
        embedding_service: EmbeddingService,
        top_k: int = 3,
    ):
        """
        Initialize document retriever.

        Args:
            vector_store: Object exposing async search(query_embedding, top_k)
            embedding_service: For embedding queries
            top_k: Number of passages requested from the index
        """
        self._store = vector_store
        self._embedding = embedding_service
        self._top_k = top_k

    @property
    def top_k(self) -> int:
        return self._top_k

    async def retrieve(self, query: str, top_k: Optional[int] = None) -> List[RetrievalResult]:
        """
        Fetch the passages most similar to the query.

        Args:
            query: Search query text
            top_k: Override of the configured result count

        Returns:
            RetrievalResult list in index order (most similar first)
        """
        top_k = top_k or self._top_k

        query_vector = await self._embedding.embed_single(query)
        matches = await self._store.search(query_vector, top_k)

        results = [self._to_result(m) for m in matches]
        logger.info("Document search returned %d result(s) for %r", len(results), query[:80])
        for i, r in enumerate(results, 1):
            logger.debug("  %d. %s score=%.3f %s", i, r.source, r.score, r.page_label)
        return results

    def _to_result(self, match: VectorMatch) -> RetrievalResult:
        """Convert an index match to a RetrievalResult"""
        metadata: Dict[str, Any] = match.metadata or {}
        filename = metadata.get("filename") or "Unknown"

        page = _as_page(metadata.get("page"))
        start = _as_page(metadata.get("startPage"))
        end = _as_page(metadata.get("endPage"))
        page_range = PageRange(start, end) if start and end else None

        return RetrievalResult(
            content=str(metadata.get("content") or ""),
            score=_clamp_score(match.score),
            source_id=match.id,
            source_kind=SourceKind.PDF,
            source=f"PDF: {filename}",
            page=page,
            page_range=page_range,
            filename=filename,
        )


def _as_page(value) -> Optional[int]:
    """Page numbers arrive as JSON numbers (often floats); anything else is absent."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    page = int(value)
    return page if page > 0 else None


def _clamp_score(score: float) -> float:
    return max(0.0, min(1.0, float(score)))
