"""
Retriever - Grounding Evidence for Answers

Fetches passages from uploaded documents and snippets from the web, then
fuses them into a ranked, bounded context with citations.

Key Components:
- DocumentRetriever: embed + vector index search over uploaded documents
- WebRetriever: web search snippets
- RetrievalOrchestrator: runs both concurrently with per-source failure isolation
- ContextFuser: priority/score ranking, truncation, citation rendering

Pipeline:
1. Build the web query (question + background keywords)
2. Search documents and web in parallel
3. Rank: documents first, then score, then input order
4. Keep the top results and render context + citations
"""

from .document_retriever import DocumentRetriever
from .fusion import ContextFuser, format_context_with_references, format_sources_summary, fuse
from .orchestrator import RetrievalOrchestrator
from .types import Citation, FusedContext, PageRange, RetrievalBundle, RetrievalResult, SourceKind
from .web_retriever import WebRetriever

__all__ = [
    "DocumentRetriever",
    "WebRetriever",
    "RetrievalOrchestrator",
    "ContextFuser",
    "fuse",
    "format_sources_summary",
    "format_context_with_references",
    "Citation",
    "FusedContext",
    "PageRange",
    "RetrievalBundle",
    "RetrievalResult",
    "SourceKind",
]
