"""
Context Fusion & Citation Ranker

Merges document and web results into one bounded, deterministically ordered
context string plus the parallel citation list shown to the user.

Ordering:
1. Source priority (documents before web, regardless of score)
2. Score, descending, within a priority tier
3. Input order for exact ties (Python's sort is stable)
"""

import logging
from typing import List, Sequence, Tuple

from .types import Citation, FusedContext, RetrievalResult, SourceKind

logger = logging.getLogger("copilot.retriever.fusion")

SOURCE_TAGS = {
    SourceKind.PDF: "[PDF]",
    SourceKind.WEB: "[WEB]",
}

ELLIPSIS = "..."


def rank_results(
    pdf_results: Sequence[RetrievalResult],
    web_results: Sequence[RetrievalResult],
) -> List[RetrievalResult]:
    """Union both lists and sort by (priority asc, score desc), stable."""
    combined = list(pdf_results) + list(web_results)
    return sorted(combined, key=_rank_key)


def _rank_key(result: RetrievalResult) -> Tuple[int, float]:
    return (result.priority, -result.score)


class ContextFuser:
    """Builds a FusedContext from per-source retrieval results."""

    def __init__(
        self,
        max_citations: int = 4,
        context_chars: int = 500,
        snippet_chars: int = 150,
    ):
        self._max_citations = max_citations
        self._context_chars = context_chars
        self._snippet_chars = snippet_chars

    @classmethod
    def from_config(cls, fusion_config) -> "ContextFuser":
        return cls(
            max_citations=fusion_config.max_citations,
            context_chars=fusion_config.context_chars,
            snippet_chars=fusion_config.snippet_chars,
        )

    def fuse(
        self,
        pdf_results: Sequence[RetrievalResult],
        web_results: Sequence[RetrievalResult],
    ) -> FusedContext:
        top = rank_results(pdf_results, web_results)[:self._max_citations]

        parts: List[str] = []
        citations: List[Citation] = []
        for result in top:
            content = result.content[:self._context_chars]
            parts.append(self.render_entry(result, content))
            citations.append(self._to_citation(result, content))

        fused = FusedContext(combined_context="\n\n".join(parts), citations=citations)
        logger.info(
            "Fused %d of %d result(s) into %d chars of context",
            len(citations), len(pdf_results) + len(web_results), len(fused.combined_context),
        )
        return fused

    @staticmethod
    def render_entry(result: RetrievalResult, content: str) -> str:
        """'[PDF] (Page 3) text', '[PDF] text' without a locator, or '[WEB] text'."""
        tag = SOURCE_TAGS[result.source_kind]
        label = result.page_label
        if label:
            return f"{tag} ({label}) {content}"
        return f"{tag} {content}"

    def _to_citation(self, result: RetrievalResult, content: str) -> Citation:
        snippet = content[:self._snippet_chars]
        if len(content) > self._snippet_chars:
            snippet += ELLIPSIS

        return Citation(
            source=result.source,
            content=content,
            score=result.score,
            source_kind=result.source_kind,
            snippet=snippet,
            page_label=result.page_label,
            page=result.page if result.is_document else None,
            page_range=result.page_range if result.is_document else None,
            filename=result.filename if result.is_document else None,
            url=result.url if not result.is_document else None,
        )


def fuse(
    pdf_results: Sequence[RetrievalResult],
    web_results: Sequence[RetrievalResult],
) -> FusedContext:
    """Fuse with the default limits."""
    return ContextFuser().fuse(pdf_results, web_results)


def format_sources_summary(fused: FusedContext) -> str:
    """Numbered, human-readable list of the cited sources."""
    if not fused.citations:
        return "No sources found for this query."

    lines = ["Sources Found:", ""]
    for i, c in enumerate(fused.citations, 1):
        lines.append(f"Source {i} (Relevance: {c.score * 100:.1f}%)")
        if c.source_kind == SourceKind.PDF:
            lines.append(f"  Document: {c.filename or c.source}")
            if c.page_label:
                lines.append(f"  Location: {c.page_label}")
            lines.append(f'  Context: "{c.snippet}"')
        else:
            lines.append(f"  Website: {c.source}")
            if c.url:
                lines.append(f"  Link: {c.url}")
            lines.append(f'  Snippet: "{c.snippet}"')
        lines.append("")

    return "\n".join(lines).rstrip()


def format_context_with_references(fused: FusedContext) -> Tuple[str, str]:
    """
    Context with [n] markers and a matching reference block.

    Returns:
        (formatted_context, source_references)
    """
    if not fused.citations:
        return fused.combined_context, "No sources available."

    context_parts = []
    references = ["Source References:", ""]
    for i, c in enumerate(fused.citations, 1):
        context_parts.append(f"[{i}] {c.content}")
        relevance = f"(Relevance: {c.score * 100:.1f}%)"
        if c.source_kind == SourceKind.PDF:
            location = f" - {c.page_label}" if c.page_label else ""
            references.append(f"[{i}] {c.filename or c.source}{location} {relevance}")
        else:
            link = f" - {c.url}" if c.url else ""
            references.append(f"[{i}] {c.source}{link} {relevance}")

    return "\n\n".join(context_parts), "\n".join(references)
