"""
Retrieval data model.

One closed result type covers both sources; `source_kind` decides which of
the optional locator fields (page/page_range/filename vs. url/title) apply.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SourceKind(str, Enum):
    """Where a retrieval result came from"""
    PDF = "pdf"
    WEB = "web"


# Fusion priority per source; lower ranks first
SOURCE_PRIORITY = {
    SourceKind.PDF: 1,
    SourceKind.WEB: 2,
}


@dataclass(frozen=True)
class PageRange:
    start: int
    end: int


@dataclass
class RetrievalResult:
    """A single passage or snippet returned by a retriever"""
    content: str
    score: float  # 0.0 to 1.0
    source_id: str
    source_kind: SourceKind
    source: str = ""  # display label, e.g. "PDF: contract.pdf" or "Web: example.com"
    page: Optional[int] = None
    page_range: Optional[PageRange] = None
    filename: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None

    @property
    def priority(self) -> int:
        return SOURCE_PRIORITY[self.source_kind]

    @property
    def is_document(self) -> bool:
        return self.source_kind == SourceKind.PDF

    @property
    def page_label(self) -> str:
        """'Pages A-B' for a multi-page span, 'Page N' for one page, '' for web or unknown."""
        if not self.is_document:
            return ""
        rng = self.page_range
        if rng and rng.start != rng.end:
            return f"Pages {rng.start}-{rng.end}"
        if self.page:
            return f"Page {self.page}"
        if rng:
            return f"Page {rng.start}"
        return ""


@dataclass
class Citation:
    """A ranked, truncated retrieval result attached to an answer"""
    source: str
    content: str
    score: float
    source_kind: SourceKind
    snippet: str
    page_label: str = ""
    page: Optional[int] = None
    page_range: Optional[PageRange] = None
    filename: Optional[str] = None
    url: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """JSON object for the citation sidecar; keys match what browser clients read."""
        data: Dict[str, Any] = {
            "source": self.source,
            "content": self.content,
            "score": self.score,
            "sourceType": self.source_kind.value,
            "contextSnippet": self.snippet,
        }
        if self.source_kind == SourceKind.PDF:
            data["page"] = self.page
            data["startPage"] = self.page_range.start if self.page_range else None
            data["endPage"] = self.page_range.end if self.page_range else None
            data["filename"] = self.filename
            data["pageRange"] = self.page_label
        else:
            data["url"] = self.url
        return data


@dataclass
class RetrievalBundle:
    """Raw per-source results from one orchestrated retrieval"""
    pdf_results: List[RetrievalResult] = field(default_factory=list)
    web_results: List[RetrievalResult] = field(default_factory=list)


@dataclass
class FusedContext:
    """Ranked context string plus the parallel citation list"""
    combined_context: str = ""
    citations: List[Citation] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.citations
