"""Test helpers: fake LLM streams and retrieval result builders."""

import json
from typing import List, Optional
from unittest.mock import AsyncMock, Mock

from copilot.responder.composer import AnswerComposer
from copilot.responder.extraction_chain import ExtractionChain
from copilot.responder.knowledge_gate import KnowledgeGate
from copilot.responder.local_extractor import LocalQuestionExtractor
from copilot.responder.pipeline import CopilotPipeline
from copilot.responder.question_extractor import QuestionExtractor
from copilot.retriever.fusion import ContextFuser
from copilot.retriever.orchestrator import RetrievalOrchestrator
from copilot.retriever.types import PageRange, RetrievalResult, SourceKind


class FakeStream:
    """Async iterator of text deltas that records whether it was closed."""

    def __init__(self, chunks: List[str], error: Optional[Exception] = None):
        self._chunks = list(chunks)
        self._error = error
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._chunks:
            return self._chunks.pop(0)
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        raise StopAsyncIteration

    async def aclose(self):
        self.closed = True


def make_llm(generate_reply="", stream_chunks=None, stream_error=None, open_error=None):
    """Mock LLMClient with async generate/open_stream."""
    llm = Mock()
    llm.is_available = True
    if isinstance(generate_reply, Exception):
        llm.generate = AsyncMock(side_effect=generate_reply)
    else:
        llm.generate = AsyncMock(return_value=generate_reply)

    llm.streams = []

    async def _open_stream(prompt, **kwargs):
        if open_error is not None:
            raise open_error
        stream = FakeStream(stream_chunks or [], error=stream_error)
        llm.streams.append(stream)
        return stream

    llm.open_stream = AsyncMock(side_effect=_open_stream)
    return llm


def pdf_result(content="Termination requires 30 days written notice.", score=0.9, page=3,
               start=None, end=None, filename="contract.pdf", source_id="doc-1") -> RetrievalResult:
    return RetrievalResult(
        content=content,
        score=score,
        source_id=source_id,
        source_kind=SourceKind.PDF,
        source=f"PDF: {filename}",
        page=page,
        page_range=PageRange(start, end) if start and end else None,
        filename=filename,
    )


def web_result(content="Contract termination clauses typically specify notice periods.",
               score=0.7, url="https://example.com/termination", source_id=None) -> RetrievalResult:
    return RetrievalResult(
        content=content,
        score=score,
        source_id=source_id or url,
        source_kind=SourceKind.WEB,
        source="Web: example.com",
        url=url,
        title="Termination clauses",
    )


async def collect(frames) -> list:
    return [f async for f in frames]


def extractor_reply(question, confidence=0.9):
    return json.dumps({"question": question, "context": "", "confidence": confidence})


def build_pipeline(
    gate_reply="NEED_CONTEXT: documents",
    extraction_reply=None,
    pdf=None,
    web=None,
    stream_chunks=("Answer text",),
    stream_error=None,
    open_error=None,
):
    """Real pipeline stages over a mock LLM and mock retrievers.

    Returns (pipeline, llm, document_retriever, web_retriever).
    """
    llm = make_llm(stream_chunks=list(stream_chunks), stream_error=stream_error, open_error=open_error)

    async def generate(prompt, **kwargs):
        if "KNOWN:" in prompt and "NEED_CONTEXT:" in prompt:
            return gate_reply
        return extraction_reply if extraction_reply is not None else extractor_reply("", 0)

    llm.generate = AsyncMock(side_effect=generate)

    documents = Mock()
    documents.retrieve = AsyncMock(return_value=list(pdf or []))
    web_retriever = Mock()
    web_retriever.retrieve = AsyncMock(return_value=list(web or []))

    pipeline = CopilotPipeline(
        gate=KnowledgeGate(llm),
        extraction=ExtractionChain(QuestionExtractor(llm), LocalQuestionExtractor()),
        orchestrator=RetrievalOrchestrator(documents, web_retriever),
        fuser=ContextFuser(),
        composer=AnswerComposer(llm),
    )
    return pipeline, llm, documents, web_retriever

