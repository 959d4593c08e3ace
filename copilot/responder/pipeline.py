"""
Copilot Pipeline

Per-request flow:

    transcript -> Knowledge Gate
        KNOWN        -> direct answer
        NEED_CONTEXT -> extraction chain -> retrieval -> fusion -> grounded answer

States: IDLE -> GATING -> {DIRECT_ANSWERING | EXTRACTING -> RETRIEVING ->
FUSING -> RAG_ANSWERING} -> STREAMING -> DONE, with ERROR when the answer
stream cannot be started.

All clients are built once and injected; the pipeline holds no
per-request state between calls.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from ..common.config import CopilotConfig
from ..common.embedding_service import EmbeddingService
from ..common.llm_client import LLMClient
from ..common.streams import ClosingStream
from ..common.vector_store import build_vector_store
from ..common.web_search_client import WebSearchClient
from ..retriever.document_retriever import DocumentRetriever
from ..retriever.fusion import ContextFuser, format_context_with_references, format_sources_summary
from ..retriever.orchestrator import RetrievalOrchestrator
from ..retriever.types import FusedContext
from ..retriever.web_retriever import WebRetriever
from .composer import EMPTY_SUMMARY_MESSAGE, AnswerComposer, ServiceUnavailableError
from .extraction_chain import ExtractionChain, ExtractionOutcome
from .framing import CitationsFrame, Frame
from .knowledge_gate import KnowledgeGate
from .prompts import build_direct_prompt, build_rag_prompt, build_summarize_prompt
from .question_extractor import ExtractedQuestion

logger = logging.getLogger("copilot.responder.pipeline")


class AnswerMode(str, Enum):
    """How a completion request is answered"""
    DIRECT_CHECK = "direct-check"  # gate decides
    FORCE_RAG = "force-rag"  # skip the gate, always try retrieval
    SUMMARIZE = "summarize"  # summary of the transcript, no retrieval


class AnswerPath(str, Enum):
    """Prompt actually used for the answer"""
    DIRECT = "direct"
    RAG = "rag"
    SUMMARY = "summary"


class PipelineState(str, Enum):
    IDLE = "idle"
    GATING = "gating"
    DIRECT_ANSWERING = "direct_answering"
    EXTRACTING = "extracting"
    RETRIEVING = "retrieving"
    FUSING = "fusing"
    RAG_ANSWERING = "rag_answering"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"


class RequestTrace:
    """States visited by one request, in order"""

    def __init__(self):
        self.states: List[PipelineState] = [PipelineState.IDLE]

    @property
    def state(self) -> PipelineState:
        return self.states[-1]

    def advance(self, state: PipelineState) -> None:
        logger.debug("Pipeline state: %s -> %s", self.state.value, state.value)
        self.states.append(state)


@dataclass
class RagDiagnostics:
    """Intermediate results of the retrieval half, without an answer"""
    extraction: Optional[ExtractionOutcome] = None
    fused: FusedContext = field(default_factory=FusedContext)
    search_performed: bool = False
    pdf_results_count: int = 0
    web_results_count: int = 0

    @property
    def extracted_question(self) -> Optional[ExtractedQuestion]:
        return self.extraction.as_extracted_question() if self.extraction else None

    @property
    def search_query(self) -> str:
        return self.extraction.question if self.extraction else ""

    def to_dict(self) -> Dict[str, Any]:
        question = self.extracted_question
        formatted_context, references = format_context_with_references(self.fused)
        return {
            "extractedQuestion": {
                "question": question.question,
                "context": question.context,
                "confidence": question.confidence,
            } if question else None,
            "searchQuery": self.search_query,
            "searchPerformed": self.search_performed,
            "pdfResultsCount": self.pdf_results_count,
            "webResultsCount": self.web_results_count,
            "combinedContext": self.fused.combined_context,
            "citations": [c.to_wire() for c in self.fused.citations],
            "sourcesSummary": format_sources_summary(self.fused),
            "formattedContext": formatted_context,
            "sourceReferences": references,
        }


@dataclass
class AnswerStream:
    """A started answer: frames to forward plus how they were produced"""
    frames: AsyncIterator[Frame]
    path: AnswerPath
    trace: RequestTrace
    diagnostics: Optional[RagDiagnostics] = None


class CopilotPipeline:
    """
    Main entry point for answering questions from a live conversation.

    Usage:
        pipeline = CopilotPipeline.from_config(load_config())
        stream = await pipeline.answer("What is React?")
        async for frame in stream.frames:
            ...
    """

    def __init__(
        self,
        gate: KnowledgeGate,
        extraction: ExtractionChain,
        orchestrator: RetrievalOrchestrator,
        fuser: ContextFuser,
        composer: AnswerComposer,
        capabilities: Optional[Dict[str, Any]] = None,
        resources: Optional[List[Any]] = None,
    ):
        """
        Args:
            gate: Knowledge gate
            extraction: Question extraction chain
            orchestrator: Parallel document + web retrieval
            fuser: Context fusion and citation ranking
            composer: Streaming answer composer
            capabilities: Named clients reported by health()
            resources: Objects with an async aclose() released on shutdown
        """
        self._gate = gate
        self._extraction = extraction
        self._orchestrator = orchestrator
        self._fuser = fuser
        self._composer = composer
        self._capabilities = capabilities or {}
        self._resources = resources or []

    @classmethod
    def from_config(cls, config: CopilotConfig) -> "CopilotPipeline":
        """Construct every client once from configuration."""
        llm = LLMClient.from_config(config.llm)
        embedding = EmbeddingService.from_config(config.embedding)
        store = build_vector_store(config.vector_store)
        web_client = WebSearchClient.from_config(config.web_search)

        top_k = config.retrieval.top_k
        orchestrator = RetrievalOrchestrator(
            DocumentRetriever(store, embedding, top_k=top_k),
            WebRetriever(web_client, top_k=top_k),
            background_keywords=config.retrieval.background_keywords,
        )

        logger.info(
            "Pipeline ready: llm=%s(%s) embedding=%s vector_store=%s web_search=%s",
            config.llm.provider, "on" if llm.is_available else "off",
            embedding.mode if embedding.is_available else "off",
            config.vector_store.backend if store.is_available else "off",
            "on" if web_client.is_available else "off",
        )

        return cls(
            gate=KnowledgeGate.from_config(llm, config.llm),
            extraction=ExtractionChain.from_config(llm, config),
            orchestrator=orchestrator,
            fuser=ContextFuser.from_config(config.fusion),
            composer=AnswerComposer.from_config(llm, config.llm),
            capabilities={
                "llm": llm,
                "embedding": embedding,
                "vector_store": store,
                "web_search": web_client,
            },
            resources=[store, web_client],
        )

    @property
    def orchestrator(self) -> RetrievalOrchestrator:
        return self._orchestrator

    def health(self) -> Dict[str, bool]:
        return {
            name: bool(getattr(client, "is_available", False))
            for name, client in self._capabilities.items()
        }

    async def aclose(self) -> None:
        for resource in self._resources:
            try:
                await resource.aclose()
            except Exception as e:
                logger.warning("Failed to close %s: %s", type(resource).__name__, e)

    async def answer(
        self,
        transcript: str,
        background: Optional[str] = None,
        mode: Union[AnswerMode, str] = AnswerMode.DIRECT_CHECK,
    ) -> AnswerStream:
        """
        Decide the answer path and start streaming.

        Args:
            transcript: Recent conversation text
            background: Optional caller context (role, resume, company)
            mode: direct-check, force-rag or summarize

        Returns:
            AnswerStream whose frames are ready to forward

        Raises:
            ServiceUnavailableError: the answer stream could not be started
        """
        mode = AnswerMode(mode)
        trace = RequestTrace()

        if mode == AnswerMode.SUMMARIZE:
            trace.advance(PipelineState.DIRECT_ANSWERING)
            frames = await self._start(
                trace, build_summarize_prompt(transcript), empty_message=EMPTY_SUMMARY_MESSAGE,
            )
            return AnswerStream(frames=frames, path=AnswerPath.SUMMARY, trace=trace)

        if mode == AnswerMode.DIRECT_CHECK:
            trace.advance(PipelineState.GATING)
            verdict = await self._gate.classify(transcript)
            if verdict.has_knowledge:
                logger.info("Responding with model knowledge")
                trace.advance(PipelineState.DIRECT_ANSWERING)
                frames = await self._start(trace, build_direct_prompt(background, transcript))
                return AnswerStream(frames=frames, path=AnswerPath.DIRECT, trace=trace)

        logger.info("Context needed, running retrieval")
        try:
            diagnostics = await self._gather_context(transcript, background, trace)
        except Exception as e:
            logger.error("Retrieval stage failed, falling back to model knowledge: %s", e, exc_info=True)
            diagnostics = None

        if diagnostics is not None and diagnostics.search_performed and not diagnostics.fused.is_empty:
            extraction = diagnostics.extraction
            trace.advance(PipelineState.RAG_ANSWERING)
            sidecar = CitationsFrame(
                citations=diagnostics.fused.citations,
                extracted_question=extraction.question if extraction.is_extracted else None,
            )
            prompt = build_rag_prompt(background, extraction.question, diagnostics.fused.combined_context)
            frames = await self._start(trace, prompt, sidecar=sidecar)
            return AnswerStream(frames=frames, path=AnswerPath.RAG, trace=trace, diagnostics=diagnostics)

        logger.info("No usable context, falling back to model knowledge")
        trace.advance(PipelineState.DIRECT_ANSWERING)
        frames = await self._start(trace, build_direct_prompt(background, transcript))
        return AnswerStream(frames=frames, path=AnswerPath.DIRECT, trace=trace, diagnostics=diagnostics)

    async def diagnose(self, transcript: str, background: Optional[str] = None) -> RagDiagnostics:
        """Run extraction, retrieval and fusion only; no gate and no answer."""
        return await self._gather_context(transcript, background, RequestTrace())

    async def _gather_context(
        self,
        transcript: str,
        background: Optional[str],
        trace: RequestTrace,
    ) -> RagDiagnostics:
        trace.advance(PipelineState.EXTRACTING)
        extraction = await self._extraction.extract_query(transcript)
        if not extraction.should_search:
            return RagDiagnostics(extraction=extraction)

        trace.advance(PipelineState.RETRIEVING)
        bundle = await self._orchestrator.retrieve(extraction.question, background)

        trace.advance(PipelineState.FUSING)
        fused = self._fuser.fuse(bundle.pdf_results, bundle.web_results)

        return RagDiagnostics(
            extraction=extraction,
            fused=fused,
            search_performed=True,
            pdf_results_count=len(bundle.pdf_results),
            web_results_count=len(bundle.web_results),
        )

    async def _start(
        self,
        trace: RequestTrace,
        prompt: str,
        sidecar: Optional[CitationsFrame] = None,
        **kwargs,
    ) -> AsyncIterator[Frame]:
        try:
            frames = await self._composer.compose(prompt, sidecar=sidecar, **kwargs)
        except ServiceUnavailableError:
            trace.advance(PipelineState.ERROR)
            raise
        trace.advance(PipelineState.STREAMING)
        return ClosingStream(_until_done(frames, trace), frames)


async def _until_done(frames: AsyncIterator[Frame], trace: RequestTrace) -> AsyncIterator[Frame]:
    async for frame in frames:
        yield frame
    trace.advance(PipelineState.DONE)
