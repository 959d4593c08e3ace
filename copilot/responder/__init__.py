"""
Responder - Decides How to Answer and Streams the Answer

Key Components:
- KnowledgeGate: can the model answer from its own training?
- ExtractionChain: remote LLM -> local regex -> generated keyword query
- AnswerComposer: streamed completion as typed frames
- CopilotPipeline: per-request state machine tying retrieval and answering together
- server: FastAPI transport (text stream + ---SOURCES--- sidecar)
"""

from .composer import AnswerComposer, ServiceUnavailableError
from .extraction_chain import ExtractionChain, ExtractionOutcome, first_accepted
from .framing import SOURCES_DELIMITER, CitationsFrame, TextFrame, encode_frames
from .knowledge_gate import KnowledgeGate, KnowledgeVerdict
from .local_extractor import LocalQuestionExtractor
from .pipeline import AnswerMode, AnswerPath, CopilotPipeline, PipelineState, RagDiagnostics
from .question_extractor import ExtractedQuestion, QuestionExtractor

__all__ = [
    "AnswerComposer",
    "ServiceUnavailableError",
    "ExtractionChain",
    "ExtractionOutcome",
    "first_accepted",
    "SOURCES_DELIMITER",
    "CitationsFrame",
    "TextFrame",
    "encode_frames",
    "KnowledgeGate",
    "KnowledgeVerdict",
    "LocalQuestionExtractor",
    "AnswerMode",
    "AnswerPath",
    "CopilotPipeline",
    "PipelineState",
    "RagDiagnostics",
    "ExtractedQuestion",
    "QuestionExtractor",
]
