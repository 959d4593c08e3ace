"""
Question Extraction Chain

Ordered strategies evaluated until one accepts:

1. Remote: LLM JSON extraction (confidence >= 0.4)
2. Local: weighted regex patterns (confidence >= 0.5)
3. Generated query: bag of keywords from the transcript

Each strategy maps a transcript to an ExtractedQuestion or None and can be
tested on its own. A derived query shorter than the minimum length means
retrieval is skipped.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from ..common.keywords import generate_search_query
from .local_extractor import LocalQuestionExtractor
from .question_extractor import ExtractedQuestion, QuestionExtractor

logger = logging.getLogger("copilot.responder.extraction_chain")

StrategyResult = Union[Optional[ExtractedQuestion], Awaitable[Optional[ExtractedQuestion]]]
Strategy = Callable[[str], StrategyResult]

GENERATED = "generated"


@dataclass
class ExtractionOutcome:
    """What to search for, and whether it came from a real question"""
    question: str  # extracted question, or the generated keyword query
    confidence: float = 0.0
    is_extracted: bool = False
    context: str = ""
    strategy: str = GENERATED
    min_query_length: int = 10

    @property
    def should_search(self) -> bool:
        return len(self.question) >= self.min_query_length

    def as_extracted_question(self) -> Optional[ExtractedQuestion]:
        if not self.is_extracted:
            return None
        return ExtractedQuestion(question=self.question, context=self.context, confidence=self.confidence)


async def first_accepted(
    strategies: Sequence[Tuple[str, Strategy]],
    transcript: str,
) -> Tuple[Optional[str], Optional[ExtractedQuestion]]:
    """
    Run strategies in order and stop at the first non-empty result.

    A strategy that raises counts as no result.

    Returns:
        (strategy name, ExtractedQuestion) or (None, None)
    """
    for name, strategy in strategies:
        try:
            result = strategy(transcript)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning("Extraction strategy '%s' failed: %s", name, e)
            continue

        if result is not None and result.question:
            return name, result
        logger.debug("Extraction strategy '%s' found nothing", name)

    return None, None


class ExtractionChain:
    """Remote -> local -> generated query."""

    def __init__(
        self,
        remote: Optional[QuestionExtractor] = None,
        local: Optional[LocalQuestionExtractor] = None,
        min_query_length: int = 10,
        generated_query_terms: int = 5,
        min_keyword_length: int = 3,
    ):
        self._strategies: List[Tuple[str, Strategy]] = []
        if remote is not None:
            self._strategies.append(("remote", remote.extract))
        if local is not None:
            self._strategies.append(("local", local.extract))
        self._min_query_length = min_query_length
        self._generated_query_terms = generated_query_terms
        self._min_keyword_length = min_keyword_length

    @classmethod
    def from_config(cls, llm_client, config) -> "ExtractionChain":
        ext = config.extraction
        return cls(
            remote=QuestionExtractor(
                llm_client,
                threshold=ext.remote_threshold,
                temperature=config.llm.extractor_temperature,
                max_tokens=config.llm.extractor_max_tokens,
            ),
            local=LocalQuestionExtractor(threshold=ext.local_threshold),
            min_query_length=ext.min_query_length,
            generated_query_terms=ext.generated_query_terms,
            min_keyword_length=ext.min_keyword_length,
        )

    @property
    def strategy_names(self) -> List[str]:
        return [name for name, _ in self._strategies]

    async def extract_query(self, transcript: str) -> ExtractionOutcome:
        """
        Derive the search query for a transcript.

        Returns:
            ExtractionOutcome; check `should_search` before retrieving
        """
        name, found = await first_accepted(self._strategies, transcript)
        if found is not None:
            return ExtractionOutcome(
                question=found.question,
                confidence=found.confidence,
                is_extracted=True,
                context=found.context,
                strategy=name,
                min_query_length=self._min_query_length,
            )

        query = generate_search_query(
            transcript,
            max_terms=self._generated_query_terms,
            min_length=self._min_keyword_length,
        )
        outcome = ExtractionOutcome(question=query, min_query_length=self._min_query_length)
        if outcome.should_search:
            logger.info("Using generated search query: %s", query)
        else:
            logger.info("No meaningful search query found (%r)", query)
        return outcome
