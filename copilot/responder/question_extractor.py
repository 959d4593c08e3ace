"""
LLM-based Question Extractor

Asks the language model for the single most relevant unanswered question in
a transcript, returned as strict JSON with a confidence score.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from ..common.llm_client import LLMClient
from ..common.llm_utils import parse_llm_json
from .prompts import build_extraction_prompt

logger = logging.getLogger("copilot.responder.question_extractor")


@dataclass
class ExtractedQuestion:
    """A question found in a transcript"""
    question: str
    context: str = ""  # surrounding excerpt
    confidence: float = 0.0  # 0.0 to 1.0


class QuestionExtractor:
    """Remote question extraction. Returns None instead of raising."""

    def __init__(
        self,
        llm_client: LLMClient,
        threshold: float = 0.4,
        temperature: float = 0.2,
        max_tokens: int = 300,
    ):
        self._llm = llm_client
        self._threshold = threshold
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def threshold(self) -> float:
        return self._threshold

    async def extract(self, transcript: str) -> Optional[ExtractedQuestion]:
        """
        Extract the primary question from a transcript.

        Args:
            transcript: Raw conversation text

        Returns:
            ExtractedQuestion with confidence >= threshold, or None when the
            call fails, the reply is not valid JSON, or confidence is too low
        """
        if not self._llm.is_available:
            logger.info("LLM unavailable, skipping remote question extraction")
            return None

        try:
            raw = await self._llm.generate(
                build_extraction_prompt(transcript),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            logger.warning("Question extraction failed: %s", e)
            return None

        data = parse_llm_json(raw)
        if not data:
            logger.warning("Question extraction reply was not valid JSON: %r", (raw or "")[:120])
            return None

        question = str(data.get("question") or "").strip()
        confidence = _as_confidence(data.get("confidence"))

        if not question or confidence < self._threshold:
            logger.info("Low confidence question extraction (%.2f), using fallback", confidence)
            return None

        logger.info("Question extracted (%.2f): %s", confidence, question)
        return ExtractedQuestion(
            question=question,
            context=str(data.get("context") or ""),
            confidence=confidence,
        )


def _as_confidence(value) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(confidence):
        return 0.0
    return max(0.0, min(1.0, confidence))
