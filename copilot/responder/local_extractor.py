"""
Local Question Extractor

Regex fallback used when the remote extractor finds nothing. Runs an ordered
list of weighted patterns over the transcript and keeps the highest-weight
non-trivial match. No network access.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from .question_extractor import ExtractedQuestion

logger = logging.getLogger("copilot.responder.local_extractor")

# Captures shorter than this are ignored
MIN_CAPTURE_LENGTH = 5

TRIVIAL_CAPTURES = frozenset({"it", "that", "this", "yes", "no", "ok", "okay"})

# Characters of transcript kept on each side of the match
CONTEXT_WINDOW = 50

_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_SEPARATORS_RE = re.compile(r"[,;]+$")


@dataclass(frozen=True)
class QuestionPattern:
    """A regex whose first group captures the question, with a fixed weight"""
    regex: Pattern
    confidence: float
    label: str = ""


def _pattern(expr: str, confidence: float, label: str) -> QuestionPattern:
    return QuestionPattern(re.compile(expr, re.IGNORECASE), confidence, label)


# Ordered; the first pattern wins a tie on confidence
QUESTION_PATTERNS: List[QuestionPattern] = [
    # Direct questions
    _pattern(r"(?:interviewer|they|he|she)\s+(?:asked|asks|asking)\s+(?:me\s+)?(?:about\s+)?([^.?!]+(?:\?|\.|!)?)", 0.9, "reported_question"),
    _pattern(r"(?:the\s+)?question\s+(?:was|is)\s+(?:about\s+)?([^.?!]+(?:\?|\.|!)?)", 0.8, "question_statement"),
    _pattern(r"(?:they|he|she)\s+wanted\s+to\s+know\s+(?:about\s+)?([^.?!]+(?:\?|\.|!)?)", 0.8, "wanted_to_know"),
    # Indirect questions
    _pattern(r"(?:asked|asking)\s+(?:me\s+)?(?:to\s+)?(?:explain|describe|tell|discuss)\s+([^.?!]+)", 0.7, "asked_to_explain"),
    _pattern(r"(?:can\s+you|could\s+you|would\s+you)\s+(?:explain|tell|describe|help)\s+(?:me\s+)?(?:with\s+)?([^.?!]+)", 0.7, "polite_request"),
    # Question words
    _pattern(r"(?:what|how|why|when|where|which|who)\s+(?:is|are|do|does|did|was|were|will|would|could|should)\s+([^.?!]+)", 0.6, "wh_auxiliary"),
    _pattern(r"(?:what|how|why|when|where|which|who)\s+([^.?!]+)", 0.5, "wh_word"),
    # General inquiry
    _pattern(r"(?:tell\s+me|explain|describe)\s+(?:about\s+)?([^.?!]+)", 0.5, "imperative"),
    _pattern(r"(?:I\s+need\s+to\s+know|I\s+want\s+to\s+know|I\s+should\s+know)\s+(?:about\s+)?([^.?!]+)", 0.6, "need_to_know"),
]


class LocalQuestionExtractor:
    """Pattern-based question extraction."""

    def __init__(
        self,
        threshold: float = 0.5,
        patterns: Optional[List[QuestionPattern]] = None,
    ):
        self._threshold = threshold
        self._patterns = patterns if patterns is not None else QUESTION_PATTERNS

    @property
    def threshold(self) -> float:
        return self._threshold

    def find_best_match(self, transcript: str) -> Optional[ExtractedQuestion]:
        """Highest-confidence non-trivial match, before the threshold is applied."""
        best: Optional[ExtractedQuestion] = None

        for qp in self._patterns:
            match = qp.regex.search(transcript)
            if not match or not match.group(1):
                continue

            captured = match.group(1).strip()
            if len(captured) < MIN_CAPTURE_LENGTH or captured.lower() in TRIVIAL_CAPTURES:
                continue

            if best is None or qp.confidence > best.confidence:
                best = ExtractedQuestion(
                    question=_clean_question(captured),
                    context=transcript[max(0, match.start() - CONTEXT_WINDOW):match.end() + CONTEXT_WINDOW],
                    confidence=qp.confidence,
                )

        return best

    def extract(self, transcript: str) -> Optional[ExtractedQuestion]:
        """
        Extract a question from the transcript.

        Returns:
            ExtractedQuestion with confidence >= threshold, or None
        """
        best = self.find_best_match(transcript)
        if best is None or best.confidence < self._threshold:
            logger.info("Local question extraction found nothing usable")
            return None

        logger.info("Local question extraction (%.2f): %s", best.confidence, best.question)
        return best


def _clean_question(text: str) -> str:
    cleaned = _WHITESPACE_RE.sub(" ", text)
    cleaned = _TRAILING_SEPARATORS_RE.sub("", cleaned).strip()
    return cleaned[:1].upper() + cleaned[1:]
