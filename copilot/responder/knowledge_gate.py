"""
Knowledge Gate: direct answer vs. retrieval judgment.

Before any retrieval, a low-temperature non-streaming LLM call decides
whether the model can answer the conversation from its own training
(KNOWN) or needs grounding from documents and the web (NEED_CONTEXT).

Token budget: ~200 tokens per call (instructions + transcript + reply).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..common.llm_client import LLMClient
from .prompts import build_knowledge_check_prompt

logger = logging.getLogger("copilot.responder.knowledge_gate")

KNOWN_PREFIX = "KNOWN:"
NEED_CONTEXT_PREFIX = "NEED_CONTEXT:"

# Substituted reply when the gate call fails
FAILSAFE_REPLY = f"{NEED_CONTEXT_PREFIX} Unable to determine"


@dataclass
class KnowledgeVerdict:
    """Result of the knowledge gate."""
    has_knowledge: bool
    preview: str
    raw_response: Optional[str] = None


class KnowledgeGate:
    """
    LLM-based classifier for the answer path.

    Decision rule: the reply must begin with the literal "KNOWN:". Any other
    prefix, an empty reply, or a failed call means NEED_CONTEXT, so a doubtful
    case always goes to retrieval.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        temperature: float = 0.3,
        max_tokens: int = 200,
    ):
        self._llm = llm_client
        self._temperature = temperature
        self._max_tokens = max_tokens

    @classmethod
    def from_config(cls, llm_client: LLMClient, llm_config) -> "KnowledgeGate":
        return cls(
            llm_client,
            temperature=llm_config.gate_temperature,
            max_tokens=llm_config.gate_max_tokens,
        )

    async def classify(self, transcript: str) -> KnowledgeVerdict:
        """
        Classify whether the model can answer without external context.

        Args:
            transcript: Raw conversation text

        Returns:
            KnowledgeVerdict; never raises
        """
        try:
            raw = await self._llm.generate(
                build_knowledge_check_prompt(transcript),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            logger.warning("Knowledge check failed, assuming context is needed: %s", e)
            raw = FAILSAFE_REPLY

        return self._parse_response(raw or "")

    @staticmethod
    def _parse_response(raw: str) -> KnowledgeVerdict:
        has_knowledge = raw.startswith(KNOWN_PREFIX)
        if has_knowledge:
            preview = raw[len(KNOWN_PREFIX):].strip()
        elif raw.startswith(NEED_CONTEXT_PREFIX):
            preview = raw[len(NEED_CONTEXT_PREFIX):].strip()
        else:
            preview = raw.strip()

        logger.info("Knowledge check: %s", "HAS_KNOWLEDGE" if has_knowledge else "NEEDS_CONTEXT")
        logger.debug("Knowledge check preview: %s", preview[:100])
        return KnowledgeVerdict(has_knowledge=has_knowledge, preview=preview, raw_response=raw)
