"""
Tests for the Knowledge Gate

The gate must return a boolean verdict for every input and never raise.
"""

import pytest
from unittest.mock import AsyncMock

from copilot.tests.helpers import make_llm


class TestKnowledgeVerdict:
    """Tests for KnowledgeVerdict dataclass"""

    def test_known_result(self):
        from copilot.responder.knowledge_gate import KnowledgeVerdict

        verdict = KnowledgeVerdict(has_knowledge=True, preview="React is a library")
        assert verdict.has_knowledge is True
        assert verdict.raw_response is None


class TestKnowledgeGate:
    """Tests for KnowledgeGate"""

    @pytest.mark.asyncio
    async def test_known_prefix(self):
        from copilot.responder.knowledge_gate import KnowledgeGate

        llm = make_llm("KNOWN: React is a JavaScript library...")
        verdict = await KnowledgeGate(llm).classify("What is React?")

        assert verdict.has_knowledge is True
        assert verdict.preview == "React is a JavaScript library..."

    @pytest.mark.asyncio
    async def test_need_context_prefix(self):
        from copilot.responder.knowledge_gate import KnowledgeGate

        llm = make_llm("NEED_CONTEXT: Personal academic information")
        verdict = await KnowledgeGate(llm).classify("What's my GPA?")

        assert verdict.has_knowledge is False
        assert verdict.preview == "Personal academic information"

    @pytest.mark.parametrize("reply", [
        "",
        " KNOWN: leading space",
        "known: lowercase",
        "I think I KNOWN: this",
        "Sure! KNOWN:",
    ])
    @pytest.mark.asyncio
    async def test_anything_but_exact_prefix_needs_context(self, reply):
        from copilot.responder.knowledge_gate import KnowledgeGate

        verdict = await KnowledgeGate(make_llm(reply)).classify("question")
        assert verdict.has_knowledge is False

    @pytest.mark.asyncio
    async def test_call_failure_needs_context(self, caplog):
        import logging
        from copilot.responder.knowledge_gate import KnowledgeGate

        llm = make_llm(ConnectionError("rate limited"))
        with caplog.at_level(logging.WARNING, logger="copilot.responder.knowledge_gate"):
            verdict = await KnowledgeGate(llm).classify("What is React?")

        assert verdict.has_knowledge is False
        assert verdict.raw_response.startswith("NEED_CONTEXT:")
        assert "Knowledge check failed" in caplog.text

    @pytest.mark.asyncio
    async def test_unavailable_client_needs_context(self):
        from copilot.common.llm_client import LLMUnavailableError
        from copilot.responder.knowledge_gate import KnowledgeGate

        llm = make_llm()
        llm.generate = AsyncMock(side_effect=LLMUnavailableError("LLM client is not available"))
        verdict = await KnowledgeGate(llm).classify("What is React?")
        assert verdict.has_knowledge is False

    @pytest.mark.asyncio
    async def test_none_reply_needs_context(self):
        from copilot.responder.knowledge_gate import KnowledgeGate

        llm = make_llm()
        llm.generate = AsyncMock(return_value=None)
        verdict = await KnowledgeGate(llm).classify("question")
        assert verdict.has_knowledge is False

    @pytest.mark.asyncio
    async def test_non_streaming_low_temperature_call(self):
        from copilot.responder.knowledge_gate import KnowledgeGate

        llm = make_llm("KNOWN: yes")
        await KnowledgeGate(llm, temperature=0.3, max_tokens=200).classify("What is React?")

        args, kwargs = llm.generate.call_args
        assert "What is React?" in args[0]
        assert "KNOWN:" in args[0] and "NEED_CONTEXT:" in args[0]
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 200
        llm.open_stream.assert_not_called()

    @pytest.mark.asyncio
    async def test_from_config(self):
        from copilot.common.config import LLMConfig
        from copilot.responder.knowledge_gate import KnowledgeGate

        llm = make_llm("KNOWN: ok")
        gate = KnowledgeGate.from_config(llm, LLMConfig(gate_temperature=0.1, gate_max_tokens=50))
        await gate.classify("q")
        assert llm.generate.call_args.kwargs["temperature"] == 0.1
        assert llm.generate.call_args.kwargs["max_tokens"] == 50
