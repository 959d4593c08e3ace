"""Tests for LLM reply parsing."""

from copilot.common.llm_utils import parse_llm_json, strip_code_fences


class TestStripCodeFences:
    def test_plain_text_unchanged(self):
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'

    def test_json_fence_removed(self):
        raw = '```json\n{"question": "What is React?"}\n```'
        assert strip_code_fences(raw) == '{"question": "What is React?"}'


class TestParseLLMJson:
    def test_valid_json(self):
        assert parse_llm_json('{"confidence": 0.9}') == {"confidence": 0.9}

    def test_fenced_json(self):
        raw = '```json\n{"question": "Q", "confidence": 0.8}\n```'
        assert parse_llm_json(raw) == {"question": "Q", "confidence": 0.8}

    def test_preamble_text(self):
        raw = 'Here is the result:\n{"question": "Q"}\nHope that helps.'
        assert parse_llm_json(raw) == {"question": "Q"}

    def test_invalid_returns_empty(self):
        assert parse_llm_json("no json here") == {}

    def test_empty_returns_empty(self):
        assert parse_llm_json("") == {}
        assert parse_llm_json(None) == {}

    def test_non_object_returns_empty(self):
        assert parse_llm_json('["a", "b"]') == {}
