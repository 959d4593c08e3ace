"""
Tests for the HTTP transport and the command-line entry point.
"""

import io
import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from copilot.tests.helpers import build_pipeline, extractor_reply, pdf_result, web_result

CONTRACT_QUESTION = "What's in the uploaded contract about termination?"


def make_client(pipeline=None) -> TestClient:
    from copilot.common.config import CopilotConfig
    from copilot.responder.server import create_app

    return TestClient(create_app(config=CopilotConfig(), pipeline=pipeline))


class TestHealth:
    """Tests for GET /health"""

    def test_reports_capabilities(self):
        pipeline, _, _, _ = build_pipeline()
        pipeline._capabilities = {"llm": pipeline._gate._llm}
        data = make_client(pipeline).get("/health").json()

        assert data["status"] == "healthy"
        assert data["initialized"] is True
        assert data["capabilities"] == {"llm": True}

    def test_uninitialized(self):
        data = make_client().get("/health").json()
        assert data["initialized"] is False
        assert data["capabilities"] == {}


class TestCompletion:
    """Tests for POST /completion"""

    def test_direct_answer_streams_plain_text(self):
        pipeline, _, _, _ = build_pipeline(gate_reply="KNOWN: React is...", stream_chunks=["React ", "is a library."])
        response = make_client(pipeline).post("/completion", json={"transcript": "What is React?"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "React is a library."

    def test_rag_answer_has_sources_sidecar(self):
        from copilot.responder.framing import split_wire_text

        pipeline, _, _, _ = build_pipeline(
            extraction_reply=extractor_reply(CONTRACT_QUESTION),
            pdf=[pdf_result(page=3)], web=[web_result()],
            stream_chunks=["30 days notice."],
        )
        response = make_client(pipeline).post("/completion", json={"transcript": CONTRACT_QUESTION})

        assert "---SOURCES---" in response.text
        text, sidecar = split_wire_text(response.text)
        assert text == "30 days notice."
        assert sidecar["type"] == "citations"
        assert sidecar["extractedQuestion"] == CONTRACT_QUESTION
        assert [c["sourceType"] for c in sidecar["citations"]] == ["pdf", "web"]

    def test_mode_is_honored(self):
        pipeline, llm, _, _ = build_pipeline(stream_chunks=["Summary."])
        response = make_client(pipeline).post(
            "/completion", json={"transcript": "long text", "mode": "summarize"},
        )
        assert response.text == "Summary."
        llm.generate.assert_not_called()

    def test_mid_stream_error_marker(self):
        pipeline, _, _, _ = build_pipeline(
            gate_reply="KNOWN: yes", stream_chunks=["Partial a"], stream_error=RuntimeError("reset"),
        )
        response = make_client(pipeline).post("/completion", json={"transcript": "What is React?"})
        assert response.status_code == 200
        assert response.text == "Partial aError: reset"

    def test_provider_stream_released_after_response(self):
        pipeline, llm, _, _ = build_pipeline(gate_reply="KNOWN: yes", stream_chunks=["Done."])
        response = make_client(pipeline).post("/completion", json={"transcript": "What is React?"})

        assert response.text == "Done."
        assert len(llm.streams) == 1
        assert llm.streams[0].closed

    @pytest.mark.parametrize("transcript", ["", "   "])
    def test_blank_transcript(self, transcript):
        pipeline, llm, _, _ = build_pipeline()
        response = make_client(pipeline).post("/completion", json={"transcript": transcript})
        assert response.status_code == 400
        assert response.json() == {"error": "Transcript required"}
        llm.generate.assert_not_called()

    def test_missing_transcript(self):
        pipeline, _, _, _ = build_pipeline()
        response = make_client(pipeline).post("/completion", json={})
        assert response.status_code == 422

    def test_unknown_mode(self):
        pipeline, _, _, _ = build_pipeline()
        response = make_client(pipeline).post("/completion", json={"transcript": "q", "mode": "translate"})
        assert response.status_code == 422

    def test_service_unavailable(self):
        pipeline, _, _, _ = build_pipeline(gate_reply="KNOWN: yes", open_error=ConnectionError("down"))
        response = make_client(pipeline).post("/completion", json={"transcript": "What is React?"})
        assert response.status_code == 503
        assert "currently unavailable" in response.json()["error"]

    def test_pipeline_not_ready(self):
        response = make_client().post("/completion", json={"transcript": "What is React?"})
        assert response.status_code == 503


class TestDebugEndpoints:
    """Tests for the /debug diagnostics routes"""

    def test_debug_rag(self):
        pipeline, llm, _, _ = build_pipeline(
            extraction_reply=extractor_reply(CONTRACT_QUESTION), pdf=[pdf_result()], web=[web_result()],
        )
        response = make_client(pipeline).post("/debug/rag", json={"transcript": CONTRACT_QUESTION})

        data = response.json()
        assert response.status_code == 200
        assert data["extractedQuestion"]["question"] == CONTRACT_QUESTION
        assert data["searchPerformed"] is True
        assert data["pdfResultsCount"] == 1
        assert data["webResultsCount"] == 1
        assert len(data["citations"]) == 2
        assert data["sourcesSummary"].startswith("Sources Found:")
        assert data["formattedContext"].startswith("[1] ")
        assert data["sourceReferences"].startswith("Source References:")
        assert "[1] contract.pdf - Page 3" in data["sourceReferences"]
        llm.open_stream.assert_not_called()

    def test_debug_rag_blank(self):
        pipeline, _, _, _ = build_pipeline()
        response = make_client(pipeline).post("/debug/rag", json={"transcript": " "})
        assert response.status_code == 400

    def test_debug_rag_failure(self):
        pipeline, _, _, _ = build_pipeline()
        pipeline._extraction.extract_query = AsyncMock(side_effect=RuntimeError("extraction exploded"))
        response = make_client(pipeline).post("/debug/rag", json={"transcript": CONTRACT_QUESTION})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "extraction exploded"}

    def test_pdf_search(self):
        pipeline, _, documents, _ = build_pipeline(pdf=[pdf_result(content="z" * 300)])
        data = make_client(pipeline).get("/debug/pdf-search", params={"query": "termination"}).json()

        documents.retrieve.assert_awaited_once_with("termination")
        assert data["success"] is True
        assert data["query"] == "termination"
        assert data["resultsCount"] == 1
        result = data["results"][0]
        assert result["content"] == "z" * 200 + "..."
        assert result["filename"] == "contract.pdf"
        assert result["page"] == 3

    def test_pdf_search_default_query(self):
        pipeline, _, documents, _ = build_pipeline()
        data = make_client(pipeline).get("/debug/pdf-search").json()
        assert data["query"] == "test"
        documents.retrieve.assert_awaited_once_with("test")

    def test_web_search(self):
        pipeline, _, _, web = build_pipeline(web=[web_result()])
        data = make_client(pipeline).get("/debug/web-search", params={"query": "notice period"}).json()

        web.retrieve.assert_awaited_once_with("notice period")
        assert data["results"][0]["url"] == "https://example.com/termination"
        assert data["results"][0]["source"] == "Web: example.com"

    def test_web_search_failure(self):
        pipeline, _, _, web = build_pipeline()
        web.retrieve.side_effect = RuntimeError("Web search API key not configured")
        response = make_client(pipeline).get("/debug/web-search")

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestCli:
    """Tests for the copilot-ask command"""

    @pytest.mark.asyncio
    async def test_prints_answer_and_sources(self):
        from copilot.responder.cli import ask

        pipeline, _, _, _ = build_pipeline(
            extraction_reply=extractor_reply(CONTRACT_QUESTION),
            pdf=[pdf_result(page=3)], stream_chunks=["30 days ", "notice."],
        )
        out = io.StringIO()

        code = await ask(pipeline, CONTRACT_QUESTION, None, "direct-check", out=out)

        printed = out.getvalue()
        assert code == 0
        assert printed.startswith("30 days notice.\n")
        assert f"Question: {CONTRACT_QUESTION}" in printed
        assert "Sources Found:" in printed
        assert "Document: contract.pdf" in printed

    @pytest.mark.asyncio
    async def test_direct_answer_has_no_sources(self):
        from copilot.responder.cli import ask

        pipeline, _, _, _ = build_pipeline(gate_reply="KNOWN: yes", stream_chunks=["React."])
        out = io.StringIO()
        await ask(pipeline, "What is React?", None, "direct-check", out=out)
        assert out.getvalue() == "React.\n"

    @pytest.mark.asyncio
    async def test_unavailable_exit_code(self, capsys):
        from copilot.responder.cli import ask

        pipeline, _, _, _ = build_pipeline(gate_reply="KNOWN: yes", open_error=ConnectionError("down"))
        code = await ask(pipeline, "What is React?", None, "direct-check", out=io.StringIO())
        assert code == 2
        assert "currently unavailable" in capsys.readouterr().err
