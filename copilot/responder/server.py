"""
Copilot Server

FastAPI transport for the answer pipeline.

Endpoints:
- POST /completion: streamed answer, optional ---SOURCES--- citation sidecar
- POST /debug/rag: extraction, retrieval and fusion results as JSON
- GET /debug/pdf-search: document retriever only
- GET /debug/web-search: web retriever only
- GET /health: configured capabilities

Components are built once in the lifespan and kept on app.state.
"""

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from .. import __version__
from ..common.config import CopilotConfig, load_config
from ..common.logging_config import setup_logging
from ..retriever.types import RetrievalResult
from .composer import ServiceUnavailableError
from .framing import encode_frames
from .pipeline import AnswerMode, CopilotPipeline

logger = logging.getLogger("copilot.responder.server")

# Debug endpoints show this much of each result
DEBUG_PREVIEW_CHARS = 200


# =============================================================================
# Request Models
# =============================================================================

class CompletionRequest(BaseModel):
    transcript: str
    background: Optional[str] = None
    mode: AnswerMode = AnswerMode.DIRECT_CHECK


class DiagnosticRequest(BaseModel):
    transcript: str
    background: Optional[str] = None


# =============================================================================
# App Factory
# =============================================================================

def create_app(
    config: Optional[CopilotConfig] = None,
    pipeline: Optional[CopilotPipeline] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        config: Loaded configuration; read from disk/env when omitted
        pipeline: Prebuilt pipeline (tests); built in the lifespan when omitted
    """
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.pipeline is None
        if owned:
            app.state.pipeline = CopilotPipeline.from_config(config)
        logger.info("Copilot server ready")

        yield

        logger.info("Copilot server shutting down")
        if owned:
            await app.state.pipeline.aclose()
            app.state.pipeline = None

    app = FastAPI(
        title="Interview Copilot",
        description="Knowledge-gated retrieval-augmented answers for live conversations",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_pipeline(request: Request) -> Optional[CopilotPipeline]:
        return request.app.state.pipeline

    # =========================================================================
    # Endpoints
    # =========================================================================

    @app.get("/health")
    async def health(request: Request) -> Dict[str, Any]:
        """Health check endpoint"""
        pipeline = get_pipeline(request)
        return {
            "status": "healthy",
            "service": "copilot",
            "initialized": pipeline is not None,
            "capabilities": pipeline.health() if pipeline else {},
        }

    @app.post("/completion")
    async def completion(body: CompletionRequest, request: Request):
        if not body.transcript.strip():
            return JSONResponse({"error": "Transcript required"}, status_code=400)

        pipeline = get_pipeline(request)
        if pipeline is None:
            return JSONResponse({"error": ServiceUnavailableError().args[0]}, status_code=503)

        try:
            stream = await pipeline.answer(body.transcript, body.background, body.mode)
        except ServiceUnavailableError as e:
            return JSONResponse({"error": str(e)}, status_code=503)

        logger.info("Streaming %s answer", stream.path.value)
        content = encode_frames(stream.frames)
        # StreamingResponse does not close its iterator when the client goes away
        cleanup = BackgroundTasks()
        cleanup.add_task(content.aclose)
        return StreamingResponse(
            content,
            media_type="text/plain; charset=utf-8",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
            background=cleanup,
        )

    @app.post("/debug/rag")
    async def debug_rag(body: DiagnosticRequest, request: Request):
        if not body.transcript.strip():
            return JSONResponse({"error": "Transcript required"}, status_code=400)

        pipeline = get_pipeline(request)
        if pipeline is None:
            return JSONResponse({"error": ServiceUnavailableError().args[0]}, status_code=503)

        try:
            diagnostics = await pipeline.diagnose(body.transcript, body.background)
        except Exception as e:
            logger.error("Debug RAG failed: %s", e, exc_info=True)
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)
        return diagnostics.to_dict()

    @app.get("/debug/pdf-search")
    async def debug_pdf_search(request: Request, query: str = "test"):
        pipeline = get_pipeline(request)
        if pipeline is None:
            return JSONResponse({"error": ServiceUnavailableError().args[0]}, status_code=503)
        try:
            results = await pipeline.orchestrator.document_retriever.retrieve(query)
        except Exception as e:
            logger.error("Document search test failed: %s", e, exc_info=True)
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)
        return _search_report(query, results)

    @app.get("/debug/web-search")
    async def debug_web_search(request: Request, query: str = "test"):
        pipeline = get_pipeline(request)
        if pipeline is None:
            return JSONResponse({"error": ServiceUnavailableError().args[0]}, status_code=503)
        try:
            results = await pipeline.orchestrator.web_retriever.retrieve(query)
        except Exception as e:
            logger.error("Web search test failed: %s", e, exc_info=True)
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)
        return _search_report(query, results)

    return app


def _search_report(query: str, results: List[RetrievalResult]) -> Dict[str, Any]:
    return {
        "success": True,
        "query": query,
        "resultsCount": len(results),
        "results": [
            {
                "content": _preview(r.content),
                "score": r.score,
                "source": r.source,
                "page": r.page,
                "filename": r.filename,
                "url": r.url,
            }
            for r in results
        ],
    }


def _preview(text: str) -> str:
    if len(text) <= DEBUG_PREVIEW_CHARS:
        return text
    return text[:DEBUG_PREVIEW_CHARS] + "..."


# =============================================================================
# CLI Entry Point
# =============================================================================

def main(argv: Optional[List[str]] = None) -> None:
    """Run the Copilot server"""
    import uvicorn

    config = load_config()

    parser = argparse.ArgumentParser(prog="copilot-server", description="Run the interview copilot server")
    parser.add_argument("--host", default=config.server.host)
    parser.add_argument("--port", type=int, default=config.server.port)
    parser.add_argument("--log-level", default=config.server.log_level)
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    logger.info("Starting server on %s:%d", args.host, args.port)
    uvicorn.run(
        create_app(config),
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
