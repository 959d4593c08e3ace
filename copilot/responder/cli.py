"""Command-line entry point: answer one transcript and print the result."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from ..common.config import load_config
from ..common.logging_config import setup_logging
from ..retriever.fusion import format_sources_summary
from ..retriever.types import FusedContext
from .composer import ServiceUnavailableError
from .framing import CitationsFrame, TextFrame
from .pipeline import AnswerMode, CopilotPipeline

logger = logging.getLogger("copilot.responder.cli")


async def ask(pipeline: CopilotPipeline, transcript: str, background: Optional[str], mode: str, out=None) -> int:
    """Stream the answer to `out`, then the sources summary. Returns an exit code."""
    out = out or sys.stdout
    try:
        stream = await pipeline.answer(transcript, background, mode)
    except ServiceUnavailableError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    sidecar = None
    async for frame in stream.frames:
        if isinstance(frame, TextFrame):
            out.write(frame.text)
            out.flush()
        elif isinstance(frame, CitationsFrame):
            sidecar = frame
    out.write("\n")

    if sidecar is not None:
        if sidecar.extracted_question:
            out.write(f"\nQuestion: {sidecar.extracted_question}\n")
        out.write("\n" + format_sources_summary(FusedContext(citations=sidecar.citations)) + "\n")
    return 0


async def _run(args) -> int:
    pipeline = CopilotPipeline.from_config(load_config())
    try:
        return await ask(pipeline, args.transcript, args.background, args.mode)
    finally:
        await pipeline.aclose()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="copilot-ask", description="Answer a conversation transcript")
    parser.add_argument("transcript", help="Conversation text; '-' reads stdin")
    parser.add_argument("--background", default=None, help="Background context (role, resume, company)")
    parser.add_argument(
        "--mode",
        default=AnswerMode.DIRECT_CHECK.value,
        choices=[m.value for m in AnswerMode],
    )
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    if args.transcript == "-":
        args.transcript = sys.stdin.read()
    if not args.transcript.strip():
        parser.error("Transcript required")

    setup_logging(args.log_level)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
