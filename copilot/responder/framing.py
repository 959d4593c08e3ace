"""
Answer stream frames and their wire encoding.

Producers yield typed frames; only the transport turns them into bytes:
text frames verbatim, then at most one citations frame as
"\\n\\n---SOURCES---\\n" + JSON + "\\n".
"""

import json
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Union

from ..common.streams import ClosingStream
from ..retriever.types import Citation

SOURCES_DELIMITER = "\n\n---SOURCES---\n"


@dataclass
class TextFrame:
    """A chunk of answer text"""
    text: str


@dataclass
class CitationsFrame:
    """Trailing citation sidecar"""
    citations: List[Citation] = field(default_factory=list)
    extracted_question: Optional[str] = None

    def to_payload(self) -> dict:
        return {
            "type": "citations",
            "citations": [c.to_wire() for c in self.citations],
            "extractedQuestion": self.extracted_question,
        }


Frame = Union[TextFrame, CitationsFrame]


def encode_frame(frame: Frame) -> str:
    if isinstance(frame, TextFrame):
        return frame.text
    return SOURCES_DELIMITER + json.dumps(frame.to_payload()) + "\n"


def encode_frames(frames: AsyncIterator[Frame]) -> ClosingStream:
    """Serialize a frame stream to UTF-8 bytes, one write per frame.

    Closing the byte stream closes `frames`, started or not.
    """
    return ClosingStream(_encode(frames), frames)


async def _encode(frames: AsyncIterator[Frame]) -> AsyncIterator[bytes]:
    async for frame in frames:
        data = encode_frame(frame)
        if data:
            yield data.encode("utf-8")


def split_wire_text(body: str):
    """
    Split a decoded response body into (answer_text, sidecar or None).

    The delimiter is assumed absent from model output; the last occurrence
    is used.
    """
    head, sep, tail = body.rpartition(SOURCES_DELIMITER)
    if not sep:
        return body, None
    return head, json.loads(tail)
