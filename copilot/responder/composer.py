"""
Answer Composer

Opens a streaming completion for the final prompt and turns the upstream
deltas into frames: answer text as it arrives, a fallback line when the
model produced nothing, then the citation sidecar.

Failure handling:
- The stream cannot be opened -> ServiceUnavailableError (nothing sent yet)
- The stream breaks after partial output -> trailing "Error: ..." text frame
"""

import logging
from typing import AsyncIterator, Optional

from ..common.llm_client import LLMClient
from ..common.streams import ClosingStream
from .framing import CitationsFrame, Frame, TextFrame

logger = logging.getLogger("copilot.responder.composer")

EMPTY_ANSWER_MESSAGE = "Sorry, I could not generate a response at this time."
EMPTY_SUMMARY_MESSAGE = "No response received from AI service. Please try again."
UNAVAILABLE_MESSAGE = "AI service is currently unavailable. Please try again in a moment."


class ServiceUnavailableError(RuntimeError):
    """The language model stream could not be started."""

    def __init__(self, message: str = UNAVAILABLE_MESSAGE):
        super().__init__(message)


class AnswerComposer:
    """Streams answers from the language model as frames."""

    def __init__(
        self,
        llm_client: LLMClient,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ):
        self._llm = llm_client
        self._temperature = temperature
        self._max_tokens = max_tokens

    @classmethod
    def from_config(cls, llm_client: LLMClient, llm_config) -> "AnswerComposer":
        return cls(
            llm_client,
            temperature=llm_config.answer_temperature,
            max_tokens=llm_config.answer_max_tokens,
        )

    async def compose(
        self,
        prompt: str,
        sidecar: Optional[CitationsFrame] = None,
        empty_message: str = EMPTY_ANSWER_MESSAGE,
    ) -> ClosingStream:
        """
        Start the upstream stream and return the frame iterator.

        Closing the returned iterator releases the upstream stream, even
        before the first frame is read.

        Args:
            prompt: Final prompt (direct, context-augmented or summary)
            sidecar: Citations to append after the text, if any
            empty_message: Sent when the model yields no text

        Raises:
            ServiceUnavailableError: the stream could not be opened
        """
        try:
            deltas = await self._llm.open_stream(
                prompt,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            logger.error("LLM stream failed to start: %s", e, exc_info=True)
            raise ServiceUnavailableError() from e

        return ClosingStream(self._frames(deltas, sidecar, empty_message), deltas)

    async def _frames(
        self,
        deltas: AsyncIterator[str],
        sidecar: Optional[CitationsFrame],
        empty_message: str,
    ) -> AsyncIterator[Frame]:
        has_content = False
        try:
            async for delta in deltas:
                if delta:
                    has_content = True
                    yield TextFrame(delta)

            if not has_content:
                logger.warning("LLM stream produced no content")
                yield TextFrame(empty_message)

            if sidecar is not None and sidecar.citations:
                logger.info("Sending %d source(s)", len(sidecar.citations))
                yield sidecar
        except Exception as e:
            logger.error("Streaming error: %s", e, exc_info=True)
            yield TextFrame(f"Error: {str(e) or 'Unknown streaming error'}")
