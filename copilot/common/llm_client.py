"""
Provider-agnostic async LLM client for the copilot pipeline.

Supports Groq, OpenAI, Anthropic, and Google Gemini with a shared interface
for one-shot text generation and streamed text deltas.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

from .streams import ClosingStream

logger = logging.getLogger("copilot.common.llm_client")

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class LLMUnavailableError(RuntimeError):
    """Raised when no usable provider client is configured."""


class LLMClient:
    """Unified text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "groq",
        model: str = "",
        groq_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        self.provider = (provider or "groq").lower()
        self.model = model
        self.timeout = timeout
        self._client = None

        if self.provider in ("groq", "openai"):
            api_key = groq_api_key if self.provider == "groq" else openai_api_key
            if not api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import AsyncOpenAI

                if self.provider == "groq":
                    self._client = AsyncOpenAI(api_key=api_key, base_url=GROQ_BASE_URL)
                else:
                    self._client = AsyncOpenAI(api_key=api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize %s client: %s", self.provider, e)
            return

        if self.provider == "anthropic":
            if not anthropic_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(api_key=anthropic_api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "google":
            if not google_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import google.generativeai as genai

                genai.configure(api_key=google_api_key)
                self._client = genai  # Store the module, not a model instance
            except ImportError:
                logger.warning("google-generativeai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Gemini client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @classmethod
    def from_config(cls, llm_config) -> "LLMClient":
        return cls(
            provider=llm_config.provider,
            model=llm_config.model,
            groq_api_key=llm_config.groq_api_key or None,
            openai_api_key=llm_config.openai_api_key or None,
            anthropic_api_key=llm_config.anthropic_api_key or None,
            google_api_key=llm_config.google_api_key or None,
            timeout=llm_config.timeout,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def _require_client(self) -> None:
        if not self.is_available:
            raise LLMUnavailableError("LLM client is not available")

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 512,
    ) -> str:
        """Non-streaming completion. Returns the reply text as produced."""
        self._require_client()

        if self.provider in ("groq", "openai"):
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=self._chat_messages(prompt, system),
                temperature=temperature,
                max_tokens=max_tokens,
                stream=False,
                timeout=self.timeout,
            )
            return response.choices[0].message.content or ""

        if self.provider == "anthropic":
            kwargs = {}
            if system:
                kwargs["system"] = system
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                timeout=self.timeout,
                **kwargs,
            )
            return response.content[0].text if response.content else ""

        if self.provider == "google":
            model = self._google_model(system)
            response = await model.generate_content_async(
                prompt,
                generation_config={"temperature": temperature, "max_output_tokens": max_tokens},
                request_options={"timeout": self.timeout},
            )
            return response.text

        raise LLMUnavailableError(f"Unsupported LLM provider: {self.provider}")

    async def open_stream(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> ClosingStream:
        """
        Start a streaming completion and return an async iterator of text deltas.

        The upstream request is issued here, so a provider that cannot start
        the stream raises before any delta exists. Closing the returned
        iterator releases the upstream connection.
        """
        self._require_client()

        if self.provider in ("groq", "openai"):
            stream = await self._client.chat.completions.create(
                model=self.model,
                messages=self._chat_messages(prompt, system),
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
                timeout=self.timeout,
            )
            return ClosingStream(_openai_deltas(stream), stream)

        if self.provider == "anthropic":
            kwargs = {}
            if system:
                kwargs["system"] = system
            stream = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                stream=True,
                timeout=self.timeout,
                **kwargs,
            )
            return ClosingStream(_anthropic_deltas(stream), stream)

        if self.provider == "google":
            model = self._google_model(system)
            response = await model.generate_content_async(
                prompt,
                generation_config={"temperature": temperature, "max_output_tokens": max_tokens},
                stream=True,
                request_options={"timeout": self.timeout},
            )
            # The SDK keeps the underlying streaming call on _iterator and has no public close
            return ClosingStream(_google_deltas(response), getattr(response, "_iterator", None))

        raise LLMUnavailableError(f"Unsupported LLM provider: {self.provider}")

    @staticmethod
    def _chat_messages(prompt: str, system: Optional[str]) -> list:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _google_model(self, system: Optional[str]):
        kwargs = {"model_name": self.model}
        if system:
            kwargs["system_instruction"] = system
        return self._client.GenerativeModel(**kwargs)


async def _openai_deltas(stream) -> AsyncIterator[str]:
    async for chunk in stream:
        if not chunk.choices:
            continue
        content = chunk.choices[0].delta.content
        if content:
            yield content


async def _anthropic_deltas(stream) -> AsyncIterator[str]:
    async for event in stream:
        if event.type == "content_block_delta" and getattr(event.delta, "type", "") == "text_delta":
            yield event.delta.text


async def _google_deltas(response) -> AsyncIterator[str]:
    async for chunk in response:
        parts = chunk.candidates[0].content.parts if chunk.candidates else []
        text = "".join(getattr(p, "text", "") for p in parts)
        if text:
            yield text
