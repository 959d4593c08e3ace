"""
Embedding Service

Produces query embeddings for document search.
Supports Google (Gemini embeddings), OpenAI, and fastembed (on-device).
"""

import asyncio
import logging
from typing import List, Optional

import numpy as np

logger = logging.getLogger("copilot.common.embedding_service")


class EmbeddingService:
    """
    Query embedding capability.

    One instance is built at process start and shared by reference; the
    underlying provider client is created lazily on first use.
    """

    def __init__(
        self,
        mode: str = "google",
        model: str = "models/text-embedding-004",
        api_key: Optional[str] = None,
    ):
        self._mode = (mode or "google").lower()
        self._model = model
        self._api_key = api_key
        self._backend = None

        try:
            self._backend = self._init_backend()
        except ImportError as e:
            logger.warning("Embedding backend '%s' not installed: %s", self._mode, e)
        except Exception as e:
            logger.warning("Failed to initialize embedding backend '%s': %s", self._mode, e)

    @classmethod
    def from_config(cls, embedding_config) -> "EmbeddingService":
        return cls(
            mode=embedding_config.mode,
            model=embedding_config.model,
            api_key=embedding_config.api_key or None,
        )

    def _init_backend(self):
        if self._mode == "google":
            if not self._api_key:
                logger.info("Google API key not provided, embeddings unavailable")
                return None
            import google.generativeai as genai

            genai.configure(api_key=self._api_key)
            return genai

        if self._mode == "openai":
            if not self._api_key:
                logger.info("OpenAI API key not provided, embeddings unavailable")
                return None
            from openai import AsyncOpenAI

            return AsyncOpenAI(api_key=self._api_key)

        if self._mode == "femb":
            from fastembed import TextEmbedding

            return TextEmbedding(model_name=self._model)

        logger.warning("Unsupported embedding mode: %s", self._mode)
        return None

    @property
    def is_available(self) -> bool:
        """Check if embedding service is available"""
        return self._backend is not None

    @property
    def mode(self) -> str:
        return self._mode

    async def embed_single(self, text: str) -> List[float]:
        """
        Generate an embedding for a single query text.

        Raises:
            RuntimeError: if no backend is configured
            ValueError: for empty text
        """
        if not self._backend:
            raise RuntimeError("Embedding backend not initialized")
        if not text:
            raise ValueError("Cannot embed empty text")

        if self._mode == "google":
            result = await asyncio.to_thread(
                self._backend.embed_content,
                model=self._model,
                content=text,
                task_type="retrieval_query",
            )
            return _as_list(result["embedding"])

        if self._mode == "openai":
            response = await self._backend.embeddings.create(model=self._model, input=[text])
            return _as_list(response.data[0].embedding)

        # fastembed yields numpy arrays from a generator
        vectors = await asyncio.to_thread(lambda: list(self._backend.query_embed(text)))
        return _as_list(vectors[0])


def _as_list(vector) -> List[float]:
    if isinstance(vector, np.ndarray):
        return vector.astype(float).tolist()
    return [float(v) for v in vector]
