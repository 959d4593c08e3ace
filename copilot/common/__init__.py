"""
Copilot Common Module

Shared infrastructure for the retriever and responder packages.
"""

from .config import CopilotConfig, load_config
from .embedding_service import EmbeddingService
from .llm_client import LLMClient, LLMUnavailableError
from .vector_store import InMemoryVectorStore, PineconeVectorStore, VectorMatch
from .web_search_client import WebHit, WebSearchClient

__all__ = [
    "CopilotConfig",
    "load_config",
    "EmbeddingService",
    "LLMClient",
    "LLMUnavailableError",
    "InMemoryVectorStore",
    "PineconeVectorStore",
    "VectorMatch",
    "WebHit",
    "WebSearchClient",
]
