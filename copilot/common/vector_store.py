"""
Vector Store

Read-only access to the document vector index. Ingestion (PDF parsing,
chunking, upserts) is owned by a separate service; this module only queries.

Backends:
- PineconeVectorStore: Pinecone data-plane REST API over httpx
- InMemoryVectorStore: numpy cosine search over preloaded records
"""

import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
import numpy as np

logger = logging.getLogger("copilot.common.vector_store")

PINECONE_API_VERSION = "2024-07"


@dataclass
class VectorMatch:
    """A single similarity match from the index"""
    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class PineconeVectorStore:
    """
    Queries a Pinecone serverless index by host.

    The caller owns the lifetime: call aclose() on shutdown.
    """

    def __init__(
        self,
        index_host: str,
        api_key: str,
        namespace: str = "",
        timeout: float = 15.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        host = index_host.strip().rstrip("/")
        if host and not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        self._host = host
        self._api_key = api_key
        self._namespace = namespace
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def is_available(self) -> bool:
        return bool(self._host and self._api_key)

    async def search(self, query_embedding: Sequence[float], top_k: int) -> List[VectorMatch]:
        """Return the top_k nearest records with metadata."""
        if not self.is_available:
            raise RuntimeError("Pinecone index host or API key not configured")

        body: Dict[str, Any] = {
            "vector": list(query_embedding),
            "topK": top_k,
            "includeMetadata": True,
            "includeValues": False,
        }
        if self._namespace:
            body["namespace"] = self._namespace

        response = await self._http.post(
            f"{self._host}/query",
            json=body,
            headers={
                "Api-Key": self._api_key,
                "X-Pinecone-API-Version": PINECONE_API_VERSION,
            },
        )
        response.raise_for_status()
        matches = response.json().get("matches", [])
        return [
            VectorMatch(
                id=str(m.get("id", "")),
                score=float(m.get("score") or 0.0),
                metadata=m.get("metadata") or {},
            )
            for m in matches
        ]

    async def aclose(self) -> None:
        await self._http.aclose()


class InMemoryVectorStore:
    """
    Cosine-similarity search over a fixed set of records.

    Vectors are L2 normalized at load time, so a dot product equals cosine
    similarity. Used for local runs and tests.
    """

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        self._ids: List[str] = []
        self._metadata: List[Dict[str, Any]] = []
        self._matrix = np.zeros((0, 0))

        if records:
            self._load(records)

    def _load(self, records: List[Dict[str, Any]]) -> None:
        vectors = []
        for record in records:
            self._ids.append(str(record["id"]))
            self._metadata.append(record.get("metadata") or {})
            vectors.append(record["values"])

        matrix = np.array(vectors, dtype=float)
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        self._matrix = matrix / norms

    @property
    def is_available(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._ids)

    async def search(self, query_embedding: Sequence[float], top_k: int) -> List[VectorMatch]:
        if not self._ids:
            return []

        query = np.array(query_embedding, dtype=float)
        if query.shape[0] != self._matrix.shape[1]:
            raise ValueError(
                f"Vector dimension mismatch: {query.shape[0]} vs {self._matrix.shape[1]}"
            )
        norm = np.linalg.norm(query)
        if norm:
            query = query / norm

        similarities = np.clip(self._matrix @ query, 0.0, 1.0)
        # Stable sort keeps insertion order among equal scores
        order = np.argsort(-similarities, kind="stable")[:top_k]
        return [
            VectorMatch(
                id=self._ids[i],
                score=float(similarities[i]),
                metadata=self._metadata[i],
            )
            for i in order
        ]

    async def aclose(self) -> None:
        return None


def build_vector_store(vector_store_config):
    """Construct the configured backend."""
    if vector_store_config.backend == "memory":
        records = []
        if vector_store_config.records_path:
            with open(Path(vector_store_config.records_path).expanduser()) as f:
                records = json.load(f)
        logger.info("In-memory vector store loaded with %d records", len(records))
        return InMemoryVectorStore(records)
    return PineconeVectorStore(
        index_host=vector_store_config.index_host,
        api_key=vector_store_config.api_key,
        namespace=vector_store_config.namespace,
    )
