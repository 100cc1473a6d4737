"""
Similarity store for retrieval injection.

Stores passages with embeddings from the completion client in ChromaDB.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol

import chromadb
from chromadb.config import Settings as ChromaSettings

from powerprompts.clients import CompletionClient
from powerprompts.errors import RetrievalUnavailable
from powerprompts.types import Chunk, ScoredChunk

logger = logging.getLogger(__name__)


class SimilarityStore(Protocol):
    """Narrow interface the pipeline uses for retrieval."""

    async def upsert_chunks(self, collection: str, chunks: list[Chunk]) -> None:
        """Insert or replace passages in a collection."""
        ...

    async def query_top_k(self, collection: str, query_text: str, k: int) -> list[ScoredChunk]:
        """Return up to ``k`` passages nearest to ``query_text``, nearest first."""
        ...


class ChromaSimilarityStore:
    """
    ChromaDB-backed similarity store.

    Supports:
    - Local persistent storage
    - In-memory storage for testing
    - Cosine similarity search over externally computed embeddings
    """

    def __init__(
        self,
        client: CompletionClient,
        persist_directory: str | Path | None = None,
        embedding_model: str | None = None,
    ):
        """
        Initialize the store.

        Args:
            client: Completion client used to embed passages and queries
            persist_directory: Directory for persistent storage (None for in-memory)
            embedding_model: Embedding model override
        """
        self.client = client
        self.embedding_model = embedding_model
        settings = ChromaSettings(anonymized_telemetry=False)
        if persist_directory:
            Path(persist_directory).mkdir(parents=True, exist_ok=True)
            self.chroma = chromadb.PersistentClient(path=str(persist_directory), settings=settings)
        else:
            self.chroma = chromadb.EphemeralClient(settings=settings)
        logger.info(f"Initialized similarity store ({persist_directory or 'in-memory'})")

    def _collection(self, name: str) -> Any:
        return self.chroma.get_or_create_collection(name=name, metadata={"hnsw:space": "cosine"})

    async def upsert_chunks(self, collection: str, chunks: list[Chunk]) -> None:
        """Embed and upsert passages."""
        if not chunks:
            return
        try:
            embeddings = [await self.client.embed(c.text, self.embedding_model) for c in chunks]
            await asyncio.to_thread(
                self._collection(collection).upsert,
                ids=[c.id for c in chunks],
                embeddings=embeddings,
                documents=[c.text for c in chunks],
                metadatas=[{"chunk_id": c.id, **c.metadata} for c in chunks],
            )
        except Exception as e:
            raise RetrievalUnavailable(f"Failed to upsert into '{collection}': {e}") from e
        logger.info(f"Upserted {len(chunks)} chunks into '{collection}'")

    async def query_top_k(self, collection: str, query_text: str, k: int) -> list[ScoredChunk]:
        """Return up to ``k`` nearest passages with their cosine distances."""
        try:
            store = self._collection(collection)
            count = await asyncio.to_thread(store.count)
            if count == 0:
                return []
            query_embedding = await self.client.embed(query_text, self.embedding_model)
            results = await asyncio.to_thread(
                store.query,
                query_embeddings=[query_embedding],
                n_results=min(k, count),
            )
        except Exception as e:
            raise RetrievalUnavailable(f"Query against '{collection}' failed: {e}") from e

        if not results or not results.get("ids"):
            return []

        ids = results["ids"][0]
        documents = (results.get("documents") or [[""] * len(ids)])[0]
        metadatas = (results.get("metadatas") or [[{}] * len(ids)])[0]
        distances = (results.get("distances") or [[0.0] * len(ids)])[0]
        return [
            ScoredChunk(id=chunk_id, text=text or "", metadata=dict(metadata or {}), distance=distance)
            for chunk_id, text, metadata, distance in zip(ids, documents, metadatas, distances)
        ]
