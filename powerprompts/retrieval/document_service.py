"""Document ingestion for retrieval collections."""

import logging
import uuid

from langchain_text_splitters import RecursiveCharacterTextSplitter

from powerprompts.retrieval.vector_store import SimilarityStore
from powerprompts.storage.database import Database
from powerprompts.storage.models import Document, DocumentChunk
from powerprompts.storage.repositories import DocumentRepository
from powerprompts.types import Chunk, ScoredChunk

logger = logging.getLogger(__name__)


class DocumentService:
    """Splits documents into chunks, records them, and indexes them for search."""

    def __init__(
        self,
        store: SimilarityStore,
        database: Database | None = None,
        chunk_size: int = 500,
        chunk_overlap: int = 50,
    ):
        """
        Initialize the service.

        Args:
            store: Similarity store receiving the chunks
            database: Database recording documents and chunks (optional)
            chunk_size: Maximum characters per chunk
            chunk_overlap: Characters shared by neighbouring chunks
        """
        self.store = store
        self.database = database
        self.splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=["\n\n", "\n", " ", ""],
        )

    def split(self, content: str) -> list[str]:
        """Split text into chunk strings."""
        return [text for text in self.splitter.split_text(content) if text.strip()]

    async def upload_document(self, collection: str, filename: str, content: str) -> str:
        """
        Ingest one document into a collection.

        Args:
            collection: Collection name
            filename: Name recorded with the document and each chunk
            content: Full document text

        Returns:
            The new document id
        """
        document_id = str(uuid.uuid4())
        texts = self.split(content)
        logger.info(f"Split '{filename}' into {len(texts)} chunks")

        chunks = [
            Chunk(
                id=f"{document_id}-{index}",
                text=text,
                metadata={"document_id": document_id, "filename": filename, "chunk_index": index},
            )
            for index, text in enumerate(texts)
        ]
        await self.store.upsert_chunks(collection, chunks)

        if self.database is not None:
            session = self.database.get_session()
            try:
                document = Document(
                    id=document_id,
                    collection=collection,
                    filename=filename,
                    content=content,
                    chunk_count=len(chunks),
                )
                document.chunks = [
                    DocumentChunk(id=chunk.id, chunk_index=index, text=chunk.text)
                    for index, chunk in enumerate(chunks)
                ]
                DocumentRepository(session).save(document)
            finally:
                session.close()

        return document_id

    async def search(self, collection: str, query: str, k: int = 3) -> list[ScoredChunk]:
        """Nearest chunks for a query, nearest first."""
        return await self.store.query_top_k(collection, query, k)
