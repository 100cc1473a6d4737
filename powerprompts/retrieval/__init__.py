"""Similarity search and document ingestion."""

from powerprompts.retrieval.document_service import DocumentService
from powerprompts.retrieval.vector_store import ChromaSimilarityStore, SimilarityStore

__all__ = ["ChromaSimilarityStore", "DocumentService", "SimilarityStore"]
