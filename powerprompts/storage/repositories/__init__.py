"""Repository classes for data access."""

from powerprompts.storage.repositories.dataset_repository import DatasetRepository
from powerprompts.storage.repositories.document_repository import DocumentRepository
from powerprompts.storage.repositories.run_repository import RunRepository
from powerprompts.storage.repositories.version_repository import VersionRepository

__all__ = [
    "RunRepository",
    "VersionRepository",
    "DatasetRepository",
    "DocumentRepository",
]
