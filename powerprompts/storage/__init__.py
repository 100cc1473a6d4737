"""Storage layer for powerprompts using SQLAlchemy."""

from powerprompts.storage.converters import (
    DatasetConverter,
    ExampleConverter,
    PromptRunConverter,
    VersionConverter,
)
from powerprompts.storage.database import Database
from powerprompts.storage.models import (
    Base,
    Dataset,
    Document,
    DocumentChunk,
    Example,
    PromptRun,
    Version,
)
from powerprompts.storage.repositories import (
    DatasetRepository,
    DocumentRepository,
    RunRepository,
    VersionRepository,
)
from powerprompts.storage.store import PromptStore, SqlPromptStore

__all__ = [
    "Database",
    "Base",
    "PromptRun",
    "Version",
    "Dataset",
    "Example",
    "Document",
    "DocumentChunk",
    "RunRepository",
    "VersionRepository",
    "DatasetRepository",
    "DocumentRepository",
    "PromptRunConverter",
    "VersionConverter",
    "DatasetConverter",
    "ExampleConverter",
    "PromptStore",
    "SqlPromptStore",
]
