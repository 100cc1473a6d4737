"""
Prompt store used by the optimization pipeline.

The pipeline only needs append-only semantics and retrieval by run id, so it
talks to storage through the narrow ``PromptStore`` protocol.
"""

import logging
import uuid
from typing import Protocol

from powerprompts.errors import StorageError
from powerprompts.storage.converters import (
    DatasetConverter,
    PromptRunConverter,
    VersionConverter,
)
from powerprompts.storage.database import Database
from powerprompts.storage.repositories import (
    DatasetRepository,
    RunRepository,
    VersionRepository,
)
from powerprompts.types import Dataset, PromptCase, PromptVersion

logger = logging.getLogger(__name__)


class PromptStore(Protocol):
    """Storage operations consumed by the orchestrator."""

    def create_prompt_run(self, case: PromptCase) -> str:
        """Record a new run and return its id."""
        ...

    def append_version(self, run_id: str, version: PromptVersion) -> None:
        """Append the next version of a run (iteration must be last + 1)."""
        ...

    def list_versions(self, run_id: str) -> list[PromptVersion]:
        """All versions of a run ordered by iteration."""
        ...

    def save_dataset(self, run_id: str, dataset: Dataset) -> str:
        """Persist a run's dataset and return its id."""
        ...

    def mark_completed(self, run_id: str, best_iteration: int) -> None: ...

    def mark_failed(self, run_id: str, message: str) -> None: ...

    def mark_cancelled(self, run_id: str) -> None: ...


class SqlPromptStore:
    """PromptStore backed by the SQLAlchemy database.

    Every call opens its own short session, so concurrent runs can share one
    instance.
    """

    def __init__(self, database: Database):
        """
        Initialize the store.

        Args:
            database: Database providing sessions
        """
        self.database = database

    def create_prompt_run(self, case: PromptCase) -> str:
        run_id = str(uuid.uuid4())
        session = self.database.get_session()
        try:
            RunRepository(session).save(PromptRunConverter.to_db(case, run_id))
        finally:
            session.close()
        logger.info(f"Created prompt run {run_id}")
        return run_id

    def append_version(self, run_id: str, version: PromptVersion) -> None:
        session = self.database.get_session()
        try:
            repo = VersionRepository(session)
            expected = repo.last_iteration(run_id) + 1
            if version.iteration != expected:
                raise StorageError(
                    f"Run {run_id} expects iteration {expected}, got {version.iteration}"
                )
            repo.save(VersionConverter.to_db(version, run_id))
        finally:
            session.close()
        logger.debug(f"Stored version {version.iteration} of run {run_id}")

    def list_versions(self, run_id: str) -> list[PromptVersion]:
        session = self.database.get_session()
        try:
            rows = VersionRepository(session).get_by_run(run_id)
            return [VersionConverter.from_db(row) for row in rows]
        finally:
            session.close()

    def save_dataset(self, run_id: str, dataset: Dataset) -> str:
        dataset_id = dataset.id or str(uuid.uuid4())
        session = self.database.get_session()
        try:
            DatasetRepository(session).save(DatasetConverter.to_db(dataset, dataset_id, run_id))
        finally:
            session.close()
        logger.info(f"Stored dataset {dataset_id} ({len(dataset.examples)} examples)")
        return dataset_id

    def get_dataset(self, dataset_id: str) -> Dataset | None:
        """Load a stored dataset with its examples."""
        session = self.database.get_session()
        try:
            row = DatasetRepository(session).get_by_id(dataset_id)
            return DatasetConverter.from_db(row) if row else None
        finally:
            session.close()

    def get_status(self, run_id: str) -> str | None:
        """Current status of a run, None for an unknown id."""
        session = self.database.get_session()
        try:
            run = RunRepository(session).get_by_id(run_id)
            return run.status if run else None
        finally:
            session.close()

    def mark_completed(self, run_id: str, best_iteration: int) -> None:
        self._set_status(run_id, "completed", best_iteration=best_iteration)

    def mark_failed(self, run_id: str, message: str) -> None:
        self._set_status(run_id, "failed", error_message=message)

    def mark_cancelled(self, run_id: str) -> None:
        self._set_status(run_id, "cancelled")

    def _set_status(self, run_id: str, status: str, **fields) -> None:
        session = self.database.get_session()
        try:
            RunRepository(session).set_status(run_id, status, **fields)
        finally:
            session.close()
        logger.info(f"Run {run_id} marked {status}")
