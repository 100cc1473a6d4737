"""Pytest fixtures for powerprompts tests."""

import pytest

from powerprompts.config import OptimizerConfig, TechniqueConfig
from powerprompts.optimizer import PromptOptimizer
from powerprompts.storage import Database, SqlPromptStore
from powerprompts.tests.helpers import FakeCompletionClient, InMemorySimilarityStore
from powerprompts.types import DatasetConfig, OptimizationRequest


@pytest.fixture
def temp_db_path(tmp_path):
    """Provide a temporary database path for testing."""
    db_dir = tmp_path / "test_storage"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "test_powerprompts.db"


@pytest.fixture
def test_database(temp_db_path):
    """
    Provide a real Database instance with temporary storage.

    Uses a real SQLite file (not in-memory) so state can be inspected after a run.
    """
    db = Database(temp_db_path)
    yield db
    db.close()


@pytest.fixture
def prompt_store(test_database):
    """SqlPromptStore over the temporary database."""
    return SqlPromptStore(test_database)


@pytest.fixture
def fake_client():
    """
    Provide a FakeCompletionClient for fast, deterministic model responses.

    Replaces the real OpenAI-backed client so no network calls are made.
    """
    return FakeCompletionClient()


@pytest.fixture
def similarity_store():
    """In-memory similarity store."""
    return InMemorySimilarityStore()


@pytest.fixture
def minimal_config():
    """
    Provide a small, deterministic configuration.

    - 3 examples sampled per round
    - sequential execution
    - seeded sampling and heuristic tree scores
    """
    return OptimizerConfig(
        sample_size=3,
        max_technique_concurrency=2,
        parallel_execution=False,
        sample_seed=7,
        techniques=TechniqueConfig(tree_depth=2, tree_branches=2, tree_seed=11),
        verbose=False,
    )


@pytest.fixture
def parallel_config(minimal_config):
    """
    Provide config with parallel execution enabled.

    Useful for testing the concurrent per-example code path.
    """
    return minimal_config.model_copy(update={"parallel_execution": True})


@pytest.fixture
def haiku_request():
    """The haiku scenario: RACE, no techniques, one round, five examples."""
    return OptimizationRequest(
        prompt="Write a haiku about the sea",
        selected_framework="RACE",
        techniques_enabled=[],
        dataset_config=DatasetConfig(example_count=5),
        iteration_count=1,
    )


@pytest.fixture
def optimizer(fake_client, prompt_store, minimal_config, similarity_store):
    """PromptOptimizer wired to fakes and a temporary database."""
    return PromptOptimizer(
        fake_client,
        prompt_store,
        config=minimal_config,
        similarity_store=similarity_store,
    )
