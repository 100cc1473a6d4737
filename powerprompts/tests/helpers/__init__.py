"""Test helpers for powerprompts tests."""

from powerprompts.tests.helpers.assertions import (
    assert_best_is_max,
    assert_metrics_in_range,
    assert_single_terminal_event,
    assert_versions_gapless,
)
from powerprompts.tests.helpers.fake_client import (
    STRUCTURED_HAIKU_PROMPT,
    FakeCompletionClient,
    make_examples,
)
from powerprompts.tests.helpers.in_memory_store import InMemorySimilarityStore

__all__ = [
    "FakeCompletionClient",
    "InMemorySimilarityStore",
    "STRUCTURED_HAIKU_PROMPT",
    "make_examples",
    "assert_metrics_in_range",
    "assert_single_terminal_event",
    "assert_versions_gapless",
    "assert_best_is_max",
]
