"""Test the complete optimization pipeline end to end against the fake client."""

import pytest

from powerprompts.optimizer import PromptOptimizer
from powerprompts.progress import EventType, ProgressChannel
from powerprompts.prompts import REFINEMENT_STEP_PROMPT
from powerprompts.techniques import REASONING_TAG
from powerprompts.tests.helpers import (
    FakeCompletionClient,
    assert_best_is_max,
    assert_metrics_in_range,
    assert_single_terminal_event,
    assert_versions_gapless,
)
from powerprompts.types import Chunk, DatasetConfig, OptimizationRequest


def collect(channel: ProgressChannel) -> list:
    """Subscribe a list to a channel and return it."""
    events = []
    channel.subscribe(events.append)
    return events


def event_types(events) -> list[str]:
    return [event.type.value for event in events]


def request_with(techniques: list[str], iterations: int = 1) -> OptimizationRequest:
    return OptimizationRequest(
        prompt="Write a haiku about the sea",
        selected_framework="RACE",
        techniques_enabled=techniques,
        dataset_config=DatasetConfig(example_count=5),
        iteration_count=iterations,
    )


@pytest.mark.asyncio
async def test_haiku_single_round(prompt_store, minimal_config, similarity_store, haiku_request):
    """
    Test the basic scenario: RACE, no techniques, one round, five examples.

    Verifies:
    - Exactly one version with all metrics in [0, 100]
    - Events arrive in pipeline order and end with the completion event
    - The run, dataset and version are stored
    """
    client = FakeCompletionClient(example_count=5)
    optimizer = PromptOptimizer(
        client, prompt_store, config=minimal_config, similarity_store=similarity_store
    )
    channel = ProgressChannel()
    events = collect(channel)

    result = await optimizer.optimize(haiku_request, channel)

    # Verify result
    assert len(result.all_versions) == 1
    assert result.best_version.iteration == 1
    assert_metrics_in_range(result.best_version.metrics)
    assert result.dataset.domain == "creative writing"
    assert result.dataset.example_count == 5
    assert result.warnings == []
    assert result.token_usage.requests == len(client.calls)

    # Verify event order
    assert event_types(events) == [
        "optimization_start",
        "dataset_generated",
        "iteration_start",
        "executing_tests",
        "test_progress",
        "test_progress",
        "test_progress",
        "evaluating_metrics",
        "metrics_calculated",
        "iteration_complete",
        "optimization_complete",
    ]
    assert_single_terminal_event(events)
    assert events[0].data["total_iterations"] == 1
    assert events[-1].data["best_version"]["iteration"] == 1
    assert channel.closed

    # Verify storage
    assert prompt_store.get_status(result.run_id) == "completed"
    stored = prompt_store.list_versions(result.run_id)
    assert [v.iteration for v in stored] == [1]
    assert stored[0].metrics == result.best_version.metrics
    dataset = prompt_store.get_dataset(result.dataset.id)
    assert dataset is not None
    assert len(dataset.examples) == 5


@pytest.mark.asyncio
async def test_first_prompt_is_structured_output(optimizer, fake_client, haiku_request):
    """
    Test that round 1 runs the structured prompt, not the raw one.

    Every worker call carries the structured prompt followed by the example input.
    """
    result = await optimizer.optimize(haiku_request)

    assert result.best_version.prompt_text == fake_client.structured_prompt
    worker_calls = fake_client.calls_of("worker")
    assert len(worker_calls) == 3
    for call in worker_calls:
        assert call["prompt"].startswith(fake_client.structured_prompt)
        assert "\n\nInput: Write a haiku about the sea at dawn" in call["prompt"]

    # Three judge calls per example
    assert len(fake_client.calls_of("judge")) == 9


@pytest.mark.asyncio
async def test_judge_scores_flow_into_metrics(optimizer, fake_client, haiku_request):
    """
    Test that judge answers become the judged sub-metrics.

    Identical worker outputs make consistency perfect.
    """
    result = await optimizer.optimize(haiku_request)

    metrics = result.best_version.metrics
    assert metrics.relevance == 87.0
    assert metrics.accuracy == 87.0
    assert metrics.readability == 87.0
    assert metrics.consistency == 100.0
    assert len(result.best_version.evaluation_details) == 3


@pytest.mark.asyncio
async def test_three_rounds_with_recursive_improvement(optimizer, fake_client, prompt_store):
    """
    Test a three-round run with rsip enabled.

    Verifies:
    - Versions 1, 2, 3 with no gaps
    - Each rewrite feeds the next round and carries the critique that produced it
    - Improvement runs between rounds only (twice for three rounds)
    """
    channel = ProgressChannel()
    events = collect(channel)

    result = await optimizer.optimize(request_with(["rsip"], iterations=3), channel)

    assert_versions_gapless(result, 3)
    assert_best_is_max(result)
    first, second, third = result.all_versions
    assert first.critique is None
    assert second.critique is not None and "sensory focus" in second.critique
    assert third.critique is not None
    assert "(revision 1)" in second.prompt_text
    assert "(revision 2)" in third.prompt_text
    assert first.techniques_applied == ["rsip"]

    assert len(fake_client.calls_of("critique")) == 2
    assert len(fake_client.calls_of("improvement")) == 2
    # The critique request carries the round's metrics
    assert "Current Metrics:" in fake_client.calls_of("critique")[0]["prompt"]

    types = event_types(events)
    assert types.count("applying_rsip") == 2
    assert types.count("prompt_improved") == 2
    assert types.count("iteration_complete") == 3
    # Round 2 starts only after round 1's improvement is published
    assert types.index("prompt_improved") < [
        i for i, t in enumerate(types) if t == "iteration_start"
    ][1]
    assert_single_terminal_event(events)

    stored = prompt_store.list_versions(result.run_id)
    assert [v.iteration for v in stored] == [1, 2, 3]
    assert [v.critique for v in stored] == [v.critique for v in result.all_versions]


@pytest.mark.asyncio
async def test_parallel_execution_reports_progress_in_completion_order(
    fake_client, prompt_store, parallel_config, similarity_store, haiku_request
):
    """
    Test the concurrent per-example path.

    Progress counters increase monotonically regardless of launch order.
    """
    optimizer = PromptOptimizer(
        fake_client, prompt_store, config=parallel_config, similarity_store=similarity_store
    )
    channel = ProgressChannel()
    events = collect(channel)

    result = await optimizer.optimize(haiku_request, channel)

    progress = [e.data for e in events if e.type == EventType.TEST_PROGRESS]
    assert [p["current"] for p in progress] == [1, 2, 3]
    assert all(p["total"] == 3 for p in progress)
    assert len(result.best_version.evaluation_details) == 3
    for detail in result.best_version.evaluation_details:
        assert detail.actual_output.startswith("Waves fold into foam")


@pytest.mark.asyncio
async def test_self_consistency_samples_each_example(optimizer, fake_client):
    """
    Test the majority-sampling path.

    Each example is sampled at three rising temperatures.
    """
    channel = ProgressChannel()
    events = collect(channel)

    await optimizer.optimize(request_with(["cot", "self_consistency"]), channel)

    worker_calls = fake_client.calls_of("worker")
    assert len(worker_calls) == 9
    assert sorted({call["temperature"] for call in worker_calls}) == [0.7, 0.9, 1.1]

    technique_events = [e for e in events if e.type == EventType.APPLYING_TECHNIQUE]
    assert len(technique_events) == 1
    assert technique_events[0].data["technique"] == "self_consistency"


@pytest.mark.asyncio
async def test_tree_of_thoughts_path(optimizer, fake_client):
    """
    Test the branching-search path.

    With depth 2 and two branches, every heuristic score clears the threshold,
    so each example generates 2 + 4 thoughts and no plain worker call is made.
    """
    channel = ProgressChannel()
    events = collect(channel)

    result = await optimizer.optimize(request_with(["cot", "tot"]), channel)

    assert len(fake_client.calls_of("thought")) == 18
    assert fake_client.calls_of("worker") == []
    for detail in result.best_version.evaluation_details:
        assert detail.actual_output.startswith("Consider the sound of the tide")

    technique_events = [e for e in events if e.type == EventType.APPLYING_TECHNIQUE]
    assert [e.data["technique"] for e in technique_events] == ["tot"]


@pytest.mark.asyncio
async def test_self_consistency_takes_precedence_over_tree_search(optimizer, fake_client):
    """Test that majority sampling wins when both execution techniques are enabled."""
    result = await optimizer.optimize(request_with(["cot", "self_consistency", "tot"]))

    assert fake_client.calls_of("thought") == []
    assert len(fake_client.calls_of("worker")) == 9
    assert any("precedence" in warning for warning in result.warnings)


@pytest.mark.asyncio
async def test_prompt_chaining_runs_refinement_step(optimizer, fake_client):
    """
    Test the chained plain path.

    Each example runs two steps; the second sees the first step's output.
    """
    await optimizer.optimize(request_with(["prompt_chaining"]))

    worker_calls = fake_client.calls_of("worker")
    assert len(worker_calls) == 6
    refinements = [c for c in worker_calls if REFINEMENT_STEP_PROMPT in c["prompt"]]
    assert len(refinements) == 3
    for call in refinements:
        assert "Previous step output:\nWaves fold into foam" in call["prompt"]


@pytest.mark.asyncio
async def test_reasoning_and_retrieval_shape_first_prompt(optimizer, similarity_store):
    """
    Test that cot and rag are applied to the structured prompt once.

    The retrieval query is the raw prompt; the context goes after the first section.
    """
    await similarity_store.upsert_chunks(
        "knowledge_base",
        [Chunk(id="doc-0", text="Haiku about the sea often mention waves and tide")],
    )

    result = await optimizer.optimize(request_with(["cot", "rag"]))

    prompt = result.best_version.prompt_text
    assert prompt.count(f"<{REASONING_TAG}>") == 1
    assert prompt.index("</action>") < prompt.index(f"<{REASONING_TAG}>")
    assert "<context>" in prompt
    assert prompt.index("</role>") < prompt.index("<context>") < prompt.index("<action>")
    assert similarity_store.queries == [("knowledge_base", "Write a haiku about the sea", 3)]


@pytest.mark.asyncio
async def test_retrieval_failure_leaves_prompt_unchanged(
    fake_client, prompt_store, minimal_config
):
    """Test that an unavailable similarity store does not fail the run."""
    from powerprompts.tests.helpers import InMemorySimilarityStore

    optimizer = PromptOptimizer(
        fake_client,
        prompt_store,
        config=minimal_config,
        similarity_store=InMemorySimilarityStore(fail=True),
    )

    result = await optimizer.optimize(request_with(["rag"]))

    assert result.best_version.prompt_text == fake_client.structured_prompt
    assert prompt_store.get_status(result.run_id) == "completed"


@pytest.mark.asyncio
async def test_background_run_streams_events(optimizer, haiku_request):
    """
    Test run_optimization plus wait.

    The channel is returned before the run starts, so a subscriber attached
    immediately sees the start event.
    """
    channel = optimizer.run_optimization(haiku_request)
    events = collect(channel)

    result = await optimizer.wait(channel)

    assert result is not None
    assert events[0].type == EventType.OPTIMIZATION_START
    assert events[-1].type == EventType.OPTIMIZATION_COMPLETE
    assert_single_terminal_event(events)


@pytest.mark.asyncio
async def test_concurrent_runs_are_independent(optimizer, prompt_store):
    """Test that two background runs each get their own id, versions and channel."""
    first = optimizer.run_optimization(request_with([]))
    second = optimizer.run_optimization(request_with(["rsip"], iterations=2))

    first_result = await optimizer.wait(first)
    second_result = await optimizer.wait(second)

    assert first_result.run_id != second_result.run_id
    assert len(prompt_store.list_versions(first_result.run_id)) == 1
    assert len(prompt_store.list_versions(second_result.run_id)) == 2
