"""Test the scoring engine: judge parsing, deterministic sub-metrics and averaging."""

import pytest

from powerprompts.errors import RateLimitedError
from powerprompts.optimizer.utils import (
    Evaluator,
    aggregate_score,
    average_metrics,
    consistency_score,
    efficiency_score,
)
from powerprompts.tests.helpers import FakeCompletionClient
from powerprompts.types import EvaluationExample, Metrics
from powerprompts.utils.parsing import parse_score


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("87", 87.0),
        (" 72.5\n", 72.5),
        ("eighty-seven", 50.0),
        ("Score: 90", 50.0),
        ("", 50.0),
        ("140", 100.0),
        ("-3", 0.0),
    ],
)
def test_parse_score(raw, expected):
    """Only a bare number is accepted; everything else is neutral."""
    assert parse_score(raw) == expected


def test_consistency_single_output_is_perfect():
    assert consistency_score(["only one"]) == 100.0
    assert consistency_score([]) == 100.0


def test_consistency_equal_lengths_is_perfect():
    assert consistency_score(["abcd", "efgh", "ijkl"]) == 100.0


def test_consistency_drops_with_length_spread():
    """Lengths 10 and 30: mean 20, std 10, CV 0.5, score 50."""
    assert consistency_score(["a" * 10, "b" * 30]) == pytest.approx(50.0)


def test_consistency_floors_at_zero():
    assert consistency_score(["a", "b" * 1000, "c"]) == 0.0


@pytest.mark.parametrize(
    "prompt_tokens, output_tokens, expected",
    [
        (100, 100, 100.0),  # ratio 1
        (100, 50, 90.0),  # ratio 0.5, lower edge of the band
        (100, 200, 80.0),  # ratio 2, upper edge of the band
        (100, 25, 25.0),  # too short: ratio * 100
        (100, 400, 80.0),  # ratio 4: 100 - 2 * 10
        (10, 1000, 50.0),  # very long outputs floor at 50
        (0, 1, 100.0),  # prompt tokens floored at 1
    ],
)
def test_efficiency_bands(prompt_tokens, output_tokens, expected):
    assert efficiency_score(prompt_tokens, output_tokens) == pytest.approx(expected)


def test_aggregate_is_weighted_and_rounded():
    """Weights 1.2, 1.5, 0.8, 0.7, 1.0 over 5.2 total."""
    metrics = aggregate_score(
        relevance=80, accuracy=90, consistency=100, efficiency=60, readability=70
    )
    expected = round((80 * 1.2 + 90 * 1.5 + 100 * 0.8 + 60 * 0.7 + 70 * 1.0) / 5.2, 1)
    assert metrics.aggregate == expected


def test_aggregate_clamps_inputs():
    metrics = aggregate_score(
        relevance=150, accuracy=-20, consistency=100, efficiency=100, readability=100
    )
    assert metrics.relevance == 100.0
    assert metrics.accuracy == 0.0
    assert 0.0 <= metrics.aggregate <= 100.0


def test_average_recomputes_aggregate_from_means():
    """The batch aggregate comes from the averaged sub-metrics, not averaged aggregates."""
    first = aggregate_score(100, 0, 100, 0, 100)
    second = aggregate_score(0, 100, 0, 100, 0)

    averaged = average_metrics([first, second])

    assert averaged.relevance == 50.0
    assert averaged.accuracy == 50.0
    assert averaged.aggregate == aggregate_score(50, 50, 50, 50, 50).aggregate


def test_average_rounds_to_one_decimal():
    metrics = [aggregate_score(10, 10, 10, 10, 10), aggregate_score(10, 10, 10, 10, 11)]
    assert average_metrics(metrics).readability == 10.5

    thirds = [aggregate_score(1, 0, 0, 0, 0)] + [aggregate_score(0, 0, 0, 0, 0)] * 2
    assert average_metrics(thirds).relevance == 0.3


def test_average_of_empty_batch_is_zero():
    assert average_metrics([]) == Metrics.zero()


@pytest.mark.asyncio
async def test_evaluate_example_combines_judge_and_local_scores():
    """
    Test one example's evaluation.

    The three judge answers become relevance, accuracy and readability.
    """
    client = FakeCompletionClient(judge_score="90")
    evaluator = Evaluator(client)
    example = EvaluationExample(input="Write about rain", expected_output="Rain falls softly")

    evaluation = await evaluator.evaluate_example("Write a haiku", example, "Rain taps the roof")

    assert evaluation.metrics.relevance == 90.0
    assert evaluation.metrics.accuracy == 90.0
    assert evaluation.metrics.readability == 90.0
    assert evaluation.metrics.consistency == 100.0
    assert evaluation.actual_output == "Rain taps the roof"
    assert len(client.calls_of("judge")) == 3
    # Judge calls run at low temperature
    assert {call["temperature"] for call in client.calls_of("judge")} == {0.1}


@pytest.mark.asyncio
async def test_judge_failure_is_neutral():
    client = FakeCompletionClient(failures={"judge": RateLimitedError("Rate limited")})
    evaluator = Evaluator(client)

    assert await evaluator.relevance("input", "output") == 50.0


@pytest.mark.asyncio
async def test_evaluate_batch_measures_consistency_across_outputs():
    """Outputs of different lengths lower the consistency of every example."""
    evaluator = Evaluator(FakeCompletionClient(judge_score="70"))
    example = EvaluationExample(input="Describe the sea", expected_output="Blue and wide")

    metrics, details = await evaluator.evaluate_batch(
        "Describe things", [(example, "a" * 10), (example, "b" * 30)]
    )

    assert len(details) == 2
    assert metrics.consistency == pytest.approx(50.0)
    assert metrics.relevance == 70.0


@pytest.mark.asyncio
async def test_evaluate_empty_batch():
    evaluator = Evaluator(FakeCompletionClient())

    metrics, details = await evaluator.evaluate_batch("Prompt", [])

    assert metrics == Metrics.zero()
    assert details == []
