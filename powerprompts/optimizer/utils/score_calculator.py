"""Deterministic scoring: consistency, efficiency and metric averaging."""

import logging
import math

from powerprompts.types import Metrics

logger = logging.getLogger(__name__)


def consistency_score(outputs: list[str]) -> float:
    """
    Score how uniform output lengths are across one prompt version.

    Uses the coefficient of variation (population standard deviation over
    mean) of character lengths: ``100 - CV * 100``, floored at 0.

    Args:
        outputs: All outputs produced for the same prompt version

    Returns:
        Score in [0, 100]; 100 for fewer than two outputs
    """
    if len(outputs) < 2:
        return 100.0

    lengths = [len(output) for output in outputs]
    mean = sum(lengths) / len(lengths)
    if mean == 0:
        return 100.0

    variance = sum((length - mean) ** 2 for length in lengths) / len(lengths)
    cv = math.sqrt(variance) / mean
    return max(0.0, min(100.0, 100.0 - cv * 100.0))


def efficiency_score(prompt_tokens: int, output_tokens: int) -> float:
    """
    Score the output/prompt token ratio.

    Ratios in [0.5, 2] score 80-100, peaking at 1. Shorter outputs score
    ``ratio * 100``; longer ones lose 10 points per unit of ratio above 2,
    never below 50.

    Args:
        prompt_tokens: Tokens in the prompt (floored at 1)
        output_tokens: Tokens in the output

    Returns:
        Score in [0, 100]
    """
    ratio = output_tokens / max(1, prompt_tokens)
    if ratio < 0.5:
        score = ratio * 100.0
    elif ratio > 2.0:
        score = max(50.0, 100.0 - (ratio - 2.0) * 10.0)
    else:
        score = 80.0 + (1.0 - abs(ratio - 1.0)) * 20.0
    return max(0.0, min(100.0, score))


def aggregate_score(
    relevance: float,
    accuracy: float,
    consistency: float,
    efficiency: float,
    readability: float,
) -> Metrics:
    """Combine sub-metrics into Metrics with the fixed-weight aggregate."""
    return Metrics.calculate_aggregate(
        relevance=relevance,
        accuracy=accuracy,
        consistency=consistency,
        efficiency=efficiency,
        readability=readability,
    )


def average_metrics(metrics: list[Metrics]) -> Metrics:
    """
    Average each sub-metric across a batch, rounding to one decimal.

    The aggregate is recomputed from the averaged sub-metrics.

    Args:
        metrics: Per-example metrics

    Returns:
        Mean metrics (all zero for an empty batch)
    """
    if not metrics:
        return Metrics.zero()

    def mean(field: str) -> float:
        return round(sum(getattr(m, field) for m in metrics) / len(metrics), 1)

    averaged = aggregate_score(
        relevance=mean("relevance"),
        accuracy=mean("accuracy"),
        consistency=mean("consistency"),
        efficiency=mean("efficiency"),
        readability=mean("readability"),
    )
    logger.info(f"Averaged {len(metrics)} evaluations: aggregate = {averaged.aggregate:.1f}")
    return averaged
