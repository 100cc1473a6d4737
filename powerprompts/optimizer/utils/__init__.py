"""Helpers shared by the optimization stages."""

from powerprompts.optimizer.utils.evaluation import Evaluator
from powerprompts.optimizer.utils.model_tester import execution_path, run_example
from powerprompts.optimizer.utils.score_calculator import (
    aggregate_score,
    average_metrics,
    consistency_score,
    efficiency_score,
)

__all__ = [
    "Evaluator",
    "aggregate_score",
    "average_metrics",
    "consistency_score",
    "efficiency_score",
    "execution_path",
    "run_example",
]
