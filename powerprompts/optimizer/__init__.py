"""Optimization pipeline: orchestrator, stages and scoring."""

from powerprompts.optimizer.orchestrator import PromptOptimizer

__all__ = ["PromptOptimizer"]
