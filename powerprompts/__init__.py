"""
PowerPrompts - iterative prompt optimization against a synthetic evaluation dataset.

A run generates a dataset for the prompt, rewrites the prompt into a
structuring template, then executes 1-3 rounds of:
1. Sample examples and run them through the enabled technique path
2. Score outputs on relevance, accuracy, consistency, efficiency, readability
3. Optionally critique and rewrite the prompt for the next round
and finally selects the best-scoring version.

Public API:
- CompletionClient: Abstract completion/embedding client
- OpenAICompletionClient: Client for OpenAI and OpenRouter
- PromptOptimizer: Orchestrator (run_optimization / optimize / cancel / wait)
- ProgressChannel: Event stream of a run
- OptimizerConfig, Settings, load_settings: Configuration
- OptimizationRequest, OptimizationResult: Run input and output
"""

from powerprompts.clients import CompletionClient, OpenAICompletionClient
from powerprompts.config import OptimizerConfig, Settings, load_settings
from powerprompts.optimizer import PromptOptimizer
from powerprompts.progress import EventType, ProgressChannel, ProgressEvent
from powerprompts.types import OptimizationRequest, OptimizationResult

__all__ = [
    "CompletionClient",
    "EventType",
    "OpenAICompletionClient",
    "OptimizationRequest",
    "OptimizationResult",
    "OptimizerConfig",
    "ProgressChannel",
    "ProgressEvent",
    "PromptOptimizer",
    "Settings",
    "load_settings",
]
