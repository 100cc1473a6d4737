"""Console runner for prompt optimization.

Subscribes to a run's progress channel, prints one status line per event,
and prints the winning prompt when the run completes.
"""

import logging

from powerprompts.optimizer import PromptOptimizer
from powerprompts.progress import EventType, ProgressEvent
from powerprompts.types import OptimizationRequest, OptimizationResult

logger = logging.getLogger(__name__)


def format_event(event: ProgressEvent) -> str:
    """
    One-line status for a progress event.

    Args:
        event: Event to describe

    Returns:
        Human-readable status line
    """
    data = event.data
    kind = event.type
    if kind == EventType.OPTIMIZATION_START:
        line = f"Starting optimization ({data.get('total_iterations')} iterations)"
        for warning in data.get("warnings") or []:
            line += f"\n  ! {warning}"
        return line
    if kind == EventType.DATASET_GENERATED:
        return f"Dataset ready: {data.get('example_count')} examples ({data.get('domain')})"
    if kind == EventType.ITERATION_START:
        return f"\n[ITERATION {data.get('iteration')}]"
    if kind == EventType.EXECUTING_TESTS:
        return f"  Executing {data.get('count')} examples..."
    if kind == EventType.TEST_PROGRESS:
        return f"  Example {data.get('current')}/{data.get('total')} done"
    if kind == EventType.APPLYING_TECHNIQUE:
        return f"  Applying {data.get('technique')}"
    if kind == EventType.EVALUATING_METRICS:
        return "  Evaluating metrics..."
    if kind == EventType.METRICS_CALCULATED:
        return f"  Aggregate score: {data.get('metrics', {}).get('aggregate')}"
    if kind == EventType.APPLYING_RSIP:
        return "  Critiquing and rewriting prompt..."
    if kind == EventType.PROMPT_IMPROVED:
        return "  Prompt improved for next iteration"
    if kind == EventType.ITERATION_COMPLETE:
        return f"  Iteration complete in {data.get('duration_seconds', 0.0):.1f}s"
    if kind == EventType.OPTIMIZATION_COMPLETE:
        best = data.get("best_version") or {}
        return (
            f"\nOptimization complete in {data.get('total_time_seconds', 0.0):.1f}s "
            f"(best: iteration {best.get('iteration')})"
        )
    if kind == EventType.ERROR:
        return f"ERROR: {data.get('message')}"
    return kind.value


def display_results(result: OptimizationResult) -> None:
    """
    Display optimization results to console.

    Args:
        result: Optimization result containing the best version and metrics
    """
    best = result.best_version
    print("\n" + "=" * 70)
    print("OPTIMIZATION COMPLETE!")
    print("=" * 70)
    print(f"\nRun ID: {result.run_id}")
    print(f"Domain: {result.dataset.domain} ({result.dataset.example_count} examples)")
    print(f"Total Time: {result.total_time_seconds:.1f} seconds")
    print(f"Tokens Used: {result.token_usage.total_tokens} ({result.token_usage.requests} requests)")
    print("\nIteration Comparison:")
    for version in result.all_versions:
        marker = "*" if version.iteration == best.iteration else " "
        print(f" {marker} Iteration {version.iteration}: {version.metrics.aggregate:.1f}")

    metrics = best.metrics
    print("\nBest Version Metrics:")
    print(f"  Relevance:   {metrics.relevance:.1f}")
    print(f"  Accuracy:    {metrics.accuracy:.1f}")
    print(f"  Consistency: {metrics.consistency:.1f}")
    print(f"  Efficiency:  {metrics.efficiency:.1f}")
    print(f"  Readability: {metrics.readability:.1f}")
    print(f"  Aggregate:   {metrics.aggregate:.1f}")

    print("\n" + "=" * 70)
    print("OPTIMIZED PROMPT:")
    print("=" * 70)
    print(best.prompt_text)
    print("=" * 70)


class OptimizationRunner:
    """Runner for executing prompt optimization with console reporting."""

    def __init__(self, optimizer: PromptOptimizer, verbose: bool = True):
        """Initialize the optimization runner.

        Args:
            optimizer: Configured optimizer
            verbose: Whether to print progress messages
        """
        self.optimizer = optimizer
        self.verbose = verbose

    async def run(self, request: OptimizationRequest) -> OptimizationResult | None:
        """Run one optimization and report it.

        Returns:
            The result, or None if the run failed
        """
        if self.verbose:
            self._print_header(request)

        channel = self.optimizer.run_optimization(request)
        if self.verbose:
            channel.subscribe(lambda event: print(format_event(event), flush=True))

        result = await self.optimizer.wait(channel)

        if result is not None and self.verbose:
            display_results(result)
        return result

    def _print_header(self, request: OptimizationRequest) -> None:
        """Print optimization header."""
        config = self.optimizer.config
        print("=" * 70)
        print("PROMPT OPTIMIZATION PIPELINE")
        print("=" * 70)
        print()
        print(f"Prompt: {request.prompt[:200]}")
        print()
        print("Configuration:")
        print(f"  Framework: {request.selected_framework}")
        print(f"  Techniques: {', '.join(request.techniques_enabled) or 'none'}")
        print(f"  Iterations: {request.iteration_count}")
        print(f"  Examples: {request.dataset_config.example_count}")
        print(f"  Sample size per iteration: {config.sample_size}")
        if config.parallel_execution:
            print(
                f"  Parallel execution: enabled "
                f"(max concurrent examples: {config.max_technique_concurrency})"
            )
        else:
            print("  Parallel execution: disabled")
        print()
        print("Starting optimization...")
        print()
