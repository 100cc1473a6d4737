"""Main prompt optimizer orchestrator using stage pipeline."""

import asyncio
import logging
import time
import weakref
from typing import Any

from powerprompts.clients import CompletionClient
from powerprompts.config import OptimizerConfig
from powerprompts.errors import RunFailure
from powerprompts.optimizer.base_stage import BaseStage
from powerprompts.optimizer.context import RunContext
from powerprompts.optimizer.stages import (
    GenerateDatasetStage,
    RunIterationsStage,
    SelectBestStage,
    StructurePromptStage,
)
from powerprompts.optimizer.utils.evaluation import Evaluator
from powerprompts.progress import EventType, ProgressChannel
from powerprompts.retrieval import SimilarityStore
from powerprompts.storage import PromptStore
from powerprompts.techniques import TechniqueEngine
from powerprompts.types import (
    DatasetSummary,
    OptimizationRequest,
    OptimizationResult,
    TokenUsage,
)
from powerprompts.utils.validators import check_technique_compatibility

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Optimization cancelled"


class PromptOptimizer:
    """Main orchestrator for the prompt optimization pipeline.

    Runs are independent: each gets its own context and progress channel,
    and only the injected collaborators are shared.
    """

    def __init__(
        self,
        client: CompletionClient,
        store: PromptStore,
        config: OptimizerConfig | None = None,
        similarity_store: SimilarityStore | None = None,
    ):
        """
        Initialize the optimizer.

        Args:
            client: Completion client used by every stage and technique
            store: Prompt store for runs, versions and datasets
            config: Optimizer configuration (defaults when None)
            similarity_store: Store used by retrieval injection
        """
        self.client = client
        self.store = store
        self.config = config or OptimizerConfig()
        self.evaluator = Evaluator(client, judge_llm=self.config.judge_llm)
        thought_scorer = self.evaluator.relevance if self.config.techniques.tree_use_judge else None
        self.techniques = TechniqueEngine(
            client,
            config=self.config,
            similarity_store=similarity_store,
            thought_scorer=thought_scorer,
        )
        self._tasks: weakref.WeakKeyDictionary[ProgressChannel, asyncio.Task] = (
            weakref.WeakKeyDictionary()
        )

        # Initialize stages pipeline
        self.stages: list[BaseStage] = self._create_stages()

    def _create_stages(self) -> list[BaseStage]:
        """
        Create the optimization pipeline stages.

        Returns:
            List of stage instances in execution order
        """
        stage_kwargs = {
            "config": self.config,
            "store": self.store,
            "client": self.client,
            "techniques": self.techniques,
            "evaluator": self.evaluator,
        }

        return [
            # Stage 1: Synthetic dataset
            GenerateDatasetStage(**stage_kwargs),
            # Stage 2: Structured first prompt
            StructurePromptStage(**stage_kwargs),
            # Stage 3: Rounds of execution, scoring and improvement
            RunIterationsStage(**stage_kwargs),
            # Stage 4: Winner
            SelectBestStage(**stage_kwargs),
        ]

    @staticmethod
    def _validate(request: OptimizationRequest | dict[str, Any]) -> OptimizationRequest:
        if isinstance(request, OptimizationRequest):
            return request
        return OptimizationRequest.model_validate(request)

    async def optimize(
        self,
        request: OptimizationRequest | dict[str, Any],
        channel: ProgressChannel | None = None,
    ) -> OptimizationResult:
        """
        Run the full optimization pipeline inline.

        Args:
            request: Optimization request (validated before anything starts)
            channel: Channel receiving progress events (a new one when None)

        Returns:
            Optimization results with the best version and all versions

        Raises:
            pydantic.ValidationError: If the request is invalid (no run is created)
            RunFailure: If the run fails (after the error event is published)
        """
        request = self._validate(request)
        channel = channel or ProgressChannel()
        case = request.to_prompt_case()
        warnings = check_technique_compatibility(case.techniques)

        start_time = time.time()
        usage_before = self.client.usage.model_copy()
        run_id: str | None = None

        channel.emit(
            EventType.OPTIMIZATION_START,
            total_iterations=request.iteration_count,
            warnings=warnings,
        )

        try:
            run_id = self.store.create_prompt_run(case)
            logger.info(f"Starting optimization run {run_id}")

            context = RunContext(
                run_id=run_id,
                case=case,
                request=request,
                start_time=start_time,
                warnings=warnings,
            )
            context.set_channel(channel)

            # Execute all stages sequentially, each updating the context
            for idx, stage in enumerate(self.stages):
                logger.info(f"[STAGE {idx + 1}] {stage.name}")
                context = await stage.run(context)

            best = context.best_version
            self.store.mark_completed(run_id, best.iteration)
            total_time = time.time() - start_time

            channel.emit(
                EventType.OPTIMIZATION_COMPLETE,
                best_version=best.summary(),
                all_versions=[version.summary() for version in context.versions],
                total_time_seconds=total_time,
            )
            logger.info(f"Optimization complete in {total_time:.2f}s")
            channel.close()

            return OptimizationResult(
                run_id=run_id,
                best_version=best,
                all_versions=context.versions,
                dataset=DatasetSummary(
                    id=context.dataset.id,
                    domain=context.dataset.domain,
                    example_count=len(context.dataset.examples),
                    criteria=context.dataset.criteria,
                ),
                warnings=warnings,
                total_time_seconds=total_time,
                token_usage=self._usage_since(usage_before),
            )
        except asyncio.CancelledError:
            logger.info(f"Optimization run {run_id} cancelled")
            if run_id is not None:
                self._record_status(self.store.mark_cancelled, run_id)
            channel.close()
            raise
        except Exception as e:
            logger.error(f"Optimization run {run_id} failed: {e}", exc_info=True)
            if run_id is not None:
                self._record_status(self.store.mark_failed, run_id, str(e))
            channel.emit(
                EventType.ERROR,
                message=str(e) or type(e).__name__,
                details=repr(e.__cause__ or e),
            )
            channel.close()
            raise RunFailure(str(e) or type(e).__name__, run_id=run_id) from e

    def run_optimization(self, request: OptimizationRequest | dict[str, Any]) -> ProgressChannel:
        """
        Start a run as a background task and return its channel immediately.

        Must be called from a running event loop.

        Args:
            request: Optimization request (validated synchronously)

        Returns:
            The run's progress channel
        """
        request = self._validate(request)
        channel = ProgressChannel()
        self._tasks[channel] = asyncio.create_task(self._run_background(request, channel))
        return channel

    async def _run_background(
        self, request: OptimizationRequest, channel: ProgressChannel
    ) -> OptimizationResult | None:
        try:
            return await self.optimize(request, channel)
        except RunFailure:
            # Already reported on the channel
            return None

    def cancel(self, channel: ProgressChannel) -> bool:
        """
        Stop a background run.

        Publishes a single error event, closes the channel, and cancels the
        task. Never raises.

        Args:
            channel: Channel returned by run_optimization

        Returns:
            True if a running task was cancelled
        """
        task = self._tasks.get(channel)
        if task is None or task.done():
            return False
        channel.emit(EventType.ERROR, message=CANCELLED_MESSAGE, details=None)
        channel.close()
        task.cancel()
        return True

    async def wait(self, channel: ProgressChannel) -> OptimizationResult | None:
        """
        Wait for a background run to finish.

        Args:
            channel: Channel returned by run_optimization

        Returns:
            The result, or None if the run failed or was cancelled
        """
        task = self._tasks.get(channel)
        if task is None:
            return None
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    def _usage_since(self, before: TokenUsage) -> TokenUsage:
        after = self.client.usage
        return TokenUsage(
            prompt_tokens=after.prompt_tokens - before.prompt_tokens,
            completion_tokens=after.completion_tokens - before.completion_tokens,
            requests=after.requests - before.requests,
        )

    @staticmethod
    def _record_status(mark, *args) -> None:
        """Record a terminal status without masking the run's own outcome."""
        try:
            mark(*args)
        except Exception as e:
            logger.error(f"Failed to record run status: {e}", exc_info=True)
