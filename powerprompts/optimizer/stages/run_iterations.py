"""Run iterations stage: sample, execute, score, store and optionally improve."""

import asyncio
import logging
import random
import time

from powerprompts.optimizer.base_stage import BaseStage
from powerprompts.optimizer.context import RunContext
from powerprompts.optimizer.utils.model_tester import PLAIN_PATH, execution_path, run_example
from powerprompts.progress import EventType
from powerprompts.types import EvaluationExample, PromptVersion

logger = logging.getLogger(__name__)


class RunIterationsStage(BaseStage):
    """Execute every round of the run, strictly one after another."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "Run Iterations"

    async def _run_async(self, context: RunContext) -> RunContext:
        """Run all rounds with bounded per-example concurrency."""
        return await self._run_rounds(context, parallel=True)

    async def _run_sync(self, context: RunContext) -> RunContext:
        """Run all rounds with examples executed one at a time."""
        return await self._run_rounds(context, parallel=False)

    async def _run_rounds(self, context: RunContext, parallel: bool) -> RunContext:
        if context.dataset is None:
            raise RuntimeError("Dataset must be generated before running iterations")

        rng = random.Random(self.config.sample_seed)
        total = context.request.iteration_count
        for iteration in range(1, total + 1):
            await self._run_round(context, iteration, total, rng, parallel)
        return context

    async def _run_round(
        self,
        context: RunContext,
        iteration: int,
        total: int,
        rng: random.Random,
        parallel: bool,
    ) -> None:
        """
        Run one round and append its PromptVersion.

        Args:
            context: Run context
            iteration: 1-based round index
            total: Number of rounds in the run
            rng: Random source for example sampling
            parallel: Execute examples concurrently
        """
        round_start = time.time()
        prompt_text = context.current_prompt
        logger.info(f"=== Iteration {iteration}/{total} ===")
        context.publish(EventType.ITERATION_START, iteration=iteration, prompt=prompt_text)

        examples = context.dataset.examples
        sample = rng.sample(examples, min(self.config.sample_size, len(examples)))
        logger.info(f"Evaluating {len(sample)} sampled examples (out of {len(examples)} total)")
        context.publish(EventType.EXECUTING_TESTS, count=len(sample), iteration=iteration)

        path = execution_path(context.case)
        if path != PLAIN_PATH:
            logger.info(f"Applying {path} to each example")
            context.publish(EventType.APPLYING_TECHNIQUE, technique=path, iteration=iteration)

        if parallel:
            outputs = await self._execute_parallel(context, prompt_text, sample, iteration)
        else:
            outputs = await self._execute_sequential(context, prompt_text, sample, iteration)

        context.publish(EventType.EVALUATING_METRICS, iteration=iteration)
        metrics, details = await self.evaluator.evaluate_batch(
            prompt_text, list(zip(sample, outputs))
        )
        logger.info(f"Iteration {iteration} aggregate score: {metrics.aggregate}")
        context.publish(
            EventType.METRICS_CALCULATED, metrics=metrics.model_dump(), iteration=iteration
        )

        version = PromptVersion(
            iteration=iteration,
            prompt_text=prompt_text,
            metrics=metrics,
            critique=context.pending_critique,
            techniques_applied=list(context.request.techniques_enabled),
            evaluation_details=details,
            duration_seconds=time.time() - round_start,
        )
        self.store.append_version(context.run_id, version)
        context.versions.append(version)

        context.publish(
            EventType.ITERATION_COMPLETE,
            iteration=iteration,
            prompt_version=prompt_text,
            metrics=metrics.model_dump(),
            evaluation_details=[detail.model_dump() for detail in details],
            techniques=version.techniques_applied,
            duration_seconds=version.duration_seconds,
        )
        logger.info(f"Iteration {iteration} complete in {version.duration_seconds:.2f}s")

        if iteration < total and context.case.uses("rsip"):
            context.publish(EventType.APPLYING_RSIP, iteration=iteration)
            result = await self.techniques.improve(prompt_text, metrics)
            context.current_prompt = result.improved_text
            context.pending_critique = result.critique_text
            context.publish(
                EventType.PROMPT_IMPROVED,
                iteration=iteration,
                critique=result.critique_text,
                improved_prompt=result.improved_text,
            )

    async def _execute_parallel(
        self,
        context: RunContext,
        prompt_text: str,
        sample: list[EvaluationExample],
        iteration: int,
    ) -> list[str]:
        """
        Execute sampled examples with bounded concurrency.

        Progress is published in completion order; outputs keep sample order.
        """
        semaphore = asyncio.Semaphore(self.config.max_technique_concurrency)

        async def run_one(index: int, example: EvaluationExample) -> tuple[int, str]:
            async with semaphore:
                output = await run_example(
                    context.case, prompt_text, example, self.client, self.techniques
                )
            return index, output

        tasks = [asyncio.ensure_future(run_one(i, example)) for i, example in enumerate(sample)]
        outputs: list[str] = [""] * len(sample)
        try:
            for completed, next_done in enumerate(asyncio.as_completed(tasks), start=1):
                index, output = await next_done
                outputs[index] = output
                context.publish(
                    EventType.TEST_PROGRESS,
                    current=completed,
                    total=len(sample),
                    iteration=iteration,
                )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # Collect sibling failures so none is left unretrieved
            await asyncio.gather(*tasks, return_exceptions=True)
        return outputs

    async def _execute_sequential(
        self,
        context: RunContext,
        prompt_text: str,
        sample: list[EvaluationExample],
        iteration: int,
    ) -> list[str]:
        """Execute sampled examples one at a time."""
        outputs = []
        for current, example in enumerate(sample, start=1):
            outputs.append(
                await run_example(context.case, prompt_text, example, self.client, self.techniques)
            )
            context.publish(
                EventType.TEST_PROGRESS, current=current, total=len(sample), iteration=iteration
            )
        return outputs
