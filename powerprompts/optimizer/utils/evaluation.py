"""Scoring engine: judge calls plus deterministic sub-metrics."""

import asyncio
import logging

from powerprompts.clients import CompletionClient
from powerprompts.config import LLMConfig
from powerprompts.optimizer.utils.score_calculator import (
    aggregate_score,
    average_metrics,
    consistency_score,
    efficiency_score,
)
from powerprompts.prompts import (
    build_accuracy_prompt,
    build_readability_prompt,
    build_relevance_prompt,
)
from powerprompts.types import EvaluationExample, ExampleEvaluation, Metrics
from powerprompts.utils.parsing import NEUTRAL_SCORE, parse_score

logger = logging.getLogger(__name__)


class Evaluator:
    """Computes Metrics for (prompt, input, output) triples.

    Relevance, accuracy and readability come from judge calls that never
    fail the pipeline: a failed call or an unparseable answer scores 50.
    Consistency and efficiency are computed locally.
    """

    def __init__(self, client: CompletionClient, judge_llm: LLMConfig | None = None):
        """
        Initialize the evaluator.

        Args:
            client: Completion client used for judge calls and token counting
            judge_llm: Judge model settings (defaults to temperature 0.1)
        """
        self.client = client
        self.judge_llm = judge_llm or LLMConfig(temperature=0.1, max_tokens=16)

    async def judge(self, judge_prompt: str) -> float:
        """Run one judge call and parse its score, defaulting to 50 on any failure."""
        try:
            response = await self.client.complete(
                judge_prompt,
                model=self.judge_llm.model,
                temperature=self.judge_llm.temperature,
                max_tokens=self.judge_llm.max_tokens,
            )
        except Exception as e:
            logger.warning(f"Judge call failed ({e}); using neutral score {NEUTRAL_SCORE}")
            return NEUTRAL_SCORE
        return parse_score(response)

    async def relevance(self, input_text: str, output: str) -> float:
        """How well the output addresses the input."""
        return await self.judge(build_relevance_prompt(input_text, output))

    async def accuracy(self, input_text: str, expected_output: str, actual_output: str) -> float:
        """Factual accuracy against the expected output."""
        return await self.judge(build_accuracy_prompt(input_text, expected_output, actual_output))

    async def readability(self, output: str) -> float:
        """Clarity and structure of the output."""
        return await self.judge(build_readability_prompt(output))

    def efficiency(self, prompt_text: str, output: str) -> float:
        """Output/prompt token ratio score."""
        return efficiency_score(
            self.client.count_tokens(prompt_text), self.client.count_tokens(output)
        )

    async def evaluate_example(
        self,
        prompt_text: str,
        example: EvaluationExample,
        output: str,
        round_outputs: list[str] | None = None,
    ) -> ExampleEvaluation:
        """
        Score a single output.

        The three judge calls for one example run concurrently.

        Args:
            prompt_text: Prompt version that produced the output
            example: The example the output answers
            output: Model output
            round_outputs: All outputs produced for this prompt version
                (consistency is measured across them)

        Returns:
            Per-example evaluation with its Metrics
        """
        relevance, accuracy, readability = await asyncio.gather(
            self.relevance(example.input, output),
            self.accuracy(example.input, example.expected_output, output),
            self.readability(output),
        )
        metrics = aggregate_score(
            relevance=relevance,
            accuracy=accuracy,
            consistency=consistency_score(round_outputs if round_outputs else [output]),
            efficiency=self.efficiency(prompt_text, output),
            readability=readability,
        )
        return ExampleEvaluation(
            input=example.input,
            expected_output=example.expected_output,
            actual_output=output,
            metrics=metrics,
        )

    async def evaluate_batch(
        self,
        prompt_text: str,
        results: list[tuple[EvaluationExample, str]],
    ) -> tuple[Metrics, list[ExampleEvaluation]]:
        """
        Score a round's outputs one example at a time.

        Examples are evaluated sequentially to bound concurrent judge calls.

        Args:
            prompt_text: Prompt version that produced the outputs
            results: (example, output) pairs

        Returns:
            Tuple of (averaged metrics, per-example breakdown)
        """
        outputs = [output for _, output in results]
        evaluations = []
        for index, (example, output) in enumerate(results, start=1):
            logger.debug(f"Evaluating example {index}/{len(results)}")
            evaluations.append(
                await self.evaluate_example(prompt_text, example, output, round_outputs=outputs)
            )
        return average_metrics([e.metrics for e in evaluations]), evaluations
