"""Generate dataset stage: domain, synthetic examples and evaluation criteria."""

import logging
from typing import Any

from powerprompts.config import LLMConfig
from powerprompts.optimizer.base_stage import BaseStage
from powerprompts.optimizer.context import RunContext
from powerprompts.progress import EventType
from powerprompts.prompts import (
    build_criteria_prompt,
    build_domain_prompt,
    build_examples_prompt,
)
from powerprompts.types import DIFFICULTIES, Criterion, Dataset, EvaluationExample
from powerprompts.utils.parsing import parse_json_array

logger = logging.getLogger(__name__)

DEFAULT_CRITERIA = [
    Criterion(name="relevance", description="How well the output addresses the input", weight=1.0),
    Criterion(name="accuracy", description="Factual correctness of the output", weight=1.2),
    Criterion(
        name="consistency", description="Uniformity and coherence across outputs", weight=0.8
    ),
    Criterion(name="efficiency", description="Conciseness without losing meaning", weight=0.9),
    Criterion(name="readability", description="Clarity and structure of the output", weight=1.0),
]


def fallback_examples(prompt: str, count: int) -> list[EvaluationExample]:
    """Deterministic examples used when example generation cannot be parsed."""
    return [
        EvaluationExample(
            input=f"Test case {i + 1} for: {prompt[:50]}...",
            expected_output="Expected output for this test case",
            difficulty=DIFFICULTIES[i % 3],
            tags=("fallback",),
        )
        for i in range(count)
    ]


def coerce_example(raw: Any) -> EvaluationExample | None:
    """Build an example from one parsed JSON item, filling missing fields."""
    if not isinstance(raw, dict):
        return None
    difficulty = raw.get("difficulty")
    tags = raw.get("tags")
    return EvaluationExample(
        input=str(raw.get("input") or "No input provided"),
        expected_output=str(raw.get("expected_output") or "No expected output provided"),
        difficulty=difficulty if difficulty in DIFFICULTIES else "medium",
        tags=tuple(str(tag) for tag in tags) if isinstance(tags, list) else (),
    )


def coerce_criterion(raw: Any) -> Criterion | None:
    """Build a criterion from one parsed JSON item (None when unusable)."""
    if not isinstance(raw, dict) or not raw.get("name"):
        return None
    try:
        weight = max(0.0, float(raw.get("weight", 1.0)))
    except (TypeError, ValueError):
        weight = 1.0
    return Criterion(
        name=str(raw["name"]), description=str(raw.get("description", "")), weight=weight
    )


class GenerateDatasetStage(BaseStage):
    """Generate the run's synthetic evaluation dataset."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "Generate Dataset"

    async def _complete(self, prompt: str, llm: LLMConfig) -> str:
        return await self.client.complete(
            prompt, model=llm.model, temperature=llm.temperature, max_tokens=llm.max_tokens
        )

    async def _identify_domain(self, user_prompt: str) -> str:
        domain = await self._complete(build_domain_prompt(user_prompt), self.config.domain_llm)
        return domain.strip() or "general"

    async def _generate_examples(
        self, user_prompt: str, count: int, difficulty_levels: list[str]
    ) -> list[EvaluationExample]:
        response = await self._complete(
            build_examples_prompt(user_prompt, count, difficulty_levels), self.config.dataset_llm
        )
        raw_examples = parse_json_array(response, fallback=None, label="examples")
        if raw_examples is None:
            return fallback_examples(user_prompt, count)

        examples = [e for e in (coerce_example(raw) for raw in raw_examples) if e is not None]
        if not examples:
            logger.warning("No usable examples in response. Using fallback.")
            return fallback_examples(user_prompt, count)
        return examples

    async def _generate_criteria(self, user_prompt: str, domain: str) -> list[Criterion]:
        response = await self._complete(
            build_criteria_prompt(user_prompt, domain), self.config.criteria_llm
        )
        raw_criteria = parse_json_array(response, fallback=None, label="criteria")
        if raw_criteria is None:
            return list(DEFAULT_CRITERIA)

        criteria = [c for c in (coerce_criterion(raw) for raw in raw_criteria) if c is not None]
        return criteria or list(DEFAULT_CRITERIA)

    async def _run_async(self, context: RunContext) -> RunContext:
        """
        Identify the domain, generate examples and criteria, and store the dataset.

        Args:
            context: Run context

        Returns:
            Updated context with dataset set
        """
        user_prompt = context.case.original_text
        dataset_config = context.request.dataset_config

        logger.info(f"Generating dataset for run {context.run_id}")
        domain = await self._identify_domain(user_prompt)
        logger.info(f"Domain identified: {domain}")

        examples = await self._generate_examples(
            user_prompt, dataset_config.example_count, list(dataset_config.difficulty_levels)
        )
        logger.info(f"Generated {len(examples)} examples")

        criteria = await self._generate_criteria(user_prompt, domain)
        logger.info(f"Generated {len(criteria)} criteria")

        dataset = Dataset(
            domain=domain,
            difficulty_levels=list(dataset_config.difficulty_levels),
            examples=examples,
            criteria=criteria,
        )
        dataset.id = self.store.save_dataset(context.run_id, dataset)
        context.dataset = dataset

        context.publish(
            EventType.DATASET_GENERATED, example_count=len(examples), domain=domain
        )
        return context
