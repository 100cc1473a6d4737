"""Recursive self-improvement: critique a prompt, then rewrite it."""

import logging

from pydantic import BaseModel

from powerprompts.clients import CompletionClient
from powerprompts.config import LLMConfig
from powerprompts.prompts import build_critique_prompt, build_improvement_prompt
from powerprompts.types import Metrics
from powerprompts.utils.delimiters import clean_xml, validate_xml

logger = logging.getLogger(__name__)


class ImprovementResult(BaseModel):
    """Critique and rewritten prompt."""

    improved_text: str
    critique_text: str


class RecursiveImprover:
    """Two sequential calls: critique (optionally seeded with metrics), then rewrite."""

    def __init__(
        self,
        client: CompletionClient,
        critique_llm: LLMConfig | None = None,
        improvement_llm: LLMConfig | None = None,
    ):
        self.client = client
        self.critique_llm = critique_llm or LLMConfig(temperature=0.5)
        self.improvement_llm = improvement_llm or LLMConfig(temperature=0.7)

    async def improve(self, prompt: str, metrics: Metrics | None = None) -> ImprovementResult:
        """
        Critique ``prompt`` and produce a rewrite that keeps its section tags.

        Args:
            prompt: Current prompt text
            metrics: Scores of the current prompt, included in the critique request

        Returns:
            Improved prompt text and the critique that motivated it
        """
        critique = await self.client.complete(
            build_critique_prompt(prompt, metrics),
            model=self.critique_llm.model,
            temperature=self.critique_llm.temperature,
            max_tokens=self.critique_llm.max_tokens,
        )
        logger.info("Critique generated, generating improvement")

        improved = await self.client.complete(
            build_improvement_prompt(prompt, critique),
            model=self.improvement_llm.model,
            temperature=self.improvement_llm.temperature,
            max_tokens=self.improvement_llm.max_tokens,
        )

        errors = validate_xml(improved)
        if errors:
            logger.warning(f"Tag problems in improved prompt: {errors}")

        return ImprovementResult(improved_text=clean_xml(improved), critique_text=critique)
