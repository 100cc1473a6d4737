"""Prompt chaining: run prompts in order, feeding each output to the next step."""

import logging

from powerprompts.clients import CompletionClient
from powerprompts.config import LLMConfig

logger = logging.getLogger(__name__)


class SequentialChain:
    """Executes an ordered list of prompts."""

    def __init__(self, client: CompletionClient, llm: LLMConfig | None = None):
        self.client = client
        self.llm = llm or LLMConfig(temperature=0.7)

    async def run(self, prompts: list[str]) -> list[str]:
        """
        Execute each non-empty prompt with the previous step's output appended.

        Args:
            prompts: Step prompts in order

        Returns:
            Output of every executed step, in order
        """
        outputs: list[str] = []
        previous = ""
        steps = [p for p in prompts if p]
        for index, step in enumerate(steps, start=1):
            full_prompt = f"{step}\n\nPrevious step output:\n{previous}" if previous else step
            logger.info(f"Executing chain step {index}/{len(steps)}")
            previous = await self.client.complete(
                full_prompt,
                model=self.llm.model,
                temperature=self.llm.temperature,
                max_tokens=self.llm.max_tokens,
            )
            outputs.append(previous)
        return outputs
