"""Structure prompt stage: rewrite the raw prompt into a structuring template."""

import logging

from powerprompts.optimizer.base_stage import BaseStage
from powerprompts.optimizer.context import RunContext
from powerprompts.prompts import build_structuring_prompt
from powerprompts.utils.delimiters import clean_xml, validate_xml

logger = logging.getLogger(__name__)


class StructurePromptStage(BaseStage):
    """Build the first round's prompt text.

    Applies reasoning injection and retrieval injection afterwards when
    those techniques are enabled.
    """

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "Structure Prompt"

    async def _run_async(self, context: RunContext) -> RunContext:
        case = context.case
        llm = self.config.structuring_llm

        logger.info(f"Structuring prompt with {case.template}")
        structured = await self.client.complete(
            build_structuring_prompt(case.original_text, case.template),
            model=llm.model,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
        )

        errors = validate_xml(structured)
        if errors:
            logger.warning(f"Tag problems in structured prompt: {errors}")
        prompt = clean_xml(structured)

        if case.uses("cot"):
            prompt = self.techniques.apply_reasoning(prompt)
            logger.info("Applied reasoning injection")

        if case.uses("rag"):
            prompt = await self.techniques.retrieve_context(
                prompt,
                case.original_text,
                collection=context.request.rag_collection,
                top_k=context.request.rag_top_k,
            )

        context.current_prompt = prompt
        return context
