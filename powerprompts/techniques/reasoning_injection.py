"""Chain-of-thought: inject a step-by-step reasoning block into a structured prompt."""

import logging

from powerprompts.utils.delimiters import find_section, has_tag, wrap_tag

logger = logging.getLogger(__name__)

REASONING_TAG = "reasoning_approach"

REASONING_INSTRUCTION = """Let's approach this step-by-step:
1. First, understand the core requirement
2. Break down the problem into smaller parts
3. Address each part systematically
4. Synthesize the solution"""

# Sections that hold "the task", in order of preference
ANCHOR_SECTIONS = ("action", "objective")


def inject_reasoning(prompt: str) -> str:
    """
    Insert the reasoning block right after the task section.

    The block goes after the first of ``<action>`` / ``<objective>``; if
    neither exists it is appended. A prompt that already carries the block
    is returned unchanged.

    Args:
        prompt: Structured prompt text

    Returns:
        Prompt with exactly one reasoning block
    """
    if has_tag(prompt, REASONING_TAG):
        return prompt

    block = wrap_tag(REASONING_TAG, REASONING_INSTRUCTION)
    for section in ANCHOR_SECTIONS:
        match = find_section(prompt, section)
        if match is not None:
            logger.info(f"Injecting reasoning block after <{section}>")
            return f"{prompt[: match.end()]}\n\n{block}{prompt[match.end():]}"

    logger.info("No task section found; appending reasoning block")
    return f"{prompt}\n\n{block}"
