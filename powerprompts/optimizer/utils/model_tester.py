"""Run a prompt version against one example using the enabled technique path."""

import logging

from powerprompts.clients import CompletionClient
from powerprompts.prompts import REFINEMENT_STEP_PROMPT
from powerprompts.techniques import TechniqueEngine
from powerprompts.types import EvaluationExample, PromptCase

logger = logging.getLogger(__name__)

PLAIN_PATH = "plain"


def execution_path(case: PromptCase) -> str:
    """
    Technique path used for every example of a run.

    Majority sampling takes precedence over branching search, which takes
    precedence over a plain completion (optionally chained).

    Args:
        case: The run's prompt case

    Returns:
        "self_consistency", "tot", "prompt_chaining" or "plain"
    """
    for technique in ("self_consistency", "tot", "prompt_chaining"):
        if case.uses(technique):
            return technique
    return PLAIN_PATH


def build_input_prompt(prompt_text: str, input_text: str) -> str:
    """Prompt text followed by the example input."""
    return f"{prompt_text}\n\nInput: {input_text}"


async def run_example(
    case: PromptCase,
    prompt_text: str,
    example: EvaluationExample,
    client: CompletionClient,
    techniques: TechniqueEngine,
) -> str:
    """
    Produce the output of one example.

    Args:
        case: The run's prompt case (enabled techniques and sampling parameters)
        prompt_text: Current prompt version
        example: Example to run
        client: Completion client for the plain path
        techniques: Technique engine for the other paths

    Returns:
        The model output for the example
    """
    path = execution_path(case)

    if path == "self_consistency":
        vote = await techniques.majority_sample(prompt_text, example.input, case.parameters)
        return vote.winner

    if path == "tot":
        result = await techniques.branching_search(prompt_text, example.input, case.parameters)
        return result.output

    first_step = build_input_prompt(prompt_text, example.input)
    if path == "prompt_chaining":
        outputs = await techniques.run_chain(
            [first_step, f"{first_step}\n\n{REFINEMENT_STEP_PROMPT}"]
        )
        return outputs[-1]

    return await client.complete(first_step, **case.parameters.completion_kwargs())
