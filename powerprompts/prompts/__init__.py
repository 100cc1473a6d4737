"""Meta-prompts used by the pipeline."""

from powerprompts.prompts.dataset_generation import (
    build_criteria_prompt,
    build_domain_prompt,
    build_examples_prompt,
)
from powerprompts.prompts.evaluation import (
    build_accuracy_prompt,
    build_readability_prompt,
    build_relevance_prompt,
)
from powerprompts.prompts.frameworks import (
    TEMPLATES,
    StructuringTemplate,
    build_structuring_prompt,
    get_template,
)
from powerprompts.prompts.meta_optimizer import (
    REFINEMENT_STEP_PROMPT,
    build_critique_prompt,
    build_improvement_prompt,
)

__all__ = [
    "REFINEMENT_STEP_PROMPT",
    "TEMPLATES",
    "StructuringTemplate",
    "build_accuracy_prompt",
    "build_criteria_prompt",
    "build_critique_prompt",
    "build_domain_prompt",
    "build_examples_prompt",
    "build_improvement_prompt",
    "build_readability_prompt",
    "build_relevance_prompt",
    "build_structuring_prompt",
    "get_template",
]
