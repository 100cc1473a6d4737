"""Select best stage: pick the winning prompt version."""

import logging

from powerprompts.optimizer.base_stage import BaseStage
from powerprompts.optimizer.context import RunContext
from powerprompts.types import PromptVersion

logger = logging.getLogger(__name__)


def select_best_version(versions: list[PromptVersion]) -> PromptVersion:
    """
    Version with the highest aggregate score.

    Ties go to the earliest iteration.

    Args:
        versions: Versions in iteration order

    Returns:
        The winning version
    """
    if not versions:
        raise ValueError("Cannot select a best version from an empty list")
    best = versions[0]
    for version in versions[1:]:
        if version.metrics.aggregate > best.metrics.aggregate:
            best = version
    return best


class SelectBestStage(BaseStage):
    """Choose the run's winning version."""

    @property
    def name(self) -> str:
        """Return the stage name."""
        return "Select Best Version"

    async def _run_async(self, context: RunContext) -> RunContext:
        context.best_version = select_best_version(context.versions)
        logger.info(
            f"Best version: iteration {context.best_version.iteration} "
            f"(score {context.best_version.metrics.aggregate})"
        )
        return context
