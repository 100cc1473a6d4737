"""Base class for optimization stages."""

from abc import ABC, abstractmethod

from powerprompts.clients import CompletionClient
from powerprompts.config import OptimizerConfig
from powerprompts.optimizer.context import RunContext
from powerprompts.optimizer.utils.evaluation import Evaluator
from powerprompts.storage import PromptStore
from powerprompts.techniques import TechniqueEngine


class BaseStage(ABC):
    """Base class for all optimization stages.

    All stages receive and return a RunContext object, ensuring
    a consistent interface across the pipeline.
    """

    def __init__(
        self,
        config: OptimizerConfig,
        store: PromptStore,
        client: CompletionClient,
        techniques: TechniqueEngine,
        evaluator: Evaluator,
    ):
        """
        Initialize stage.

        Args:
            config: Optimizer configuration
            store: Prompt store for runs, versions and datasets
            client: Completion client
            techniques: Technique engine
            evaluator: Scoring engine
        """
        self.config = config
        self.store = store
        self.client = client
        self.techniques = techniques
        self.evaluator = evaluator

    async def run(self, context: RunContext) -> RunContext:
        """
        Execute the stage (dispatch to sync or async based on config).

        Args:
            context: Current run context with all pipeline state

        Returns:
            Updated run context with this stage's outputs
        """
        if self.config.parallel_execution:
            return await self._run_async(context)
        else:
            return await self._run_sync(context)

    @abstractmethod
    async def _run_async(self, context: RunContext) -> RunContext:
        """
        Execute the stage in parallel/async mode.

        Args:
            context: Current run context with all pipeline state

        Returns:
            Updated run context with this stage's outputs
        """
        pass

    async def _run_sync(self, context: RunContext) -> RunContext:
        """
        Execute the stage in sequential mode.

        Stages without any concurrency run the same way in both modes.
        """
        return await self._run_async(context)

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the stage name for logging."""
        pass
