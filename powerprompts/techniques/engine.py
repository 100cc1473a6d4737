"""Technique engine: one entry point for all prompt-improvement techniques."""

import logging

from powerprompts.clients import CompletionClient
from powerprompts.config import OptimizerConfig
from powerprompts.retrieval.vector_store import SimilarityStore
from powerprompts.techniques.branching_search import BranchingResult, BranchingSearch, ThoughtScorer
from powerprompts.techniques.majority_sampling import MajoritySampler, VoteResult
from powerprompts.techniques.reasoning_injection import inject_reasoning
from powerprompts.techniques.recursive_improvement import ImprovementResult, RecursiveImprover
from powerprompts.techniques.retrieval_injection import RetrievalInjector
from powerprompts.techniques.sequential_chaining import SequentialChain
from powerprompts.types import Metrics, SamplingParameters

logger = logging.getLogger(__name__)


class TechniqueEngine:
    """Holds one configured instance of each technique.

    The client and similarity store are injected so that every run can use
    its own instances (and tests can use fakes).
    """

    def __init__(
        self,
        client: CompletionClient,
        config: OptimizerConfig | None = None,
        similarity_store: SimilarityStore | None = None,
        thought_scorer: ThoughtScorer | None = None,
    ):
        """
        Initialize the engine.

        Args:
            client: Completion client shared by all techniques
            config: Optimizer configuration (technique tunables, per-role LLMs)
            similarity_store: Store used for retrieval injection
            thought_scorer: Judge for branching search (heuristic when None)
        """
        self.client = client
        self.config = config or OptimizerConfig()
        tunables = self.config.techniques

        self.sampler = MajoritySampler(
            client,
            paths=tunables.sampling_paths,
            base_temperature=tunables.sampling_base_temperature,
            temperature_step=tunables.sampling_temperature_step,
            similarity_threshold=tunables.similarity_threshold,
        )
        self.tree_search = BranchingSearch(
            client,
            depth=tunables.tree_depth,
            branches=tunables.tree_branches,
            threshold=tunables.tree_threshold,
            temperature=tunables.tree_temperature,
            scorer=thought_scorer,
            seed=tunables.tree_seed,
        )
        self.improver = RecursiveImprover(
            client,
            critique_llm=self.config.critique_llm,
            improvement_llm=self.config.improvement_llm,
        )
        self.retriever = RetrievalInjector(similarity_store)
        self.chain = SequentialChain(client, llm=self.config.chaining_llm)

    def apply_reasoning(self, prompt: str) -> str:
        """Reasoning-injection (no model call)."""
        return inject_reasoning(prompt)

    async def majority_sample(
        self, prompt: str, input_text: str, parameters: SamplingParameters | None = None
    ) -> VoteResult:
        """Majority-sampling for one example."""
        parameters = parameters or SamplingParameters()
        return await self.sampler.sample(
            prompt, input_text, model=parameters.model, max_tokens=parameters.max_tokens
        )

    async def branching_search(
        self, prompt: str, input_text: str, parameters: SamplingParameters | None = None
    ) -> BranchingResult:
        """Branching-search for one example."""
        parameters = parameters or SamplingParameters()
        return await self.tree_search.search(
            prompt, input_text, model=parameters.model, max_tokens=parameters.max_tokens
        )

    async def improve(self, prompt: str, metrics: Metrics | None = None) -> ImprovementResult:
        """Recursive-improvement of a prompt."""
        return await self.improver.improve(prompt, metrics)

    async def retrieve_context(
        self, prompt: str, query: str, collection: str | None = None, top_k: int | None = None
    ) -> str:
        """Retrieval-injection; returns ``prompt`` unchanged when nothing is retrieved."""
        return await self.retriever.inject(prompt, query, collection=collection, top_k=top_k)

    async def run_chain(self, prompts: list[str]) -> list[str]:
        """Sequential-chaining over ordered prompts."""
        return await self.chain.run(prompts)
