"""Prompt-improvement techniques."""

from powerprompts.techniques.branching_search import (
    BranchingResult,
    BranchingSearch,
    ThoughtNode,
    ThoughtTree,
)
from powerprompts.techniques.engine import TechniqueEngine
from powerprompts.techniques.majority_sampling import (
    MajoritySampler,
    VoteResult,
    cluster_outputs,
    select_majority,
)
from powerprompts.techniques.reasoning_injection import REASONING_TAG, inject_reasoning
from powerprompts.techniques.recursive_improvement import ImprovementResult, RecursiveImprover
from powerprompts.techniques.retrieval_injection import (
    RetrievalInjector,
    format_context,
    splice_context,
)
from powerprompts.techniques.sequential_chaining import SequentialChain

__all__ = [
    "REASONING_TAG",
    "BranchingResult",
    "BranchingSearch",
    "ImprovementResult",
    "MajoritySampler",
    "RecursiveImprover",
    "RetrievalInjector",
    "SequentialChain",
    "TechniqueEngine",
    "ThoughtNode",
    "ThoughtTree",
    "VoteResult",
    "cluster_outputs",
    "format_context",
    "inject_reasoning",
    "select_majority",
    "splice_context",
]
