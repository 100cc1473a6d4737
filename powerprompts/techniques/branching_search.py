"""Tree of thoughts: expand a bounded tree of reasoning steps and keep the best leaf."""

import logging
import random
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, Field

from powerprompts.clients import CompletionClient

logger = logging.getLogger(__name__)

ROOT_SCORE = 100.0
HEURISTIC_SCORE_RANGE = (70.0, 100.0)

# (input_text, thought) -> score in [0, 100]
ThoughtScorer = Callable[[str, str], Awaitable[float]]


class ThoughtNode(BaseModel):
    """A node in the thought tree; links are indices into ThoughtTree.nodes."""

    index: int
    parent: int | None = None
    depth: int = 0
    text: str = ""
    score: float = 0.0
    children: list[int] = Field(default_factory=list)
    failed: bool = False


class ThoughtTree(BaseModel):
    """Arena of thought nodes; node 0 is the root."""

    nodes: list[ThoughtNode] = Field(default_factory=list)

    @property
    def root(self) -> ThoughtNode:
        """The root node."""
        return self.nodes[0]

    def add(
        self,
        text: str,
        score: float,
        parent: int | None = None,
        failed: bool = False,
    ) -> ThoughtNode:
        """Append a node, linking it under ``parent``."""
        depth = 0 if parent is None else self.nodes[parent].depth + 1
        node = ThoughtNode(
            index=len(self.nodes),
            parent=parent,
            depth=depth,
            text=text,
            score=score,
            failed=failed,
        )
        self.nodes.append(node)
        if parent is not None:
            self.nodes[parent].children.append(node.index)
        return node

    def live_children(self, node: ThoughtNode) -> list[ThoughtNode]:
        """Children that produced a thought."""
        return [self.nodes[i] for i in node.children if not self.nodes[i].failed]

    def best_leaf(self) -> ThoughtNode:
        """
        Highest-scoring leaf found by a full depth-first traversal.

        A node is a leaf when it has no live children, so the root is a
        leaf only if nothing grew beneath it. Ties keep the first leaf visited.
        """
        leaves = []
        stack = [0]
        while stack:
            node = self.nodes[stack.pop()]
            children = self.live_children(node)
            if not children:
                leaves.append(node)
                continue
            # Reversed so the first child is visited first
            stack.extend(child.index for child in reversed(children))
        # max keeps the first of equal scores
        return max(leaves, key=lambda leaf: leaf.score)


class BranchingResult(BaseModel):
    """Output of a branching search."""

    output: str
    best_score: float
    tree: ThoughtTree


class BranchingSearch:
    """Expands a thought tree of depth D with B branches per node.

    Only nodes scoring at least ``threshold`` are expanded further. A
    failed completion becomes a failed child; its siblings still run.
    """

    def __init__(
        self,
        client: CompletionClient,
        depth: int = 2,
        branches: int = 3,
        threshold: float = 50.0,
        temperature: float = 0.8,
        scorer: ThoughtScorer | None = None,
        seed: int | None = None,
    ):
        """
        Initialize the search.

        Args:
            client: Completion client for generating thoughts
            depth: Maximum tree depth below the root
            branches: Children generated per expanded node
            threshold: Minimum score for a node to be expanded
            temperature: Sampling temperature for thoughts
            scorer: Optional judge; heuristic scores in [70, 100) when None
            seed: Seed for heuristic scores
        """
        self.client = client
        self.depth = depth
        self.branches = branches
        self.threshold = threshold
        self.temperature = temperature
        self.scorer = scorer
        self.seed = seed

    async def _score(self, rng: random.Random, input_text: str, thought: str) -> float:
        if self.scorer is None:
            return rng.uniform(*HEURISTIC_SCORE_RANGE)
        return await self.scorer(input_text, thought)

    async def search(
        self,
        prompt: str,
        input_text: str,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> BranchingResult:
        """
        Build the tree for one input and return the best leaf's text.

        Args:
            prompt: Prompt text
            input_text: Example input (becomes the root thought)
            model: Model id (None uses the client default)
            max_tokens: Completion token cap per thought

        Returns:
            Best leaf text, its score and the whole tree
        """
        logger.info(
            f"Branching search (depth={self.depth}, branches={self.branches}, "
            f"threshold={self.threshold})"
        )
        # Same seed gives the same heuristic scores on every search
        rng = random.Random(self.seed)
        tree = ThoughtTree()
        tree.add(text=input_text, score=ROOT_SCORE)

        stack = [0]
        while stack:
            node = tree.nodes[stack.pop()]
            if node.depth >= self.depth:
                continue

            expandable = []
            for branch in range(self.branches):
                branch_prompt = (
                    f"{prompt}\n\nCurrent thought: {node.text}\n\n"
                    "Generate the next step in reasoning (be brief):"
                )
                try:
                    thought = await self.client.complete(
                        branch_prompt,
                        model=model,
                        temperature=self.temperature,
                        max_tokens=max_tokens,
                    )
                except Exception as e:
                    logger.warning(
                        f"Branch {branch + 1} under node {node.index} failed ({e}); "
                        "not expanding it"
                    )
                    tree.add(text="", score=0.0, parent=node.index, failed=True)
                    continue

                score = await self._score(rng, input_text, thought)
                child = tree.add(text=thought, score=score, parent=node.index)
                if score >= self.threshold:
                    expandable.append(child.index)

            stack.extend(reversed(expandable))

        best = tree.best_leaf()
        if best.index == 0:
            logger.warning("No thoughts were generated; returning the input as the output")
        logger.info(f"Branching search complete: {len(tree.nodes)} nodes, best score {best.score:.1f}")
        return BranchingResult(output=best.text, best_score=best.score, tree=tree)
