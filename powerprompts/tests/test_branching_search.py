"""Test the bounded thought-tree search."""

import pytest

from powerprompts.errors import ServerFaultError
from powerprompts.techniques import BranchingSearch, ThoughtTree
from powerprompts.tests.helpers import FakeCompletionClient


class FlakyThoughtClient(FakeCompletionClient):
    """Fails the n-th thought request (1-based)."""

    def __init__(self, fail_on: set[int]):
        super().__init__()
        self.fail_on = fail_on
        self.thoughts = 0

    def _respond(self, kind: str, prompt: str) -> str:
        if kind == "thought":
            self.thoughts += 1
            if self.thoughts in self.fail_on:
                raise ServerFaultError("Server error: 500")
            return f"thought {self.thoughts}"
        return super()._respond(kind, prompt)


def scorer_from(scores: dict[str, float]):
    """Judge that looks thoughts up by text."""

    async def score(input_text: str, thought: str) -> float:
        return scores[thought]

    return score


@pytest.mark.asyncio
async def test_tree_is_bounded_by_depth_and_branches():
    """
    Test that depth 2 with two branches yields at most 1 + 2 + 4 nodes.

    Heuristic scores all clear the default threshold, so the tree is full.
    """
    client = FakeCompletionClient()
    search = BranchingSearch(client, depth=2, branches=2, seed=3)

    result = await search.search("Write a haiku", "the sea")

    assert len(result.tree.nodes) == 7
    assert len(client.calls_of("thought")) == 6
    assert max(node.depth for node in result.tree.nodes) == 2
    for node in result.tree.nodes[1:]:
        assert 70.0 <= node.score < 100.0


@pytest.mark.asyncio
async def test_same_seed_scores_identically_on_every_search():
    """
    Test that repeated searches with one seeded instance are reproducible.

    Each search starts its own generator from the seed, so two runs score
    every node the same and settle on the same leaf.
    """
    search = BranchingSearch(FakeCompletionClient(), depth=2, branches=2, seed=7)

    first = await search.search("Write a haiku", "the sea")
    second = await search.search("Write a haiku", "the sea")

    assert [n.score for n in first.tree.nodes] == [n.score for n in second.tree.nodes]
    assert first.best_score == second.best_score
    best_first = max(first.tree.nodes[1:], key=lambda n: n.score)
    best_second = max(second.tree.nodes[1:], key=lambda n: n.score)
    assert best_first.index == best_second.index


@pytest.mark.asyncio
async def test_best_leaf_is_returned():
    """
    Test that the highest-scoring leaf wins, not the highest-scoring node.

    The root yields thoughts 1 (95) and 2 (80); thought 1 yields 3 (60) and 4 (65),
    thought 2 yields 5 (90) and 6 (55).
    """
    client = FlakyThoughtClient(fail_on=set())
    scores = {
        "thought 1": 95.0,
        "thought 2": 80.0,
        "thought 3": 60.0,
        "thought 4": 65.0,
        "thought 5": 90.0,
        "thought 6": 55.0,
    }
    search = BranchingSearch(client, depth=2, branches=2, scorer=scorer_from(scores))

    result = await search.search("Write a haiku", "the sea")

    assert [n.parent for n in result.tree.nodes[1:]] == [0, 0, 1, 1, 2, 2]
    assert result.output == "thought 5"
    assert result.best_score == 90.0


@pytest.mark.asyncio
async def test_low_scores_are_not_expanded():
    client = FlakyThoughtClient(fail_on=set())
    scores = {"thought 1": 30.0, "thought 2": 75.0, "thought 3": 40.0, "thought 4": 45.0}
    search = BranchingSearch(
        client, depth=2, branches=2, threshold=50.0, scorer=scorer_from(scores)
    )

    result = await search.search("Write a haiku", "the sea")

    # Only thought 2 is expanded
    assert len(result.tree.nodes) == 5
    assert result.tree.nodes[1].children == []
    assert result.output == "thought 4"
    assert result.best_score == 45.0


@pytest.mark.asyncio
async def test_failed_branch_does_not_stop_siblings():
    """A failed completion becomes a failed child; the sibling still expands."""
    client = FlakyThoughtClient(fail_on={1})
    search = BranchingSearch(client, depth=2, branches=2, seed=5)

    result = await search.search("Write a haiku", "the sea")

    failed = [node for node in result.tree.nodes if node.failed]
    assert len(failed) == 1
    assert failed[0].children == []
    # Root has one live child, which was expanded into two thoughts
    assert len(result.tree.live_children(result.tree.root)) == 1
    assert len(result.tree.nodes) == 5
    assert result.output.startswith("thought ")


@pytest.mark.asyncio
async def test_all_branches_failing_returns_input():
    client = FlakyThoughtClient(fail_on={1, 2})
    search = BranchingSearch(client, depth=2, branches=2)

    result = await search.search("Write a haiku", "the sea")

    assert result.output == "the sea"
    assert result.tree.root.children == [1, 2]


def test_best_leaf_ties_keep_first_visited():
    tree = ThoughtTree()
    tree.add(text="root", score=100.0)
    tree.add(text="left", score=80.0, parent=0)
    tree.add(text="right", score=80.0, parent=0)

    assert tree.best_leaf().text == "left"


def test_root_alone_is_a_leaf():
    tree = ThoughtTree()
    tree.add(text="root", score=100.0)

    assert tree.best_leaf().index == 0
