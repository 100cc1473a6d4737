"""Test the prompt-improvement techniques individually."""

import pytest

from powerprompts.config import OptimizerConfig
from powerprompts.errors import ServerFaultError
from powerprompts.techniques import (
    REASONING_TAG,
    MajoritySampler,
    RecursiveImprover,
    RetrievalInjector,
    SequentialChain,
    TechniqueEngine,
    cluster_outputs,
    format_context,
    inject_reasoning,
    select_majority,
    splice_context,
)
from powerprompts.tests.helpers import (
    STRUCTURED_HAIKU_PROMPT,
    FakeCompletionClient,
    InMemorySimilarityStore,
)
from powerprompts.types import Chunk, Metrics, ScoredChunk


class ScriptedClient(FakeCompletionClient):
    """Returns queued answers for worker calls, in call order."""

    def __init__(self, answers: list, **kwargs):
        super().__init__(**kwargs)
        self.answers = list(answers)

    def _respond(self, kind: str, prompt: str) -> str:
        if kind != "worker":
            return super()._respond(kind, prompt)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


# Reasoning injection


def test_reasoning_inserted_after_action():
    result = inject_reasoning(STRUCTURED_HAIKU_PROMPT)

    assert result.count(f"<{REASONING_TAG}>") == 1
    assert result.index("</action>") < result.index(f"<{REASONING_TAG}>")
    assert result.index(f"</{REASONING_TAG}>") < result.index("<context>")


def test_reasoning_inserted_after_objective():
    prompt = "<context>\nA bakery\n</context>\n<objective>\nWrite a tagline\n</objective>"

    result = inject_reasoning(prompt)

    assert result.index("</objective>") < result.index(f"<{REASONING_TAG}>")


def test_reasoning_appended_without_task_section():
    prompt = "<instruction>\nSummarize the text\n</instruction>"

    result = inject_reasoning(prompt)

    assert result.startswith(prompt)
    assert result.rstrip().endswith(f"</{REASONING_TAG}>")


def test_reasoning_is_idempotent():
    once = inject_reasoning(STRUCTURED_HAIKU_PROMPT)
    assert inject_reasoning(once) == once


# Majority sampling


def test_clusters_group_similar_answers():
    outputs = ["The answer is 42.", "the answer is 42", "Paris is the capital of France."]

    assert cluster_outputs(outputs) == [[0, 1], [2]]


def test_majority_picks_largest_cluster():
    outputs = [
        "Berlin is the capital.",
        "Paris is the capital of France.",
        "Paris is the capital of France!",
    ]

    winner, clusters = select_majority(outputs)

    assert winner in (1, 2)
    assert sorted(len(c) for c in clusters) == [1, 2]


def test_majority_tie_goes_to_first_cluster():
    outputs = ["Alpha beta gamma delta", "Completely unrelated words here", "zzz"]

    winner, clusters = select_majority(outputs)

    assert len(clusters) == 3
    assert winner == 0


def test_majority_requires_outputs():
    with pytest.raises(ValueError):
        select_majority([])


@pytest.mark.asyncio
async def test_sampler_runs_paths_at_rising_temperatures():
    client = ScriptedClient(["Same answer.", "Same answer.", "Different answer entirely, friend."])
    sampler = MajoritySampler(client, paths=3, base_temperature=0.7, temperature_step=0.2)

    result = await sampler.sample("Answer briefly.", "What is it?")

    assert result.winner == "Same answer."
    assert [p.temperature for p in result.paths] == [0.7, 0.9, 1.1]
    for call in client.calls_of("worker"):
        assert call["prompt"] == "Answer briefly.\n\nInput: What is it?"


@pytest.mark.asyncio
async def test_sampler_drops_failed_paths():
    client = ScriptedClient([ServerFaultError("boom"), "Surviving answer", "Surviving answer"])
    sampler = MajoritySampler(client, paths=3)

    result = await sampler.sample("Answer.", "Question")

    assert len(result.paths) == 2
    assert result.winner == "Surviving answer"


@pytest.mark.asyncio
async def test_sampler_raises_when_every_path_fails():
    client = ScriptedClient([ServerFaultError("one"), ServerFaultError("two")])
    sampler = MajoritySampler(client, paths=2)

    with pytest.raises(ServerFaultError):
        await sampler.sample("Answer.", "Question")


def test_sampler_temperatures_are_capped():
    sampler = MajoritySampler(
        FakeCompletionClient(), paths=4, base_temperature=1.5, temperature_step=0.3
    )

    assert sampler.temperatures() == [1.5, 1.8, 2.0, 2.0]


# Recursive improvement


@pytest.mark.asyncio
async def test_improver_critiques_then_rewrites():
    """
    Test the two sequential calls.

    The critique request includes the metrics; the rewrite request includes the critique.
    """
    client = FakeCompletionClient()
    improver = RecursiveImprover(client)
    metrics = Metrics.calculate_aggregate(70, 60, 90, 80, 75)

    result = await improver.improve(STRUCTURED_HAIKU_PROMPT, metrics)

    assert [call["kind"] for call in client.calls] == ["critique", "improvement"]
    assert "Accuracy: 60.0/100" in client.calls[0]["prompt"]
    assert result.critique_text in client.calls[1]["prompt"]
    assert "(revision 1)" in result.improved_text
    assert "<role>" in result.improved_text


@pytest.mark.asyncio
async def test_improver_without_metrics_omits_section():
    client = FakeCompletionClient()

    await RecursiveImprover(client).improve(STRUCTURED_HAIKU_PROMPT)

    assert "Current Metrics:" not in client.calls[0]["prompt"]


# Retrieval injection


def test_context_block_labels_sources():
    block = format_context(
        [ScoredChunk(id="a", text="First passage"), ScoredChunk(id="b", text="Second passage")]
    )

    assert block.startswith("<context>")
    assert "<source>1</source>\nFirst passage" in block
    assert "<source>2</source>\nSecond passage" in block


def test_splice_after_first_closed_section():
    result = splice_context(
        "<role>\nPoet\n</role>\n<action>\nWrite\n</action>", "<context>\nX\n</context>"
    )

    assert result.index("</role>") < result.index("<context>") < result.index("<action>")


def test_splice_prepends_without_sections():
    result = splice_context("Plain prompt", "<context>\nX\n</context>")

    assert result == "<context>\nX\n</context>\n\nPlain prompt"


@pytest.mark.asyncio
async def test_retrieval_with_no_results_leaves_prompt_unchanged():
    injector = RetrievalInjector(InMemorySimilarityStore())

    assert await injector.inject(STRUCTURED_HAIKU_PROMPT, "sea") == STRUCTURED_HAIKU_PROMPT


@pytest.mark.asyncio
async def test_retrieval_failure_leaves_prompt_unchanged():
    store = InMemorySimilarityStore(fail=True)
    injector = RetrievalInjector(store)

    assert await injector.inject(STRUCTURED_HAIKU_PROMPT, "sea") == STRUCTURED_HAIKU_PROMPT
    assert len(store.queries) == 1


@pytest.mark.asyncio
async def test_retrieval_without_store_leaves_prompt_unchanged():
    assert await RetrievalInjector(None).inject("Prompt text", "query") == "Prompt text"


@pytest.mark.asyncio
async def test_retrieval_injects_top_passages():
    store = InMemorySimilarityStore()
    await store.upsert_chunks(
        "poetry",
        [
            Chunk(id="1", text="sea waves tide foam"),
            Chunk(id="2", text="mountain snow"),
            Chunk(id="3", text="the sea at night"),
        ],
    )
    injector = RetrievalInjector(store)

    result = await injector.inject(STRUCTURED_HAIKU_PROMPT, "the sea", collection="poetry", top_k=2)

    assert "the sea at night" in result
    assert "mountain snow" not in result
    assert store.queries == [("poetry", "the sea", 2)]


# Sequential chaining


@pytest.mark.asyncio
async def test_chain_feeds_previous_output_forward():
    client = ScriptedClient(["draft", "final"])
    chain = SequentialChain(client)

    outputs = await chain.run(["Step one", "", "Step two"])

    assert outputs == ["draft", "final"]
    prompts = [call["prompt"] for call in client.calls_of("worker")]
    assert prompts == ["Step one", "Step two\n\nPrevious step output:\ndraft"]


@pytest.mark.asyncio
async def test_chain_stops_on_failure():
    client = ScriptedClient(["draft", ServerFaultError("boom")])

    with pytest.raises(ServerFaultError):
        await SequentialChain(client).run(["Step one", "Step two"])


# Engine


@pytest.mark.asyncio
async def test_engine_uses_config_tunables():
    config = OptimizerConfig()
    config.techniques.sampling_paths = 5
    engine = TechniqueEngine(FakeCompletionClient(), config=config)

    assert engine.sampler.paths == 5
    assert engine.tree_search.depth == config.techniques.tree_depth
    assert engine.apply_reasoning("<action>\nGo\n</action>").count(REASONING_TAG) == 2
