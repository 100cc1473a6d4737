"""Test the ChromaDB similarity store with deterministic fake embeddings."""

import pytest

from powerprompts.errors import RetrievalUnavailable
from powerprompts.retrieval import ChromaSimilarityStore
from powerprompts.tests.helpers import FakeCompletionClient
from powerprompts.types import Chunk

PASSAGES = [
    "Tides rise and fall twice a day.",
    "Gulls circle over the harbour at dawn.",
    "Salt spray dries white on the rocks.",
]


@pytest.fixture
def chroma_store(tmp_path):
    return ChromaSimilarityStore(FakeCompletionClient(), persist_directory=tmp_path / "chroma")


@pytest.mark.asyncio
async def test_query_returns_nearest_passages_first(chroma_store):
    """
    Test upsert then query.

    The fake client embeds by hashing, so querying with a stored passage's
    exact text finds that passage at distance zero.
    """
    await chroma_store.upsert_chunks(
        "poetry",
        [Chunk(id=f"doc-{i}", text=text, metadata={"index": i}) for i, text in enumerate(PASSAGES)],
    )

    results = await chroma_store.query_top_k("poetry", PASSAGES[1], k=2)

    assert len(results) == 2
    assert results[0].id == "doc-1"
    assert results[0].text == PASSAGES[1]
    assert results[0].metadata["index"] == 1
    assert results[0].distance == pytest.approx(0.0, abs=1e-6)
    assert results[0].distance <= results[1].distance


@pytest.mark.asyncio
async def test_upsert_replaces_by_id(chroma_store):
    await chroma_store.upsert_chunks("notes", [Chunk(id="a", text="first draft")])
    await chroma_store.upsert_chunks("notes", [Chunk(id="a", text="second draft")])

    results = await chroma_store.query_top_k("notes", "second draft", k=5)

    assert [r.text for r in results] == ["second draft"]


@pytest.mark.asyncio
async def test_empty_collection_returns_nothing(chroma_store):
    assert await chroma_store.query_top_k("empty", "anything", k=3) == []


@pytest.mark.asyncio
async def test_embedding_failure_is_retrieval_unavailable(tmp_path):
    class BrokenEmbedder(FakeCompletionClient):
        async def embed(self, text, model=None):
            raise ConnectionError("embedding service down")

    store = ChromaSimilarityStore(BrokenEmbedder(), persist_directory=tmp_path / "chroma")

    with pytest.raises(RetrievalUnavailable, match="notes"):
        await store.upsert_chunks("notes", [Chunk(id="a", text="a passage")])
