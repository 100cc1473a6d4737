"""Retrieval-augmented prompting: splice retrieved passages into a prompt."""

import logging

from powerprompts.retrieval.vector_store import SimilarityStore
from powerprompts.types import ScoredChunk
from powerprompts.utils.delimiters import first_closing_tag_end, wrap_tag

logger = logging.getLogger(__name__)

CONTEXT_TAG = "context"
DEFAULT_COLLECTION = "knowledge_base"


def format_context(passages: list[ScoredChunk]) -> str:
    """Label passages with their rank and wrap them in a context block."""
    parts = [f"<source>{i}</source>\n{passage.text}" for i, passage in enumerate(passages, start=1)]
    return wrap_tag(CONTEXT_TAG, "\n\n".join(parts))


def splice_context(prompt: str, context_block: str) -> str:
    """Insert the block after the first closed section, or prepend it."""
    insert_at = first_closing_tag_end(prompt)
    if insert_at is None:
        return f"{context_block}\n\n{prompt}"
    return f"{prompt[:insert_at]}\n\n{context_block}\n{prompt[insert_at:]}"


class RetrievalInjector:
    """Best-effort context injection: any retrieval problem leaves the prompt as is."""

    def __init__(
        self,
        store: SimilarityStore | None,
        collection: str = DEFAULT_COLLECTION,
        top_k: int = 3,
    ):
        self.store = store
        self.collection = collection
        self.top_k = top_k

    async def inject(
        self,
        prompt: str,
        query: str,
        collection: str | None = None,
        top_k: int | None = None,
    ) -> str:
        """
        Retrieve the passages nearest to ``query`` and splice them into ``prompt``.

        Args:
            prompt: Prompt text
            query: Retrieval query
            collection: Collection name (defaults to the injector's collection)
            top_k: Number of passages (defaults to the injector's top_k)

        Returns:
            Augmented prompt, or ``prompt`` unchanged on failure or no results
        """
        if self.store is None:
            logger.warning("No similarity store configured; skipping retrieval")
            return prompt

        collection = collection or self.collection
        top_k = top_k or self.top_k
        logger.info(f"Retrieving top {top_k} passages from '{collection}'")
        try:
            passages = await self.store.query_top_k(collection, query, top_k)
        except Exception as e:
            logger.warning(f"Retrieval failed ({e}); using prompt without context")
            return prompt

        if not passages:
            logger.info("No relevant passages found; using prompt without context")
            return prompt

        return splice_context(prompt, format_context(passages))
