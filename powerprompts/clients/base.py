"""Base completion client."""

import logging
import math
from abc import ABC, abstractmethod

import tiktoken

from powerprompts.types import TokenUsage

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN_ESTIMATE = 4
DEFAULT_TOKENIZER_MODEL = "gpt-4o"


def count_tokens(text: str, model: str | None = None) -> int:
    """Count tokens with tiktoken, falling back to a length/4 estimate.

    Args:
        text: Text to tokenize
        model: Model id; provider prefixes such as ``openai/`` are ignored

    Returns:
        Token count
    """
    name = (model or DEFAULT_TOKENIZER_MODEL).split("/")[-1]
    try:
        encoding = tiktoken.encoding_for_model(name)
        return len(encoding.encode(text))
    except Exception as e:
        # Unknown model names raise KeyError; encodings that cannot be
        # downloaded raise network errors.
        logger.debug(f"Exact tokenization unavailable for {name}: {e}")
        return math.ceil(len(text) / CHARS_PER_TOKEN_ESTIMATE)


class CompletionClient(ABC):
    """Base class for text-generation backends.

    Implementations must apply their own retry policy and raise
    ``CompletionError`` subclasses once it is exhausted.
    """

    provider: str = "unknown"
    default_model: str = DEFAULT_TOKENIZER_MODEL

    def __init__(self):
        self.usage = TokenUsage()

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        top_p: float = 1.0,
        stop: list[str] | None = None,
    ) -> str:
        """Generate a completion for a single-turn prompt.

        Args:
            prompt: Full prompt text
            model: Model id (None uses the client's default model)
            temperature: Sampling temperature
            max_tokens: Completion token cap
            top_p: Nucleus sampling mass
            stop: Optional stop sequences

        Returns:
            The completion text, stripped
        """
        ...

    @abstractmethod
    async def embed(self, text: str, model: str | None = None) -> list[float]:
        """Return an embedding vector for ``text``."""
        ...

    def count_tokens(self, text: str, model: str | None = None) -> int:
        """Count tokens for ``text`` under ``model`` (defaults to the client's model)."""
        return count_tokens(text, model or self.default_model)
