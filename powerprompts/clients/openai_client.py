"""OpenAI-compatible completion client (OpenAI or OpenRouter)."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import openai
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from powerprompts.clients.base import CompletionClient
from powerprompts.config import Settings
from powerprompts.errors import (
    CompletionError,
    InvalidResponseError,
    ProviderTimeoutError,
    RateLimitedError,
    ServerFaultError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
INITIAL_RETRY_DELAY = 1.0
BACKOFF_MULTIPLIER = 2.0
MAX_RETRY_DELAY = 10.0


def classify_api_error(error: openai.APIError) -> CompletionError:
    """Map an OpenAI SDK error onto the completion error taxonomy."""
    if isinstance(error, openai.APITimeoutError):
        return ProviderTimeoutError(f"Request timed out: {error}")
    if isinstance(error, openai.APIConnectionError):
        return ProviderTimeoutError(f"Connection failed: {error}")
    if isinstance(error, openai.APIStatusError):
        status = error.status_code
        if status == 429:
            return RateLimitedError(f"Rate limited: {error.message}", status_code=status)
        if status >= 500:
            return ServerFaultError(f"Server error: {error.message}", status_code=status)
        return InvalidResponseError(f"Request rejected: {error.message}", status_code=status)
    return CompletionError(str(error))


def _log_retry(retry_state: RetryCallState) -> None:
    """Log each retry before backing off."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        f"Completion attempt {retry_state.attempt_number}/{MAX_RETRIES + 1} failed "
        f"({error}); retrying in {delay:.1f}s"
    )


class OpenAICompletionClient(CompletionClient):
    """Completion client backed by the OpenAI SDK.

    The SDK's own retries are disabled so that the exponential backoff
    below (1s, 2s, 4s, capped at 10s, three retries) is the only policy.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        provider: str = "openai",
        default_model: str = "gpt-4o",
        embedding_model: str = "text-embedding-3-small",
        base_url: str | None = None,
        default_headers: dict[str, str] | None = None,
        provider_preferences: dict[str, Any] | None = None,
        timeout: float = 120.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: Provider API key
            provider: "openai" or "openrouter" (used in error context)
            default_model: Model used when a call does not name one
            embedding_model: Model used for embeddings
            base_url: Override for OpenAI-compatible endpoints
            default_headers: Extra headers sent with every request
            provider_preferences: OpenRouter routing preferences
            timeout: Per-request timeout in seconds
            sleep: Coroutine used to wait between retries
            client: Pre-built SDK client (tests inject fakes here)
        """
        super().__init__()
        self.provider = provider
        self.default_model = default_model
        self.embedding_model = embedding_model
        self.provider_preferences = provider_preferences
        self._sleep = sleep
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            default_headers=default_headers,
            timeout=timeout,
            max_retries=0,
        )
        logger.info(f"OpenAICompletionClient initialized ({provider}, model {default_model})")

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAICompletionClient":
        """Build a client for the provider selected in settings."""
        headers = None
        preferences = None
        if settings.llm_provider == "openrouter":
            headers = {
                "HTTP-Referer": settings.openrouter_app_url,
                "X-Title": settings.openrouter_app_name,
            }
            preferences = {"sort": "throughput", "allow_fallbacks": True}
            max_price = {}
            if settings.openrouter_max_prompt_price is not None:
                max_price["prompt"] = settings.openrouter_max_prompt_price
            if settings.openrouter_max_completion_price is not None:
                max_price["completion"] = settings.openrouter_max_completion_price
            if max_price:
                preferences["max_price"] = max_price

        return cls(
            api_key=settings.api_key,
            provider=settings.llm_provider,
            default_model=settings.default_model,
            embedding_model=settings.embedding_model,
            base_url=settings.base_url,
            default_headers=headers,
            provider_preferences=preferences,
            timeout=settings.request_timeout,
        )

    def _retrying(self) -> AsyncRetrying:
        """Fresh retry controller for one call."""
        return AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(MAX_RETRIES + 1),
            wait=wait_exponential(
                multiplier=INITIAL_RETRY_DELAY, exp_base=BACKOFF_MULTIPLIER, max=MAX_RETRY_DELAY
            ),
            retry=retry_if_exception_type(TransientProviderError),
            before_sleep=_log_retry,
            reraise=True,
        )

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
        """Generate a completion with retry/backoff (see CompletionClient.complete)."""
        model = model or self.default_model
        try:
            return await self._retrying()(
                self._complete_once, prompt, model, temperature, max_tokens, top_p, stop
            )
        except CompletionError as e:
            logger.error(f"Completion failed for model {model}: {e}")
            raise e.with_context(model=model, provider=self.provider) from e

    async def _complete_once(
        self,
        prompt: str,
        model: str,
        temperature: float,
        max_tokens: int | None,
        top_p: float,
        stop: list[str] | None,
    ) -> str:
        """Single completion attempt."""
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "top_p": top_p,
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if stop:
            kwargs["stop"] = stop
        if self.provider_preferences:
            kwargs["extra_body"] = {"provider": self.provider_preferences}

        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise classify_api_error(e) from e

        self._record_usage(getattr(completion, "usage", None))

        if not completion.choices:
            raise InvalidResponseError("Response contained no choices")
        message = completion.choices[0].message
        content = (message.content or "").strip()
        if content:
            return content

        # Reasoning models may leave content empty and answer in a side channel
        reasoning = (getattr(message, "reasoning", None) or "").strip()
        if reasoning:
            logger.debug(f"Using reasoning payload as content for model {model}")
            return reasoning

        raise InvalidResponseError("Empty response from model")

    async def embed(self, text: str, model: str | None = None) -> list[float]:
        """Return an embedding vector, with the same retry policy as completions."""
        model = model or self.embedding_model
        try:
            return await self._retrying()(self._embed_once, text, model)
        except CompletionError as e:
            raise e.with_context(model=model, provider=self.provider) from e

    async def _embed_once(self, text: str, model: str) -> list[float]:
        """Single embedding attempt."""
        try:
            response = await self.client.embeddings.create(model=model, input=text)
        except openai.APIError as e:
            raise classify_api_error(e) from e

        self._record_usage(getattr(response, "usage", None))
        if not response.data:
            raise InvalidResponseError("Embedding response contained no data")
        return list(response.data[0].embedding)

    def _record_usage(self, usage: Any) -> None:
        """Accumulate token usage reported by the provider."""
        self.usage.requests += 1
        if usage is None:
            return
        self.usage.prompt_tokens += getattr(usage, "prompt_tokens", 0) or 0
        self.usage.completion_tokens += getattr(usage, "completion_tokens", 0) or 0
