"""Exception hierarchy for the optimization pipeline."""


class PowerPromptsError(Exception):
    """Base class for all errors raised by powerprompts."""


class ConfigurationError(PowerPromptsError):
    """Invalid or incomplete configuration. Prevents a run from starting."""


class CompletionError(PowerPromptsError):
    """A completion or embedding call failed.

    Carries the model/provider context so the failure can be reported
    without digging through the cause chain.
    """

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.model = model
        self.provider = provider
        self.status_code = status_code

    def with_context(self, model: str, provider: str) -> "CompletionError":
        """Return a copy of this error annotated with model and provider."""
        status = self.status_code if self.status_code is not None else "N/A"
        return type(self)(
            f"[LLM Client] {self.message} (Status: {status}, Model: {model}, Provider: {provider})",
            model=model,
            provider=provider,
            status_code=self.status_code,
        )


class TransientProviderError(CompletionError):
    """Failure worth retrying: rate limit, server fault or timeout."""


class RateLimitedError(TransientProviderError):
    """HTTP 429 from the provider."""


class ServerFaultError(TransientProviderError):
    """HTTP 5xx from the provider."""


class ProviderTimeoutError(TransientProviderError):
    """Request timed out or the connection was reset."""


class InvalidResponseError(CompletionError):
    """Non-retryable 4xx or a response with no usable content."""


class MalformedModelOutput(PowerPromptsError):
    """Model output could not be parsed. Always resolved with a fallback value."""


class RetrievalUnavailable(PowerPromptsError):
    """The similarity store could not serve a query."""


class RunFailure(PowerPromptsError):
    """An optimization run terminated with an unhandled error."""

    def __init__(self, message: str, run_id: str | None = None):
        super().__init__(message)
        self.run_id = run_id


class StorageError(PowerPromptsError):
    """A storage write violated the append-only version sequence."""
