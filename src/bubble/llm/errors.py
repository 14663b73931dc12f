"""Provider error taxonomy."""


class ProviderError(Exception):
    """Base class for provider failures."""


class MaxRetriesExceededError(ProviderError):
    """Rate-limit retries were exhausted."""

    def __init__(self, attempts: int, message: str = "Max retries exceeded"):
        super().__init__(message)
        self.attempts = attempts


class AggregatorError(ProviderError):
    """The aggregator answered with a non-success status.

    The message is already suitable for showing to a user.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ModelUnavailableError(AggregatorError):
    """The aggregator has no provider for the requested model."""

    def __init__(self, model: str, status_code: int | None = 404):
        super().__init__(
            f'The model "{model}" is currently unavailable via OpenRouter '
            "(No providers). Please select a different model.",
            status_code=status_code,
        )
        self.model = model
