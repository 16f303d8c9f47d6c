"""Exception hierarchy for Sawt."""


class SawtError(Exception):
    """Base class for all Sawt errors."""


class InvalidInput(SawtError, ValueError):
    """Malformed or empty arguments, rejected before any processing starts."""


class ConfigurationError(SawtError):
    """A required setting (e.g. gateway API key) is missing."""


class ReasoningServiceError(SawtError):
    """The remote reasoning service failed or returned an unusable answer."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitExceeded(ReasoningServiceError):
    """The gateway answered HTTP 429."""


class CreditsExhausted(ReasoningServiceError):
    """The gateway answered HTTP 402."""
