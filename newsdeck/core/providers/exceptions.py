"""
Provider exceptions.

All providers raise these exceptions for consistent error handling.
The registry catches them per provider during fan-out fetches.
"""


class ProviderError(Exception):
    """Base exception for all provider errors."""

    kind = "other"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.label}: {self.message}" if self.message else self.label

    @property
    def label(self) -> str:
        return "Provider error"


class NetworkError(ProviderError):
    """Request failed, timed out, or returned an unexpected HTTP status."""

    kind = "network"

    @property
    def label(self) -> str:
        return "Network error"


class AuthError(ProviderError):
    """Credentials were rejected by the source."""

    kind = "auth"

    @property
    def label(self) -> str:
        return "Authentication failed"


class RateLimitError(ProviderError):
    """Source reported too many requests."""

    kind = "rate_limit"

    @property
    def label(self) -> str:
        return "Rate limit exceeded"


class ParseError(ProviderError):
    """Response body could not be decoded."""

    kind = "parse"

    @property
    def label(self) -> str:
        return "Parse error"


class NotConfiguredError(ProviderError):
    """Provider is missing required configuration (e.g. API key)."""

    kind = "not_configured"

    @property
    def label(self) -> str:
        return "Provider not configured"


class ProviderOtherError(ProviderError):
    """Anything else (unsupported capability, missing item)."""
