"""
Error taxonomy for the synthesis pipeline.

Every failure that can cross the pipeline boundary derives from
SynthesisError, so front ends can catch a single type and map the
subclasses to their own responses (HTTP status codes, CLI messages).

Hierarchy:
==========
    SynthesisError
    ├── InputError                 blank request
    ├── ConfigurationError         generation requested but unavailable
    ├── ProviderError              one provider failed (stays inside failover)
    │   └── ValidationError        provider returned non-HTML content
    ├── AllProvidersFailedError    every provider failed in one pass
    └── ArtifactWriteError         generated content could not be persisted
"""

from typing import List, Optional, Tuple


# ---------------------------------------------------------------------------
# CUSTOM EXCEPTIONS
# ---------------------------------------------------------------------------


class SynthesisError(Exception):
    """Base exception for all pipeline errors."""
    pass


class InputError(SynthesisError):
    """Raised when the request is empty or whitespace-only."""
    pass


class ConfigurationError(SynthesisError):
    """Raised when generation is required but disabled or unconfigured."""
    pass


class ProviderError(SynthesisError):
    """Raised by a single provider on any transport, auth or backend error."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(ProviderError):
    """Raised when a provider returns content that fails the HTML shape check."""
    pass


class AllProvidersFailedError(SynthesisError):
    """
    Raised when every configured provider failed during one ring scan.

    Attributes:
        attempts: (provider name, failure message) pairs in attempt order
    """

    def __init__(self, attempts: List[Tuple[str, str]]):
        self.attempts = list(attempts)
        lines = ["All AI providers failed. Attempts:"]
        for position, (name, message) in enumerate(self.attempts, start=1):
            lines.append(f"  {position}. {name}: {message}")
        super().__init__("\n".join(lines))

    @property
    def provider_names(self) -> List[str]:
        return [name for name, _ in self.attempts]

    def to_dict(self) -> dict:
        """Convert to dictionary for API error bodies."""
        return {
            "error": "all_providers_failed",
            "attempts": [
                {"provider": name, "message": message}
                for name, message in self.attempts
            ],
        }


class ArtifactWriteError(SynthesisError):
    """Raised when a generated artifact cannot be written to the output directory."""
    pass
