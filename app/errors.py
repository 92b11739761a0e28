"""Error taxonomy for the research pipeline.

Every pipeline error inherits from ``MarketResearchError`` so route handlers
can map the whole family in one place. Only ``ConfigurationError`` is meant
to escape the dispatcher; the rest are caught per agent and turned into
failed outcomes.
"""

from __future__ import annotations

from typing import Any

RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again later."
INVALID_KEY_MESSAGE = "Invalid API Key. Please update your API keys in settings."


class MarketResearchError(Exception):
    """Base exception carrying optional diagnostics."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ConfigurationError(MarketResearchError):
    """A mandatory credential or setting is missing."""

    def __init__(
        self,
        message: str = "Required configuration missing",
        error_code: str = "MISSING_API_KEY",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.error_code = error_code


class RateLimitError(MarketResearchError):
    """Upstream provider answered 429 or reported an exhausted quota."""


class AuthenticationError(MarketResearchError):
    """Upstream provider rejected the credential (401/403)."""


class PaymentRequiredError(MarketResearchError):
    """LLM gateway reported exhausted credits (402)."""


class ParseError(MarketResearchError):
    """No usable JSON structure could be recovered from a model response."""


class NotFoundError(MarketResearchError):
    """Requested project data does not exist."""


class UpstreamError(MarketResearchError):
    """Any other upstream failure (non-2xx, transport error)."""

    def __init__(
        self,
        message: str = "Upstream API error",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


def classify_error(exc: BaseException) -> str:
    """Map an agent failure to the user-facing message stored with the outcome."""
    if isinstance(exc, RateLimitError):
        return RATE_LIMIT_MESSAGE
    if isinstance(exc, AuthenticationError):
        return INVALID_KEY_MESSAGE

    message = str(exc) or "Unknown error"
    lowered = message.lower()
    if "429" in lowered or "quota" in lowered or "rate limit" in lowered:
        return RATE_LIMIT_MESSAGE
    if "401" in lowered or "403" in lowered or "invalid" in lowered:
        return INVALID_KEY_MESSAGE
    return message
