"""Error taxonomy for chat streaming, chunking and storage.

Chat errors carry a user-facing ``title`` and ``description`` so callers
can show a notification without mapping classes to text themselves.
Rate-limit and payment errors get distinct messages because the fix is
different (wait vs. add credits).
"""

from __future__ import annotations


class TechnoDogError(Exception):
    """Base error for the package."""


class InvalidConfigurationError(TechnoDogError, ValueError):
    """A component was configured with values it cannot work with."""


class StorageError(TechnoDogError):
    """A document store rejected or failed a write."""


class ChatError(TechnoDogError):
    """Base streaming chat error with notification text."""

    title = "Request failed"
    description = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message or self.title)
        self.status_code = status_code


class RateLimitError(ChatError):
    """Upstream returned 429."""

    title = "Rate limit reached"
    description = "Please wait a few seconds and try again."


class PaymentRequiredError(ChatError):
    """Upstream returned 402."""

    title = "Credits exhausted"
    description = "Please add credits to continue."


class RequestFailedError(ChatError):
    """Any other non-2xx status or a transport-level failure."""


class StreamProtocolError(RequestFailedError):
    """The event stream could not be parsed into lines."""


class EmptyResponseError(ChatError):
    """The stream ended without delivering any content or metadata."""

    title = "Empty response"
    description = "No answer was received. Please try again."


def classify_status(status_code: int, detail: str = "") -> ChatError:
    """Map a non-success HTTP status to its chat error."""
    message = f"HTTP {status_code}" + (f": {detail}" if detail else "")
    if status_code == 429:
        return RateLimitError(message, status_code=status_code)
    if status_code == 402:
        return PaymentRequiredError(message, status_code=status_code)
    return RequestFailedError(message, status_code=status_code)
