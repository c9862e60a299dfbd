"""
Error Taxonomy

Exceptions raised by the price feed and swap layers.

Categories:
    - TransportError: the price list could not be fetched (network failure,
      timeout, non-2xx status, undecodable payload). Recovered by the feed
      controller: state degrades to "error" and the last catalog stays visible.
    - SwapSubmissionError: executing a swap failed.

Quote validation problems are NOT exceptions: they are reported through
QuoteResult.is_valid / QuoteResult.invalid_reason.
"""

from typing import Optional


# Messages surfaced to the presentation layer as-is
PRICES_UNAVAILABLE_MESSAGE = "Unable to retrieve live prices."
PRICES_UNREACHABLE_MESSAGE = "Unable to fetch token prices."


class SwapFeedError(Exception):
    """Base class for all application errors."""


class TransportError(SwapFeedError):
    """
    Fetching the remote price list failed.

    Attributes:
        message: Human-readable message, safe to show to end users
        status: HTTP status code when the server answered, None otherwise
    """

    def __init__(self, message: str = PRICES_UNAVAILABLE_MESSAGE, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __repr__(self) -> str:
        return f"TransportError(message={self.message!r}, status={self.status!r})"


class SwapSubmissionError(SwapFeedError):
    """A swap was accepted for submission but its execution failed."""
