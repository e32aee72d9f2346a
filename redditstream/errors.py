from __future__ import annotations

from typing import List, Optional, Tuple


class RedditError(Exception):
    """Base class for every error raised by this library."""


class TransportError(RedditError):
    """
    Network or HTTP-level failure.

    status_code is None when no response was received at all
    (timeout, DNS failure, connection refused).
    """

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class AuthenticationError(TransportError):
    """The token endpoint refused the configured credentials."""


class DecodeError(RedditError):
    """A response body did not have the shape we expected."""


class APIError(RedditError):
    """
    Reddit processed the request but reported errors in the body.

    errors holds (code, message, field) triples as returned under
    `json.errors`.
    """

    def __init__(self, errors: List[Tuple[str, str, Optional[str]]]) -> None:
        self.errors = errors
        summary = "; ".join(f"{code}: {message}" for code, message, _ in errors)
        super().__init__(summary or "Reddit reported an error")


class StreamCancelled(Exception):
    """
    Raised when a poll is requested on a stream that was cancelled.

    Deliberately outside RedditError: cancellation is not a fetch failure.
    """
