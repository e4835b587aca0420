"""Error taxonomy and stable failure codes."""

from __future__ import annotations

from typing import Optional

INVALID_URL = "INVALID_URL"
FETCH_TIMEOUT = "FETCH_TIMEOUT"
FETCH_HTTP_ERROR = "FETCH_HTTP_ERROR"
FETCH_FAILED = "FETCH_FAILED"
PARSE_FAILED = "PARSE_FAILED"
MALFORMED_TIMESTAMP = "MALFORMED_TIMESTAMP"
DUPLICATE_FEED = "DUPLICATE_FEED"
FEED_NOT_FOUND = "FEED_NOT_FOUND"


class FeedError(Exception):
    """Base class for errors that carry a stable code."""

    code = FETCH_FAILED

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class InvalidURL(FeedError, ValueError):
    """Raised when a feed URL is syntactically malformed. No I/O is attempted."""

    code = INVALID_URL


class NetworkFailure(FeedError):
    """Raised when the transport cannot deliver the document."""

    code = FETCH_FAILED


class ParseFailure(FeedError):
    """Raised when the document is not well-formed XML."""

    code = PARSE_FAILED


class MalformedTimestamp(FeedError, ValueError):
    code = MALFORMED_TIMESTAMP


class DuplicateFeed(FeedError, ValueError):
    code = DUPLICATE_FEED


class FeedNotFound(FeedError, KeyError):
    code = FEED_NOT_FOUND

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return self.args[0] if self.args else ""
