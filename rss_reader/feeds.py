"""Feed retrieval and parse sessions."""

from __future__ import annotations

import functools
import logging
import threading
from typing import Callable, List, Optional, Union
from urllib.parse import urlsplit

import requests

from .errors import (
    FETCH_FAILED,
    FETCH_HTTP_ERROR,
    FETCH_TIMEOUT,
    FeedError,
    InvalidURL,
    NetworkFailure,
)
from .models import Failed, Idle, Item, Loading, SessionState, Success
from .parser import parse_feed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "rss-reader/0.1"

Fetcher = Callable[[str], bytes]
Parser = Callable[..., List[Item]]


def validate_feed_url(url: str) -> str:
    """Return the URL if it is an absolute http(s) URL, else raise ``InvalidURL``."""
    candidate = (url or "").strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        raise InvalidURL(f"Invalid feed URL: {url!r}")
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise InvalidURL(f"Invalid feed URL: {url!r}") from exc
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        raise InvalidURL(f"Invalid feed URL: {url!r}")
    return candidate


def fetch_document(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> bytes:
    """Download the raw feed document."""
    logger.info("Fetching feed %s", url)
    try:
        response = requests.get(
            url, timeout=timeout, headers={"User-Agent": user_agent}
        )
        response.raise_for_status()
    except requests.Timeout as exc:
        raise NetworkFailure(f"Timed out fetching {url}: {exc}", code=FETCH_TIMEOUT) from exc
    except requests.HTTPError as exc:
        raise NetworkFailure(
            f"HTTP error fetching {url}: {exc}", code=FETCH_HTTP_ERROR
        ) from exc
    except requests.RequestException as exc:
        raise NetworkFailure(f"Failed to fetch {url}: {exc}", code=FETCH_FAILED) from exc
    return response.content


class FeedSession:
    """Owns the state of the feed currently being read.

    Each ``fetch`` supersedes the previous one. A result that arrives after a
    newer fetch (or ``reset``) has started is returned to its caller but never
    written over the session state.
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        parser: Parser = parse_feed,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        if fetcher is None:
            fetcher = functools.partial(
                fetch_document, timeout=timeout, user_agent=user_agent
            )
        self._fetcher = fetcher
        self._parser = parser
        self._lock = threading.Lock()
        self._generation = 0
        self._state: SessionState = Idle()

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def reset(self) -> None:
        with self._lock:
            self._generation += 1
            self._state = Idle()

    def fetch(self, url: str) -> Union[Success, Failed]:
        """Load ``url`` and return the terminal state of this request."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._state = Loading(url=url)

        result = self._load(url)

        with self._lock:
            if generation == self._generation:
                self._state = result
            else:
                logger.info("Discarding superseded result for %s", url)
        return result

    def _load(self, url: str) -> Union[Success, Failed]:
        try:
            checked = validate_feed_url(url)
            data = self._fetcher(checked)
            items = self._parser(data, base_url=checked)
        except FeedError as exc:
            logger.warning("Feed %s failed with %s: %s", url, exc.code, exc)
            return Failed(url=url, code=exc.code, message=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while loading %s", url)
            return Failed(url=url, code=FETCH_FAILED, message=str(exc))

        logger.info("Loaded %d items from %s", len(items), url)
        return Success(url=url, items=tuple(items))
