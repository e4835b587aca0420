"""Concurrent refresh of several feeds."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import List, Optional, Sequence, Tuple, Union

from .feeds import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, Fetcher, FeedSession, Parser
from .models import Failed, Feed, Success
from .parser import parse_feed

logger = logging.getLogger(__name__)

FeedResult = Tuple[Feed, Union[Success, Failed]]


def refresh_feeds(
    feeds: Sequence[Feed],
    concurrency: int = 4,
    fetcher: Optional[Fetcher] = None,
    parser: Parser = parse_feed,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> List[FeedResult]:
    """Load every feed in its own session; results follow the order of ``feeds``."""
    if not feeds:
        return []
    if concurrency <= 0:
        raise ValueError("concurrency must be positive.")

    def load(feed: Feed) -> Union[Success, Failed]:
        session = FeedSession(
            fetcher=fetcher, parser=parser, timeout=timeout, user_agent=user_agent
        )
        return session.fetch(feed.url)

    results: List[Optional[Union[Success, Failed]]] = [None] * len(feeds)
    with concurrent.futures.ThreadPoolExecutor(max_workers=concurrency) as executor:
        future_to_index = {
            executor.submit(load, feed): index for index, feed in enumerate(feeds)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            index = future_to_index[future]
            results[index] = future.result()

    failures = sum(1 for state in results if isinstance(state, Failed))
    logger.info("Refreshed %d feeds (%d failed)", len(feeds), failures)
    return [(feed, state) for feed, state in zip(feeds, results)]
