import threading
import time

import pytest

from rss_reader.errors import FETCH_FAILED, NetworkFailure
from rss_reader.models import Failed, Feed, Success
from rss_reader.runner import refresh_feeds


def _document(title):
    return f"<rss><channel><item><title>{title}</title></item></channel></rss>".encode()


def test_refresh_preserves_input_order():
    feeds = [Feed(name=f"Feed {i}", url=f"https://feed{i}.example.com/rss") for i in range(5)]

    def fetcher(url):
        # Earlier feeds finish last.
        index = int(url.split("feed")[1].split(".")[0])
        time.sleep(0.02 * (5 - index))
        return _document(f"item {index}")

    results = refresh_feeds(feeds, concurrency=5, fetcher=fetcher)

    assert [feed.name for feed, _ in results] == [feed.name for feed in feeds]
    assert [state.items[0].title for _, state in results] == [f"item {i}" for i in range(5)]


def test_refresh_reports_failures_per_feed():
    feeds = [
        Feed(name="ok", url="https://ok.example.com/rss"),
        Feed(name="down", url="https://down.example.com/rss"),
        Feed(name="bad", url="bad url"),
    ]

    def fetcher(url):
        if "down" in url:
            raise NetworkFailure("unreachable")
        return _document("fine")

    results = refresh_feeds(feeds, concurrency=2, fetcher=fetcher)
    states = [state for _, state in results]

    assert isinstance(states[0], Success)
    assert isinstance(states[1], Failed) and states[1].code == FETCH_FAILED
    assert isinstance(states[2], Failed)


def test_refresh_runs_concurrently():
    feeds = [Feed(name=str(i), url=f"https://f{i}.example.com/rss") for i in range(3)]
    barrier = threading.Barrier(3, timeout=5)

    def fetcher(url):
        barrier.wait()
        return _document("x")

    results = refresh_feeds(feeds, concurrency=3, fetcher=fetcher)

    assert all(isinstance(state, Success) for _, state in results)


def test_refresh_empty_and_invalid_concurrency():
    assert refresh_feeds([]) == []
    with pytest.raises(ValueError):
        refresh_feeds([Feed(name="a", url="https://a")], concurrency=0)


def test_refresh_survives_multibyte_and_unexpected_errors():
    feeds = [
        Feed(name="korean", url="https://kr.example.com/rss"),
        Feed(name="broken", url="https://broken.example.com/rss"),
    ]
    korean = (
        '<?xml version="1.0" encoding="EUC-KR"?>'
        "<rss><channel><item><title>속보</title></item></channel></rss>"
    ).encode("euc-kr")

    def fetcher(url):
        if "broken" in url:
            raise RuntimeError("socket closed")
        return korean

    results = refresh_feeds(feeds, concurrency=2, fetcher=fetcher)

    (_, first), (_, second) = results
    assert isinstance(first, Success)
    assert first.items[0].title == "속보"
    assert isinstance(second, Failed)
    assert second.code == FETCH_FAILED
