"""Popular feed catalog and the user's feed list."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional, Protocol, Sequence, Union

from .errors import DuplicateFeed, FeedNotFound
from .feeds import validate_feed_url
from .models import DEFAULT_CATEGORY, CatalogEntry, Feed, new_feed_id

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"

TAB_FAVORITE = "favorite"
TAB_MY_FEEDS = "my_feeds"
TAB_POPULAR = "popular"

CATALOG: Sequence[CatalogEntry] = (
    # Korea.kr policy briefing: news
    CatalogEntry("🇰🇷 정책뉴스", "https://www.korea.kr/rss/policy.xml", "정책뉴스"),
    CatalogEntry("🇰🇷 국민이 말하는 정책", "https://www.korea.kr/rss/reporter.xml", "정책뉴스"),
    CatalogEntry("🇰🇷 정책칼럼", "https://www.korea.kr/rss/column.xml", "정책뉴스"),
    CatalogEntry("🇰🇷 이슈인사이트", "https://www.korea.kr/rss/insight.xml", "정책뉴스"),
    # Korea.kr multimedia
    CatalogEntry("🎬 영상", "https://www.korea.kr/rss/media.xml", "정부멀티미디어"),
    CatalogEntry("🎬 숏폼", "https://www.korea.kr/rss/shorts.xml", "정부멀티미디어"),
    CatalogEntry("🎨 카드/한컷", "https://www.korea.kr/rss/visual.xml", "정부멀티미디어"),
    CatalogEntry("📷 사진", "https://www.korea.kr/rss/photo.xml", "정부멀티미디어"),
    CatalogEntry("🎨 웹툰", "https://www.korea.kr/rss/cartoon.xml", "정부멀티미디어"),
    # Korea.kr briefing room
    CatalogEntry("📢 보도자료", "https://www.korea.kr/rss/pressrelease.xml", "정부브리핑룸"),
    CatalogEntry("📢 사실은 이렇습니다", "https://www.korea.kr/rss/fact.xml", "정부브리핑룸"),
    CatalogEntry("📢 부처 브리핑", "https://www.korea.kr/rss/ebriefing.xml", "정부브리핑룸"),
    CatalogEntry("📢 청와대 브리핑", "https://www.korea.kr/rss/president.xml", "정부브리핑룸"),
    CatalogEntry("📢 국무회의 브리핑", "https://www.korea.kr/rss/cabinet.xml", "정부브리핑룸"),
    CatalogEntry("📢 연설문", "https://www.korea.kr/rss/speech.xml", "정부브리핑룸"),
    # Korea.kr policy documents
    CatalogEntry("📄 전문자료", "https://www.korea.kr/rss/expdoc.xml", "정책자료"),
    CatalogEntry("📄 K-공감 전체", "https://www.korea.kr/rss/archive.xml", "정책자료"),
    # Domestic press
    CatalogEntry("💼 매일경제", "https://www.mk.co.kr/rss/30000001/", "국내언론"),
    CatalogEntry("📰 연합뉴스", "https://www.yna.co.kr/rss/news.xml", "국내언론"),
    CatalogEntry(
        "📰 조선일보",
        "https://www.chosun.com/arc/outboundfeeds/rss/?outputType=xml",
        "국내언론",
    ),
    CatalogEntry("📰 한겨레", "https://www.hani.co.kr/rss/", "국내언론"),
    # IT / tech
    CatalogEntry("🌐 TechCrunch", "https://techcrunch.com/feed/", "IT/테크"),
    CatalogEntry("🌐 Hacker News", "https://news.ycombinator.com/rss", "IT/테크"),
    CatalogEntry("👨‍💻 Dev.to", "https://dev.to/feed", "IT/테크"),
    # AI news
    CatalogEntry("📰 AI for Newsroom (All)", "https://aifornewsroom.in/api/rss/all", "AI뉴스"),
    CatalogEntry("📰 AI for Newsroom (News)", "https://aifornewsroom.in/api/rss", "AI뉴스"),
    CatalogEntry(
        "🧰 AI for Newsroom (Resources)",
        "https://aifornewsroom.in/api/rss/resources",
        "AI뉴스",
    ),
    CatalogEntry("🧠 OpenAI Blog", "https://openai.com/news/rss.xml", "AI뉴스"),
    CatalogEntry("🇰🇷 Unblock Media ALL", "https://www.unblockmedia.com/rss_ko.xml", "AI뉴스"),
    CatalogEntry(
        "🇰🇷 Unblock Media Tech", "https://www.unblockmedia.com/rss_ko_tech.xml", "AI뉴스"
    ),
    CatalogEntry(
        "🇰🇷 Unblock Media Policy",
        "https://www.unblockmedia.com/rss_ko_policy.xml",
        "AI뉴스",
    ),
    # Security notices
    CatalogEntry(
        "🇰🇷 보호나라 보안공지", "https://knvd.krcert.or.kr/rss/securityNotice.do", "보안"
    ),
    CatalogEntry("🇰🇷 KISA 공지사항 RSS", "https://kisa.or.kr/rss/401", "보안"),
    CatalogEntry("🇰🇷 KISA 보도자료 RSS", "https://kisa.or.kr/rss/402", "보안"),
    # YouTube channels
    CatalogEntry(
        "일당백",
        "https://www.youtube.com/feeds/videos.xml?channel_id=UC0LGfuBiVmPZLo5pUW0bshA",
        "youtube",
    ),
    CatalogEntry(
        "슈카",
        "https://www.youtube.com/feeds/videos.xml?channel_id=UCsJ6RuBiTVWRX156FVbeaGg",
        "youtube",
    ),
    CatalogEntry(
        "박가네",
        "https://www.youtube.com/feeds/videos.xml?channel_id=UCpK0ae9lWdtyDi9Cdc1Fqeg",
        "youtube",
    ),
    CatalogEntry(
        "오빠두엑셀",
        "https://www.youtube.com/feeds/videos.xml?channel_id=UCZ6UHYBQFBe14WUgxlgmYfg",
        "youtube",
    ),
    CatalogEntry(
        "침착맨",
        "https://www.youtube.com/feeds/videos.xml?channel_id=UCUj6rrhMTR9pipbAWBAMvUQ",
        "youtube",
    ),
    CatalogEntry(
        "자취남",
        "https://www.youtube.com/feeds/videos.xml?channel_id=UCtYHCl8yhhvpWfcvdA_sCVg",
        "youtube",
    ),
    # Reddit
    CatalogEntry("🎨 그림", "https://www.reddit.com/r/painting/.rss", "reddit"),
    CatalogEntry("🎨 인공지능", "https://www.reddit.com/r/ArtificialInteligence/.rss", "reddit"),
    CatalogEntry("🎨 엘론 머스크", "https://www.reddit.com/r/elonmusk/.rss", "reddit"),
    CatalogEntry("🎨 트럼프", "https://www.reddit.com/r/trump/.rss", "reddit"),
    CatalogEntry("🎨 사이버 보안", "https://www.reddit.com/r/cybersecurity/.rss", "reddit"),
)


class FeedListStore(Protocol):
    def load(self) -> List[Feed]: ...

    def save(self, feeds: Iterable[Feed]) -> None: ...


class FeedCatalog:
    """Merges the static catalog with the persisted user feed list.

    Mutations work on a copy of the list, persist it, and only then publish it,
    so readers never observe a list that has not been saved.
    """

    def __init__(
        self,
        store: FeedListStore,
        catalog: Sequence[CatalogEntry] = CATALOG,
    ):
        self._store = store
        self._catalog = tuple(catalog)
        self._lock = threading.Lock()
        self._feeds: List[Feed] = list(store.load())
        logger.info(
            "Loaded %d user feeds; catalog has %d entries",
            len(self._feeds),
            len(self._catalog),
        )

    @property
    def catalog(self) -> Sequence[CatalogEntry]:
        return self._catalog

    @property
    def feeds(self) -> List[Feed]:
        with self._lock:
            return [feed.copy() for feed in self._feeds]

    def favorites(self) -> List[Feed]:
        return [feed for feed in self.feeds if feed.is_favorite]

    def categories(self) -> List[str]:
        return [ALL_CATEGORIES] + sorted({entry.category for entry in self._catalog})

    def catalog_view(self, category: str = ALL_CATEGORIES) -> List[Feed]:
        """Catalog entries in ``category`` with favorite flags from the user list."""
        entries = [
            entry
            for entry in self._catalog
            if category == ALL_CATEGORIES or entry.category == category
        ]
        feeds = self.feeds
        view = []
        for entry in entries:
            mine = _first_by_url(feeds, entry.url)
            view.append(entry.to_feed(is_favorite=mine.is_favorite if mine else False))
        return view

    def find_by_url(self, url: str) -> Optional[Feed]:
        return _first_by_url(self.feeds, url)

    def startup_tab(self) -> str:
        """Tab to open first: favorites, else the user's feeds, else the catalog."""
        feeds = self.feeds
        if any(feed.is_favorite for feed in feeds):
            return TAB_FAVORITE
        if feeds:
            return TAB_MY_FEEDS
        return TAB_POPULAR

    def add_feed(self, name: str, url: str, category: str = DEFAULT_CATEGORY) -> Feed:
        """Append a user feed. URLs already in the list are rejected."""
        url = validate_feed_url(url)
        if not name or not name.strip():
            raise ValueError("Feed name must not be empty.")

        with self._lock:
            if _first_by_url(self._feeds, url) is not None:
                raise DuplicateFeed(f"Feed already subscribed: {url}")
            feed = Feed(
                id=new_feed_id(),
                name=name.strip(),
                url=url,
                category=category or DEFAULT_CATEGORY,
            )
            self._commit(self._feeds + [feed])

        logger.info("Added feed '%s' (%s)", feed.name, feed.url)
        return feed.copy()

    def delete_feed(self, feed_id: str) -> Feed:
        with self._lock:
            index = self._index_by_id(feed_id)
            removed = self._feeds[index]
            self._commit(self._feeds[:index] + self._feeds[index + 1 :])

        logger.info("Deleted feed '%s' (%s)", removed.name, removed.url)
        return removed.copy()

    def toggle_favorite(self, feed_id: str) -> Feed:
        """Flip the favorite flag of a user feed addressed by id."""
        with self._lock:
            index = self._index_by_id(feed_id)
            updated = self._feeds[index].copy(
                is_favorite=not self._feeds[index].is_favorite
            )
            self._commit(self._replace(index, updated))

        logger.info(
            "Favorite toggled: %s -> %s", updated.name, "ON" if updated.is_favorite else "OFF"
        )
        return updated.copy()

    def toggle_catalog_favorite(self, target: Union[CatalogEntry, Feed, str]) -> Feed:
        """Promote a catalog feed into the user list, or flip it if already there.

        ``target`` may be a catalog entry, a feed from ``catalog_view`` or a URL
        present in the catalog.
        """
        entry = self._catalog_entry(target)
        with self._lock:
            index = _index_by_url(self._feeds, entry.url)
            if index is None:
                updated = entry.to_feed(is_favorite=True)
                self._commit(self._feeds + [updated])
                logger.info("Promoted catalog feed '%s' to favorites", updated.name)
            else:
                updated = self._feeds[index].copy(
                    is_favorite=not self._feeds[index].is_favorite
                )
                self._commit(self._replace(index, updated))
                logger.info(
                    "Catalog favorite toggled: %s -> %s",
                    updated.name,
                    "ON" if updated.is_favorite else "OFF",
                )
        return updated.copy()

    def import_feeds(self, entries: Iterable[CatalogEntry]) -> List[Feed]:
        """Add feeds in bulk, skipping URLs that are already subscribed."""
        added: List[Feed] = []
        with self._lock:
            pending = list(self._feeds)
            for entry in entries:
                try:
                    url = validate_feed_url(entry.url)
                except ValueError:
                    logger.warning("Skipping feed with invalid URL: %r", entry.url)
                    continue
                if _first_by_url(pending, url) is not None:
                    logger.debug("Skipping already subscribed feed %s", url)
                    continue
                feed = Feed(
                    id=new_feed_id(),
                    name=entry.name or url,
                    url=url,
                    category=entry.category or DEFAULT_CATEGORY,
                )
                pending.append(feed)
                added.append(feed)
            if added:
                self._commit(pending)

        logger.info("Imported %d new feeds", len(added))
        return [feed.copy() for feed in added]

    def _catalog_entry(self, target: Union[CatalogEntry, Feed, str]) -> CatalogEntry:
        if isinstance(target, CatalogEntry):
            return target
        url = target.url if isinstance(target, Feed) else target
        for entry in self._catalog:
            if entry.url == url:
                return entry
        raise FeedNotFound(f"No catalog feed with URL {url}")

    def _index_by_id(self, feed_id: str) -> int:
        for index, feed in enumerate(self._feeds):
            if feed.id == feed_id:
                return index
        raise FeedNotFound(f"No feed with id {feed_id}")

    def _replace(self, index: int, feed: Feed) -> List[Feed]:
        updated = list(self._feeds)
        updated[index] = feed
        return updated

    def _commit(self, feeds: List[Feed]) -> None:
        # Caller holds the lock.
        self._store.save(feeds)
        self._feeds = feeds


def _index_by_url(feeds: Sequence[Feed], url: str) -> Optional[int]:
    for index, feed in enumerate(feeds):
        if feed.url == url:
            return index
    return None


def _first_by_url(feeds: Sequence[Feed], url: str) -> Optional[Feed]:
    index = _index_by_url(feeds, url)
    return feeds[index] if index is not None else None
