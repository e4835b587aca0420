import pytest

from rss_reader.catalog import (
    ALL_CATEGORIES,
    CATALOG,
    TAB_FAVORITE,
    TAB_MY_FEEDS,
    TAB_POPULAR,
    FeedCatalog,
)
from rss_reader.errors import DuplicateFeed, FeedNotFound, InvalidURL
from rss_reader.models import DEFAULT_CATEGORY, CatalogEntry, Feed


class MemoryStore:
    def __init__(self, feeds=None):
        self.saved = [list(feeds or [])]

    def load(self):
        return [feed.copy() for feed in self.saved[-1]]

    def save(self, feeds):
        self.saved.append([feed.copy() for feed in feeds])


class FailingStore(MemoryStore):
    def save(self, feeds):
        raise OSError("disk full")


SAMPLE = (
    CatalogEntry("News A", "https://news/a", "news"),
    CatalogEntry("Tech B", "https://tech/b", "tech"),
    CatalogEntry("News C", "https://news/c", "news"),
)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def catalog(memory_store):
    return FeedCatalog(memory_store, catalog=SAMPLE)


def test_categories_sorted_and_deduplicated(catalog):
    assert catalog.categories() == ["all", "news", "tech"]


def test_default_catalog_categories_start_with_all():
    categories = FeedCatalog(MemoryStore()).categories()

    assert categories[0] == ALL_CATEGORIES
    assert categories[1:] == sorted(set(entry.category for entry in CATALOG))
    assert "youtube" in categories


def test_default_catalog_urls_are_unique():
    urls = [entry.url for entry in CATALOG]

    assert len(urls) == len(set(urls))


def test_catalog_view_filters_by_category(catalog):
    assert [feed.name for feed in catalog.catalog_view("news")] == ["News A", "News C"]
    assert len(catalog.catalog_view()) == 3
    assert catalog.catalog_view("missing") == []


def test_catalog_view_overlays_favorite_flag(memory_store):
    memory_store.saved.append(
        [
            Feed(name="Mine", url="https://news/c", category="news", is_favorite=True),
            Feed(name="Dup", url="https://news/c", category="news", is_favorite=False),
        ]
    )
    catalog = FeedCatalog(memory_store, catalog=SAMPLE)

    flags = {feed.url: feed.is_favorite for feed in catalog.catalog_view()}

    assert flags == {"https://news/a": False, "https://tech/b": False, "https://news/c": True}
    # The view keeps catalog names and never touches the user list.
    assert [feed.name for feed in catalog.catalog_view("news")] == ["News A", "News C"]
    assert len(memory_store.saved) == 2


def test_promote_twice_toggles_single_entry(memory_store):
    catalog = FeedCatalog(memory_store, catalog=(CatalogEntry("A", "https://a", "news"),))

    first = catalog.toggle_catalog_favorite("https://a")
    assert first.is_favorite is True
    assert len(catalog.feeds) == 1

    second = catalog.toggle_catalog_favorite("https://a")

    assert second.is_favorite is False
    assert len(catalog.feeds) == 1
    assert catalog.feeds[0].is_favorite is False
    assert catalog.feeds[0].id == first.id


def test_promote_copies_catalog_fields(catalog, memory_store):
    entry = SAMPLE[1]

    feed = catalog.toggle_catalog_favorite(entry)

    assert (feed.name, feed.url, feed.category) == (entry.name, entry.url, entry.category)
    assert memory_store.saved[-1][0].to_dict() == feed.to_dict()


def test_promote_accepts_view_feed(catalog):
    view_feed = catalog.catalog_view("tech")[0]

    catalog.toggle_catalog_favorite(view_feed)

    assert catalog.catalog_view("tech")[0].is_favorite is True


def test_promote_toggles_existing_user_feed_with_same_url(catalog):
    mine = catalog.add_feed("My news", "https://news/a")

    updated = catalog.toggle_catalog_favorite("https://news/a")

    assert updated.id == mine.id
    assert updated.name == "My news"
    assert updated.is_favorite is True
    assert len(catalog.feeds) == 1


def test_promote_unknown_catalog_url(catalog):
    with pytest.raises(FeedNotFound):
        catalog.toggle_catalog_favorite("https://unknown")


def test_add_feed_defaults_and_persists(catalog, memory_store):
    feed = catalog.add_feed("Blog", "https://blog.example.com/rss")

    assert feed.category == DEFAULT_CATEGORY
    assert feed.is_favorite is False
    assert [f.url for f in memory_store.saved[-1]] == ["https://blog.example.com/rss"]


def test_add_feed_generates_distinct_ids(catalog):
    a = catalog.add_feed("A", "https://a.example.com/rss")
    b = catalog.add_feed("B", "https://b.example.com/rss")

    assert a.id != b.id


def test_add_feed_rejects_duplicate_url(catalog, memory_store):
    catalog.add_feed("Blog", "https://blog.example.com/rss", category="tech")

    with pytest.raises(DuplicateFeed):
        catalog.add_feed("Again", "https://blog.example.com/rss")

    assert len(catalog.feeds) == 1
    assert len(memory_store.saved) == 2


def test_add_feed_rejects_invalid_input(catalog):
    with pytest.raises(InvalidURL):
        catalog.add_feed("Bad", "not a url")
    with pytest.raises(ValueError):
        catalog.add_feed("  ", "https://ok.example.com/rss")


def test_toggle_favorite_by_id(catalog, memory_store):
    feed = catalog.add_feed("Blog", "https://blog.example.com/rss")

    toggled = catalog.toggle_favorite(feed.id)

    assert toggled.is_favorite is True
    assert memory_store.saved[-1][0].is_favorite is True
    assert [f.id for f in catalog.favorites()] == [feed.id]

    catalog.toggle_favorite(feed.id)
    assert catalog.favorites() == []


def test_toggle_unknown_id(catalog):
    with pytest.raises(FeedNotFound):
        catalog.toggle_favorite("missing")


def test_delete_feed(catalog, memory_store):
    keep = catalog.add_feed("Keep", "https://keep.example.com/rss")
    drop = catalog.add_feed("Drop", "https://drop.example.com/rss")

    catalog.delete_feed(drop.id)

    assert [f.id for f in catalog.feeds] == [keep.id]
    assert [f.id for f in memory_store.saved[-1]] == [keep.id]
    assert len(catalog.catalog_view()) == len(SAMPLE)

    with pytest.raises(FeedNotFound):
        catalog.delete_feed(drop.id)


def test_deleting_promoted_feed_clears_catalog_flag(catalog):
    feed = catalog.toggle_catalog_favorite("https://news/a")

    catalog.delete_feed(feed.id)

    assert catalog.catalog_view("news")[0].is_favorite is False


def test_failed_persist_keeps_previous_list():
    catalog = FeedCatalog(FailingStore(), catalog=SAMPLE)

    with pytest.raises(OSError):
        catalog.add_feed("Blog", "https://blog.example.com/rss")

    assert catalog.feeds == []


def test_feeds_returns_copies(catalog):
    catalog.add_feed("Blog", "https://blog.example.com/rss")

    catalog.feeds[0].is_favorite = True

    assert catalog.feeds[0].is_favorite is False


def test_import_feeds_skips_duplicates_and_invalid(catalog, memory_store):
    catalog.add_feed("Existing", "https://news/a")
    saves_before = len(memory_store.saved)

    added = catalog.import_feeds(
        [
            CatalogEntry("Existing copy", "https://news/a", "news"),
            CatalogEntry("New", "https://new.example.com/rss", "tech"),
            CatalogEntry("New again", "https://new.example.com/rss", "tech"),
            CatalogEntry("Broken", "nope", "tech"),
        ]
    )

    assert [feed.name for feed in added] == ["New"]
    assert [feed.url for feed in catalog.feeds] == ["https://news/a", "https://new.example.com/rss"]
    assert len(memory_store.saved) == saves_before + 1


def test_startup_tab(catalog):
    assert catalog.startup_tab() == TAB_POPULAR

    feed = catalog.add_feed("Blog", "https://blog.example.com/rss")
    assert catalog.startup_tab() == TAB_MY_FEEDS

    catalog.toggle_favorite(feed.id)
    assert catalog.startup_tab() == TAB_FAVORITE


def test_catalog_reloads_from_database_store(store):
    catalog = FeedCatalog(store, catalog=SAMPLE)
    catalog.toggle_catalog_favorite("https://tech/b")

    reloaded = FeedCatalog(store, catalog=SAMPLE)

    assert [feed.url for feed in reloaded.favorites()] == ["https://tech/b"]
    assert reloaded.catalog_view("tech")[0].is_favorite is True
