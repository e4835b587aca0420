"""Command-line interface for the rss_reader application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
from pathlib import Path
from typing import List, Optional

from .catalog import ALL_CATEGORIES, TAB_FAVORITE, TAB_MY_FEEDS, FeedCatalog
from .config import AppConfig, parse_app_config, parse_feeds_config
from .db import FeedStore
from .errors import FeedNotFound
from .feeds import FeedSession
from .links import resolve_link
from .models import Failed
from .renderers import build_feed_list_text, build_session_text
from .runner import refresh_feeds

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Read RSS/Atom feeds and manage feed subscriptions."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the main configuration XML file.",
    )
    parser.add_argument(
        "--database",
        default=None,
        help="SQLAlchemy connection string for the feed list. Overrides config.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    commands = parser.add_subparsers(dest="command")

    commands.add_parser("categories", help="List catalog categories.")

    catalog = commands.add_parser("catalog", help="Show the popular feed catalog.")
    catalog.add_argument("--category", default=ALL_CATEGORIES)

    commands.add_parser("feeds", help="Show your feeds.")
    commands.add_parser("favorites", help="Show your favorite feeds.")

    add = commands.add_parser("add", help="Subscribe to a feed.")
    add.add_argument("name")
    add.add_argument("url")
    add.add_argument("--category", default=None)

    delete = commands.add_parser("delete", help="Remove one of your feeds by id.")
    delete.add_argument("feed_id")

    toggle = commands.add_parser("toggle", help="Toggle favorite on one of your feeds.")
    toggle.add_argument("feed_id")

    star = commands.add_parser("star", help="Toggle favorite on a catalog feed by URL.")
    star.add_argument("url")

    read = commands.add_parser("read", help="Fetch a feed and print its items.")
    read.add_argument("target", help="Feed URL or the id of one of your feeds.")

    refresh = commands.add_parser("refresh", help="Fetch all favorite feeds.")
    refresh.add_argument(
        "--all", action="store_true", help="Fetch every feed, not only favorites."
    )

    import_cmd = commands.add_parser("import", help="Import feeds from an OPML file.")
    import_cmd.add_argument("path")

    resolve = commands.add_parser("resolve", help="Show where an item link opens.")
    resolve.add_argument("url")

    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def open_catalog(connection_string: str) -> FeedCatalog:
    return FeedCatalog(FeedStore.from_connection_string(connection_string))


def _feed_url(catalog: FeedCatalog, target: str) -> str:
    for feed in catalog.feeds:
        if feed.id == target:
            return feed.url
    return target


def _startup_text(catalog: FeedCatalog) -> str:
    tab = catalog.startup_tab()
    if tab == TAB_FAVORITE:
        return build_feed_list_text(catalog.favorites(), title="즐겨찾기")
    if tab == TAB_MY_FEEDS:
        return build_feed_list_text(catalog.feeds, title="내피드")
    return build_feed_list_text(catalog.catalog_view(), title="인기피드", show_ids=False)


def run_command(args: argparse.Namespace, app_config: AppConfig, catalog: FeedCatalog) -> int:
    command = args.command
    fetch = app_config.fetch

    if command == "categories":
        print("\n".join(catalog.categories()))
    elif command == "catalog":
        print(
            build_feed_list_text(
                catalog.catalog_view(args.category),
                title=f"인기피드 #{args.category}",
                show_ids=False,
            )
        )
    elif command == "feeds":
        print(build_feed_list_text(catalog.feeds, title="내피드"))
    elif command == "favorites":
        print(
            build_feed_list_text(
                catalog.favorites(),
                title="즐겨찾기",
                empty_title="즐겨찾기된 피드가 없습니다",
                empty_message="자주 보는 피드를 즐겨찾기하세요",
            )
        )
    elif command == "add":
        if args.category:
            feed = catalog.add_feed(args.name, args.url, category=args.category)
        else:
            feed = catalog.add_feed(args.name, args.url)
        print(f"Added {feed.name} [{feed.id}]")
    elif command == "delete":
        feed = catalog.delete_feed(args.feed_id)
        print(f"Deleted {feed.name}")
    elif command == "toggle":
        feed = catalog.toggle_favorite(args.feed_id)
        print(f"{'★' if feed.is_favorite else '☆'} {feed.name}")
    elif command == "star":
        feed = catalog.toggle_catalog_favorite(args.url)
        print(f"{'★' if feed.is_favorite else '☆'} {feed.name}")
    elif command == "read":
        session = FeedSession(timeout=fetch.timeout, user_agent=fetch.user_agent)
        state = session.fetch(_feed_url(catalog, args.target))
        print(build_session_text(state))
        return 1 if isinstance(state, Failed) else 0
    elif command == "refresh":
        feeds = catalog.feeds if args.all else catalog.favorites()
        results = refresh_feeds(
            feeds,
            concurrency=fetch.concurrency,
            timeout=fetch.timeout,
            user_agent=fetch.user_agent,
        )
        for feed, state in results:
            print(f"== {feed.name} ==")
            print(build_session_text(state))
        return 1 if any(isinstance(state, Failed) for _, state in results) else 0
    elif command == "import":
        added = catalog.import_feeds(parse_feeds_config(args.path))
        print(f"Imported {len(added)} feeds")
    elif command == "resolve":
        target = resolve_link(args.url)
        if target.app_url:
            print(target.app_url)
        print(target.web_url)
    else:
        print(_startup_text(catalog))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()
        if args.database:
            app_config.database.connection_string = args.database

        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        logger.debug("Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(app_config)))

        catalog = open_catalog(app_config.database.connection_string)
        return run_command(args, app_config, catalog)
    except ValueError as exc:
        parser.error(str(exc))
    except FeedNotFound as exc:
        logger.error("%s", exc)
        return 1
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1
