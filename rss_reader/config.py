"""Configuration loading for the feed reader."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree as ET

from .feeds import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .models import DEFAULT_CATEGORY, CatalogEntry

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "sqlite:///rss_reader.db"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class DatabaseConfig:
    connection_string: str = DEFAULT_DATABASE


@dataclass
class FetchConfig:
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    concurrency: int = 4


@dataclass
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)


def parse_feeds_config(path: str) -> List[CatalogEntry]:
    """Parse an OPML file and return the feed definitions it lists."""
    logger.info("Loading feed list from %s", path)
    tree = ET.parse(path)
    root = tree.getroot()
    body = root.find("body")
    feeds: List[CatalogEntry] = []

    def walk(outline: ET.Element, current_category: Optional[str]) -> None:
        title = outline.attrib.get("title") or outline.attrib.get("text")
        feed_url = outline.attrib.get("xmlUrl")
        outline_type = outline.attrib.get("type")

        if outline_type == "rss" and feed_url:
            feeds.append(
                CatalogEntry(
                    name=title or feed_url,
                    url=feed_url,
                    category=current_category or DEFAULT_CATEGORY,
                )
            )
            logger.debug(
                "Registered feed '%s' (category='%s')", feed_url, feeds[-1].category
            )
            return

        next_category = title if title else current_category
        for child in outline.findall("outline"):
            walk(child, next_category)

    if body is None:
        raise ValueError("OPML file is missing the <body> section.")

    for outline in body.findall("outline"):
        walk(outline, None)

    logger.info("Loaded %d feeds from %s", len(feeds), path)
    return feeds


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _resolve_sqlite(base_path: Path, connection_string: str) -> str:
    """Anchor relative SQLite file paths at the config file's directory."""
    prefix = "sqlite:///"
    if not connection_string.startswith(prefix):
        return connection_string
    db_path = connection_string[len(prefix) :]
    if not db_path or db_path == ":memory:" or db_path.startswith("/"):
        return connection_string
    return prefix + _resolve_path(base_path, db_path)


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()

    # Database
    db_config = DatabaseConfig()
    db_node = root.find("database")
    if db_node is not None:
        connection_string = (db_node.findtext("connection-string") or "").strip()
        if connection_string:
            db_config.connection_string = _resolve_sqlite(config_path, connection_string)

    # Logging
    logging_config = LoggingConfig()
    log_node = root.find("logging")
    if log_node is not None:
        logging_config.level = log_node.findtext("level", "INFO").strip()
        log_file = log_node.findtext("file")
        if log_file:
            logging_config.file = _resolve_path(config_path, log_file.strip())

    # Fetch
    fetch_config = FetchConfig()
    fetch_node = root.find("fetch")
    if fetch_node is not None:
        try:
            fetch_config.timeout = float(
                fetch_node.findtext("timeout", str(DEFAULT_TIMEOUT))
            )
            fetch_config.concurrency = int(fetch_node.findtext("concurrency", "4"))
        except ValueError as exc:
            raise ValueError(f"Invalid <fetch> setting in {config_path}: {exc}") from exc
        user_agent = fetch_node.findtext("user-agent")
        if user_agent and user_agent.strip():
            fetch_config.user_agent = user_agent.strip()

    if fetch_config.timeout <= 0:
        raise ValueError("<timeout> must be positive.")
    if fetch_config.concurrency <= 0:
        raise ValueError("<concurrency> must be positive.")

    return AppConfig(
        database=db_config,
        logging=logging_config,
        fetch=fetch_config,
    )
