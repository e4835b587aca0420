"""Key-value persistence for the user feed list."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .models import Feed

logger = logging.getLogger(__name__)

FEEDS_KEY = "rssFeeds"


class Base(DeclarativeBase):
    pass


class PreferenceModel(Base):
    """A single named value."""

    __tablename__ = "preferences"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


def init_engine(connection_string: Optional[str]) -> Optional[Engine]:
    """Initialize the database engine."""
    if not connection_string:
        return None

    logger.info("Initializing database connection: %s", connection_string)
    engine = create_engine(connection_string)
    Base.metadata.create_all(engine)
    return engine


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory for the given engine."""
    return sessionmaker(bind=engine)


def get_value(session: Session, key: str) -> Optional[str]:
    stmt = select(PreferenceModel).where(PreferenceModel.key == key)
    result = session.execute(stmt).scalar_one_or_none()
    return result.value if result else None


def set_value(session: Session, key: str, value: str) -> None:
    """Insert or overwrite a named value."""
    stmt = select(PreferenceModel).where(PreferenceModel.key == key)
    existing = session.execute(stmt).scalar_one_or_none()

    if existing:
        existing.value = value
        existing.updated_at = datetime.now(timezone.utc)
    else:
        session.add(
            PreferenceModel(
                key=key, value=value, updated_at=datetime.now(timezone.utc)
            )
        )

    try:
        session.commit()
    except Exception:
        session.rollback()
        raise


class FeedStore:
    """Loads and saves the whole feed list as one serialized entry."""

    def __init__(self, session_factory: sessionmaker[Session], key: str = FEEDS_KEY):
        self._session_factory = session_factory
        self.key = key

    @classmethod
    def from_connection_string(cls, connection_string: str, key: str = FEEDS_KEY) -> "FeedStore":
        engine = init_engine(connection_string)
        if engine is None:
            raise ValueError("A database connection string is required.")
        return cls(get_session_factory(engine), key=key)

    def load(self) -> List[Feed]:
        with self._session_factory() as session:
            raw = get_value(session, self.key)
        if raw is None:
            return []

        try:
            payload = json.loads(raw)
            feeds = [Feed.from_dict(entry) for entry in payload]
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Ignoring unreadable feed list under %r: %s", self.key, exc)
            return []

        logger.debug("Loaded %d feeds from %r", len(feeds), self.key)
        return feeds

    def save(self, feeds: Iterable[Feed]) -> None:
        serialised = [feed.to_dict() for feed in feeds]
        with self._session_factory() as session:
            set_value(
                session, self.key, json.dumps(serialised, ensure_ascii=False)
            )
        logger.debug("Saved %d feeds under %r", len(serialised), self.key)
