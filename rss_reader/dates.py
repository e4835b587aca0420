"""Publication timestamp parsing and display helpers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from email.utils import parsedate_to_datetime
from typing import Optional

from .errors import MalformedTimestamp

logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "%Y년 %m월 %d일 %H:%M"
JUST_NOW = "방금 전"


def parse_pub_date(raw: str) -> datetime:
    """Parse an RFC 822 ``pubDate`` into an aware datetime.

    Numeric offsets and the named zones (``GMT``, ``UT``, ``EST`` ...) are both
    accepted. A ``-0000`` zone is read as UTC.
    """
    try:
        parsed = parsedate_to_datetime(raw.strip())
    except (AttributeError, TypeError, ValueError) as exc:
        raise MalformedTimestamp(f"Unparseable timestamp: {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_absolute(raw: str, tz: Optional[tzinfo] = None) -> str:
    """Return the timestamp as a display string, or ``raw`` when it cannot be parsed."""
    try:
        parsed = parse_pub_date(raw)
    except MalformedTimestamp as exc:
        logger.debug("%s", exc)
        return raw
    return parsed.astimezone(tz).strftime(DISPLAY_FORMAT)


def time_ago(raw: str, now: Optional[datetime] = None) -> str:
    """Return a coarse "time since" bucket: days, then hours, then minutes."""
    try:
        parsed = parse_pub_date(raw)
    except MalformedTimestamp as exc:
        logger.debug("%s", exc)
        return JUST_NOW

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = int((now - parsed).total_seconds())
    if seconds <= 0:
        return JUST_NOW

    days, remainder = divmod(seconds, 86400)
    if days > 0:
        return f"{days}일 전"
    hours = remainder // 3600
    if hours > 0:
        return f"{hours}시간 전"
    minutes = remainder // 60
    if minutes > 0:
        return f"{minutes}분 전"
    return JUST_NOW
