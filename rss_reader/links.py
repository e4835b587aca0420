"""Resolve item links into app deep links where a native app exists."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlsplit, urlunsplit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkTarget:
    """Where to open a link: the app URL first if present, then the web URL."""

    web_url: str
    app_url: Optional[str] = None


def _host(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def is_youtube_url(url: str) -> bool:
    host = _host(url)
    return "youtube.com" in host or "youtu.be" in host


def is_reddit_url(url: str) -> bool:
    return "reddit.com" in _host(url)


def youtube_video_id(url: str) -> Optional[str]:
    """Extract the video id from ``youtube.com/watch?v=`` or ``youtu.be/`` links."""
    parts = urlsplit(url)
    if "youtube.com/watch" in url:
        values = parse_qs(parts.query).get("v")
        if values and values[0]:
            return values[0]
    if "youtu.be/" in url:
        segments = [segment for segment in parts.path.split("/") if segment]
        if segments:
            return segments[0]
    return None


def reddit_app_url(url: str) -> str:
    cleaned = url.replace("old.reddit.com", "reddit.com").replace(
        "www.reddit.com", "reddit.com"
    )
    parts = urlsplit(cleaned)
    return urlunsplit(("reddit", parts.netloc, parts.path, parts.query, parts.fragment))


def resolve_link(url: str) -> LinkTarget:
    if is_youtube_url(url):
        video_id = youtube_video_id(url)
        if video_id is None:
            logger.debug("No video id in YouTube link %s", url)
            return LinkTarget(web_url=url)
        return LinkTarget(
            web_url=url, app_url=f"youtube://www.youtube.com/watch?v={video_id}"
        )
    if is_reddit_url(url):
        return LinkTarget(web_url=url, app_url=reddit_app_url(url))
    return LinkTarget(web_url=url)
