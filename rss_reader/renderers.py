"""Text rendering for session states and feed lists."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Dict, Optional, Sequence

from .errors import FETCH_FAILED, FETCH_HTTP_ERROR, FETCH_TIMEOUT, INVALID_URL, PARSE_FAILED
from .models import Feed, Item, SessionState
from .templating import get_environment

LOADING_MESSAGE = "불러오는 중..."
EMPTY_MESSAGE = "뉴스가 없습니다"

ERROR_TITLES: Dict[str, str] = {
    INVALID_URL: "잘못된 URL입니다",
    PARSE_FAILED: "RSS 피드를 파싱하는데 실패했습니다",
    FETCH_TIMEOUT: "RSS 피드를 가져오는데 실패했습니다",
    FETCH_HTTP_ERROR: "RSS 피드를 가져오는데 실패했습니다",
    FETCH_FAILED: "RSS 피드를 가져오는데 실패했습니다",
}


def _item_view(item: Item, now: Optional[datetime], tz: Optional[tzinfo]) -> dict:
    return {
        "title": item.title,
        "link": item.link,
        "description": item.description,
        "author": item.author,
        "image_url": item.image_url,
        "date": item.formatted_date_in(tz),
        "time_ago": item.time_ago(now),
    }


def build_session_text(
    state: SessionState,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """Render exactly one of: loading, error, item list, or the empty message."""
    env = get_environment()
    template = env.get_template("session.txt.j2")
    items = getattr(state, "items", ())
    code = getattr(state, "code", None)
    return template.render(
        status=state.status,
        url=getattr(state, "url", None),
        items=[_item_view(item, now, tz) for item in items],
        loading_message=LOADING_MESSAGE,
        empty_message=EMPTY_MESSAGE,
        error_title=ERROR_TITLES.get(code, ERROR_TITLES[FETCH_FAILED]) if code else None,
        error_detail=getattr(state, "message", None),
    )


def build_feed_list_text(
    feeds: Sequence[Feed],
    title: str,
    empty_title: str = "저장된 피드가 없습니다",
    empty_message: str = "새로운 RSS 피드를 추가해보세요",
    show_ids: bool = True,
) -> str:
    """Render a list of feeds with their favorite marks and categories."""
    env = get_environment()
    template = env.get_template("feeds.txt.j2")
    return template.render(
        feeds=feeds,
        title=title,
        empty_title=empty_title,
        empty_message=empty_message,
        show_ids=show_ids,
    )
