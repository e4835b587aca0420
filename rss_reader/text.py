"""Plain-text cleanup for feed descriptions."""

from __future__ import annotations

import re

_TAG_RE = re.compile(r"<[^>]+>")

# Order matters: "&amp;" is decoded after "&nbsp;" and before the brackets.
_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
)


def _clean_once(value: str) -> str:
    result = _TAG_RE.sub("", value)
    for entity, replacement in _ENTITIES:
        result = result.replace(entity, replacement)
    return result.strip()


def clean_html(raw_value: str) -> str:
    """Strip markup and decode the basic HTML entities.

    Complete ``<...>`` spans are removed; an unterminated ``<`` and whatever
    follows it is kept as text. The pass is repeated until the value is
    stable, so entity-encoded markup such as ``&lt;b&gt;`` is removed too and
    cleaning an already cleaned value returns it unchanged.

    The cost is that escaped comparison text is not preserved: once decoded,
    ``1 &lt; 2 and 3 &gt; 2`` holds a complete ``< ... >`` span, which the next
    pass strips to ``1  2``.
    """
    if not raw_value:
        return ""
    current = raw_value
    while True:
        cleaned = _clean_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned
