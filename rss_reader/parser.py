"""Streaming RSS 2.0 / Atom parser.

The parser is a SAX content handler driven by start, character and end
events. It keeps one set of accumulator buffers for the entry being read and
emits a finished :class:`~rss_reader.models.Item` synchronously when the entry
closes, so items come out in document order.
"""

from __future__ import annotations

import logging
import re
import xml.sax
from dataclasses import dataclass
from typing import Dict, List, Optional, Union
from urllib.parse import urljoin

from .errors import ParseFailure
from .models import Item
from .text import clean_html

logger = logging.getLogger(__name__)

ENTRY_ELEMENTS = frozenset({"item", "entry"})

FIELD_ELEMENTS: Dict[str, str] = {
    "title": "title",
    "link": "link",
    "description": "description",
    "summary": "description",
    "content:encoded": "description",
    "content": "content",
    "pubDate": "pub_date",
    "published": "pub_date",
    "updated": "pub_date",
    "dc:date": "pub_date",
    "author": "author",
    "dc:creator": "author",
}

MEDIA_IMAGE_ELEMENTS = frozenset({"media:thumbnail", "media:content"})

_XML_DECL_ENCODING_RE = re.compile(
    rb'(<\?xml[^>]*encoding=["\'])([^"\']+)(["\'][^>]*\?>)', re.IGNORECASE
)

# Korean publishers often declare EUC-KR while emitting CP949 extensions.
ENCODING_ALIASES: Dict[str, str] = {
    "euc-kr": "cp949",
    "euc_kr": "cp949",
    "ks_c_5601-1987": "cp949",
}

# Atom <content> only fills in when no summary/description element is present.
BUFFERS = (
    "title", "link", "description", "content", "pub_date", "author", "image_url"
)


@dataclass(frozen=True)
class LinkHref:
    href: str
    rel: Optional[str] = None

    @property
    def is_alternate(self) -> bool:
        return self.rel in (None, "", "alternate")


@dataclass(frozen=True)
class Enclosure:
    url: str
    type: str


@dataclass(frozen=True)
class MediaImage:
    url: str


AttributeEvent = Union[LinkHref, Enclosure, MediaImage]


def attribute_event(name: str, attrs) -> Optional[AttributeEvent]:
    """Map the attributes of a start tag to a typed event, if it carries one."""
    if name == "link":
        href = attrs.get("href")
        if href:
            return LinkHref(href=href.strip(), rel=attrs.get("rel"))
    elif name == "enclosure":
        url = attrs.get("url")
        if url:
            return Enclosure(url=url.strip(), type=attrs.get("type") or "")
    elif name in MEDIA_IMAGE_ELEMENTS:
        url = attrs.get("url")
        if url:
            return MediaImage(url=url.strip())
    return None


@dataclass
class _Frame:
    name: str
    field: Optional[str]
    chunks: List[str]


class FeedHandler(xml.sax.ContentHandler):
    """SAX handler that turns item/entry elements into ``Item`` objects."""

    def __init__(self, base_url: Optional[str] = None):
        super().__init__()
        self.base_url = base_url
        self.items: List[Item] = []
        self._stack: List[_Frame] = []
        self._in_entry = False
        self._buffers: Dict[str, str] = {}
        self._reset_buffers()

    def _reset_buffers(self) -> None:
        self._buffers = {name: "" for name in BUFFERS}

    def _field_for(self, name: str) -> Optional[str]:
        if not self._in_entry:
            return None
        if name == "name" and self._stack and self._stack[-1].name == "author":
            return "author"
        return FIELD_ELEMENTS.get(name)

    def startElement(self, name, attrs):
        if name in ENTRY_ELEMENTS:
            self._reset_buffers()
            self._in_entry = True

        field = self._field_for(name)
        if self._in_entry:
            event = attribute_event(name, attrs)
            if event is not None and self._apply(event):
                # The attribute value replaces any text content of this element.
                field = None

        self._stack.append(_Frame(name=name, field=field, chunks=[]))

    def _apply(self, event: AttributeEvent) -> bool:
        if isinstance(event, LinkHref):
            # rel="alternate" (or no rel) is the entry's own page.
            if event.is_alternate or not self._buffers["link"]:
                self._buffers["link"] = event.href
            return True
        if isinstance(event, Enclosure):
            if "image" in event.type:
                self._buffers["image_url"] = event.url
            return False
        if isinstance(event, MediaImage):
            self._buffers["image_url"] = event.url
            return False
        return False

    def characters(self, content):
        if self._stack and self._stack[-1].field:
            self._stack[-1].chunks.append(content)

    def endElement(self, name):
        frame = self._stack.pop() if self._stack else None
        if frame is not None and frame.field and self._in_entry:
            text = "".join(frame.chunks).strip()
            # Split character events of one element concatenate; a second
            # element for an already filled buffer does not.
            if text and not self._buffers[frame.field]:
                self._buffers[frame.field] = text

        if name in ENTRY_ELEMENTS and self._in_entry:
            self.items.append(self._build_item())
            self._in_entry = False
            self._reset_buffers()

    def _resolve(self, value: str) -> str:
        if value and self.base_url:
            return urljoin(self.base_url, value)
        return value

    def _build_item(self) -> Item:
        buffers = self._buffers
        return Item(
            title=buffers["title"],
            link=self._resolve(buffers["link"]),
            description=clean_html(buffers["description"] or buffers["content"]),
            pub_date=buffers["pub_date"],
            author=buffers["author"] or None,
            image_url=self._resolve(buffers["image_url"]) or None,
        )


def _declared_encoding(data: bytes) -> str:
    if data.startswith((b"\xff\xfe", b"\xfe\xff")):
        return "utf-16"
    if data.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"
    match = _XML_DECL_ENCODING_RE.search(data[:2000])
    if match:
        return match.group(2).decode("ascii", errors="replace").strip().lower()
    return "utf-8"


def to_utf8_document(data: Union[bytes, str]) -> bytes:
    """Return the document as UTF-8 bytes with a matching XML declaration.

    expat only decodes single-byte charsets itself, so multi-byte documents
    (EUC-KR, Shift_JIS, UTF-16 ...) are transcoded here first.
    """
    if isinstance(data, str):
        raw = data.encode("utf-8")
    else:
        encoding = _declared_encoding(data)
        if encoding in ("utf-8", "utf8"):
            return data
        codec = ENCODING_ALIASES.get(encoding, encoding)
        try:
            raw = data.decode(codec).encode("utf-8")
        except (LookupError, UnicodeDecodeError) as exc:
            raise ParseFailure(
                f"Cannot decode feed document as {encoding}: {exc}"
            ) from exc
    return _XML_DECL_ENCODING_RE.sub(rb"\1utf-8\3", raw, count=1)


def parse_feed(data: Union[bytes, str], base_url: Optional[str] = None) -> List[Item]:
    """Parse an RSS or Atom document into items in document order.

    Raises ``ParseFailure`` for documents that are not well-formed XML or
    cannot be decoded in their declared encoding; no partial result is
    returned in that case.
    """
    document = to_utf8_document(data)
    handler = FeedHandler(base_url=base_url)
    try:
        xml.sax.parseString(document, handler)
    except (xml.sax.SAXException, ValueError, LookupError) as exc:
        raise ParseFailure(f"Malformed feed document: {exc}") from exc

    logger.info("Parsed %d items (base=%s)", len(handler.items), base_url)
    return handler.items
