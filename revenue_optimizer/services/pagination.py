"""Cursor extraction from Shopify's ``Link`` response header.

Shopify REST pagination returns links such as::

    <https://shop.myshopify.com/admin/api/2024-10/products.json?limit=50&page_info=abc>; rel="next"
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlparse

_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')


@dataclass
class PageCursors:
    next_page_info: Optional[str] = None
    prev_page_info: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return bool(self.next_page_info)

    @property
    def has_previous(self) -> bool:
        return bool(self.prev_page_info)

    def to_dict(self) -> dict:
        return {
            "hasNext": self.has_next,
            "hasPrevious": self.has_previous,
            "nextPageInfo": self.next_page_info,
            "prevPageInfo": self.prev_page_info,
        }


def _page_info(url: str) -> Optional[str]:
    values = parse_qs(urlparse(url).query).get("page_info")
    return values[0] if values else None


def extract_pagination(link_header: Optional[str]) -> PageCursors:
    """Parse a ``Link`` header into next/previous ``page_info`` cursors.

    Missing or malformed headers yield empty cursors.
    """
    cursors = PageCursors()
    if not link_header:
        return cursors

    for part in link_header.split(","):
        match = _LINK_RE.search(part)
        if not match:
            continue
        url, rel = match.groups()
        if rel == "next":
            cursors.next_page_info = _page_info(url)
        elif rel == "previous":
            cursors.prev_page_info = _page_info(url)
    return cursors
