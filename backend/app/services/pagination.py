"""
RequestGraph Backend — Paginated Query Service
================================================

What:  Builds one filtered, bounded page of a collection plus the metadata
       a client needs to keep paging.
Why:   GET /api/requests/paginated serves UIs that show "page 3 of 12" as
       well as infinite-scroll clients that only follow a cursor.
How:   Two independent queries against CollectionStore:
         1. COUNT over the full filtered set (before any windowing)
         2. the window itself, fetching one extra row to detect has_more

Paging styles (precedence when several are supplied):
    cursor   opaque token from a previous response's X-Next-Cursor
    offset   zero-based row offset
    page     one-based page number (default 1)

Query plan (name filter, page 3, perPage 20):
    SELECT count(seq) FROM documents
     WHERE collection = 'requests' AND body->>'name' = :name
    SELECT * FROM documents
     WHERE collection = 'requests' AND body->>'name' = :name
     ORDER BY seq LIMIT 21 OFFSET 40

Edge cases:
    - No match: empty page, total_count 0, total_pages 0
    - Page past the end: empty page, totals unchanged
"""

import base64
import binascii
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from starlette.datastructures import URL

from app.exceptions import ValidationError
from app.storage.collection_store import CollectionStore

logger = logging.getLogger(__name__)

_CURSOR_PREFIX = "seq:"


def encode_cursor(seq: int) -> str:
    """Opaque continuation token pointing just past `seq`."""
    raw = f"{_CURSOR_PREFIX}{seq}".encode("ascii")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> int:
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("ascii")
    except (binascii.Error, UnicodeError, ValueError):
        raw = ""
    if not raw.startswith(_CURSOR_PREFIX) or not raw[len(_CURSOR_PREFIX):].isdigit():
        raise ValidationError(
            message="Invalid pagination cursor. Use the X-Next-Cursor value of a previous page.",
            field="cursor",
        )
    return int(raw[len(_CURSOR_PREFIX):])


@dataclass(frozen=True)
class PageRequest:
    per_page: int = 20
    page: int = 1
    offset: Optional[int] = None
    cursor: Optional[str] = None


@dataclass
class Page:
    """
    One window of results plus pagination state.

    `offset` is set only when the window was addressed by offset; `page` is
    set for page addressing and for offsets that fall on a page boundary.
    Both are None when the window was addressed by cursor.
    """

    items: List[Dict[str, Any]]
    total_count: int
    per_page: int
    total_pages: int
    has_more: bool
    page: Optional[int] = None
    offset: Optional[int] = None
    next_cursor: Optional[str] = None

    def headers(self, url: URL) -> Dict[str, str]:
        """
        Response headers describing this page.

        X-Total-Count   matches over the whole filtered set
        X-Total-Pages   ceil(total / perPage)
        X-Per-Page      window size used
        X-Page          current page (page paging, or page-aligned offsets)
        X-Next-Cursor   continuation token (only when more rows exist)
        Link            RFC 8288 first/prev/next/last
        """
        headers = {
            "X-Total-Count": str(self.total_count),
            "X-Total-Pages": str(self.total_pages),
            "X-Per-Page": str(self.per_page),
        }
        if self.page is not None:
            headers["X-Page"] = str(self.page)
        if self.next_cursor:
            headers["X-Next-Cursor"] = self.next_cursor

        links = self._links(url)
        if links:
            headers["Link"] = ", ".join(f'<{href}>; rel="{rel}"' for rel, href in links)
        return headers

    def _links(self, url: URL) -> List[tuple]:
        base = url.remove_query_params(["page", "offset", "cursor"])
        base = base.include_query_params(perPage=self.per_page)
        links = []

        if self.offset is not None:
            return self._offset_links(base)

        if self.page is None:
            # Cursor paging can only move forward
            if self.next_cursor:
                links.append(("next", str(base.include_query_params(cursor=self.next_cursor))))
            return links

        last = max(self.total_pages, 1)
        links.append(("first", str(base.include_query_params(page=1))))
        if self.page > 1:
            links.append(("prev", str(base.include_query_params(page=min(self.page - 1, last)))))
        if self.has_more:
            links.append(("next", str(base.include_query_params(page=self.page + 1))))
        links.append(("last", str(base.include_query_params(page=last))))
        return links

    def _offset_links(self, base: URL) -> List[tuple]:
        # Navigate by offset so a non-aligned start never repeats or skips rows
        last = max(self.total_pages - 1, 0) * self.per_page
        links = [("first", str(base.include_query_params(offset=0)))]
        if self.offset > 0:
            prev = max(self.offset - self.per_page, 0)
            links.append(("prev", str(base.include_query_params(offset=prev))))
        if self.has_more:
            links.append(
                ("next", str(base.include_query_params(offset=self.offset + self.per_page)))
            )
        links.append(("last", str(base.include_query_params(offset=last))))
        return links


async def paginate(
    store: CollectionStore,
    request: PageRequest,
    filters: Optional[Mapping[str, str]] = None,
) -> Page:
    """
    Fetch one page of `store` matching `filters`.

    Args:
        store:   Collection to read
        request: Window size and position (cursor > offset > page)
        filters: Exact-match attribute filters; None/empty means "all"

    Returns:
        Page with items and metadata. Never raises for empty or
        out-of-range windows.

    Raises:
        ValidationError: Cursor could not be decoded (→ 400)
    """
    filters = {k: v for k, v in (filters or {}).items() if v is not None}
    per_page = request.per_page

    # Total is computed over the filtered set, independently of the window
    total_count = await store.count(filters)
    total_pages = math.ceil(total_count / per_page) if total_count else 0

    page_number: Optional[int] = None
    offset: Optional[int] = None
    if request.cursor:
        after_seq = decode_cursor(request.cursor)
        rows = await store.window(filters, after_seq=after_seq, limit=per_page + 1)
    else:
        if request.offset is not None:
            offset = request.offset
            start = offset
            if offset % per_page == 0:
                page_number = offset // per_page + 1
        else:
            page_number = request.page
            start = (request.page - 1) * per_page
        rows = await store.window(filters, offset=start, limit=per_page + 1)

    # Fetched one extra row to learn whether another page exists
    has_more = len(rows) > per_page
    rows = rows[:per_page]
    next_cursor = encode_cursor(rows[-1].seq) if has_more and rows else None

    logger.debug(
        "Paginated %s filters=%s: %d of %d (page=%s, offset=%s, cursor=%s)",
        store.name, filters, len(rows), total_count, page_number, offset,
        bool(request.cursor),
    )

    return Page(
        items=[store.entity(row) for row in rows],
        total_count=total_count,
        per_page=per_page,
        total_pages=total_pages,
        has_more=has_more,
        page=page_number,
        offset=offset,
        next_cursor=next_cursor,
    )
