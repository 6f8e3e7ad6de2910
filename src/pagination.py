"""
Dexfeed - Pagination Sources
Strategy objects yielding successive pages of item identifiers.

GlobalFeed:   follows the server's opaque `next` URL through /pokemon.
CategoryFeed: slices a /type/{name} membership list by numeric offset
              (the server does not paginate that list).

Cursors are immutable values. A source replaces its cursor wholesale on every
page, and `restore()` puts a snapshot back after a failed batch.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from catalog_api import CatalogClient, MalformedPayload, parse_identifier
from config import PAGE_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    identifiers: Tuple[int, ...] = ()
    next_cursor: Optional[str] = None   # GlobalFeed only
    has_more: bool = False
    total: int = 0                      # CategoryFeed only


@dataclass(frozen=True)
class CategoryCursor:
    offset: int = 0
    has_more: bool = True


class PaginationSource:
    """Common surface of both feeds."""

    @property
    def exhausted(self) -> bool:
        raise NotImplementedError

    @property
    def cursor(self):
        raise NotImplementedError

    def restore(self, cursor):
        raise NotImplementedError

    async def fetch_page(self) -> Page:
        raise NotImplementedError


class GlobalFeed(PaginationSource):
    """Unfiltered listing; cursor is the next-page URL, None when done."""

    def __init__(self, client: CatalogClient, page_size: int = PAGE_SIZE):
        self._client = client
        self.page_size = page_size
        self._next_url: Optional[str] = client.list_url(page_size)

    def __repr__(self):
        return f"GlobalFeed(next={self._next_url!r})"

    @property
    def exhausted(self) -> bool:
        return self._next_url is None

    @property
    def cursor(self) -> Optional[str]:
        return self._next_url

    def restore(self, cursor: Optional[str]):
        self._next_url = cursor

    async def fetch_page(self) -> Page:
        if self.exhausted:
            return Page()

        data = await self._client.fetch_json(self._next_url)
        try:
            results = data["results"]
            ids = tuple(parse_identifier(r["url"]) for r in results)
        except (KeyError, TypeError) as e:
            raise MalformedPayload(f"Unexpected listing payload: {e!r}") from e

        self._next_url = data.get("next")
        if self._next_url is None:
            logger.info("GlobalFeed: reached the end of the listing")
        return Page(identifiers=ids, next_cursor=self._next_url,
                    has_more=self._next_url is not None)


class CategoryFeed(PaginationSource):
    """
    One category's members, sliced page_size at a time.

    `memberships` is a session-wide memo (category → ordered ids) so each
    distinct category's listing is fetched once however often the user
    switches back to it.
    """

    def __init__(self, client: CatalogClient, category: str,
                 page_size: int = PAGE_SIZE,
                 memberships: Dict[str, List[int]] = None):
        self._client = client
        self.category = category
        self.page_size = page_size
        self._memberships = memberships if memberships is not None else {}
        self._cursor = CategoryCursor()

    def __repr__(self):
        return (f"CategoryFeed({self.category!r}, offset={self.offset}, "
                f"has_more={self.has_more})")

    @property
    def offset(self) -> int:
        return self._cursor.offset

    @property
    def has_more(self) -> bool:
        return self._cursor.has_more

    @property
    def exhausted(self) -> bool:
        return not self._cursor.has_more

    @property
    def cursor(self) -> CategoryCursor:
        return self._cursor

    def restore(self, cursor: CategoryCursor):
        self._cursor = cursor

    async def _members(self) -> List[int]:
        members = self._memberships.get(self.category)
        if members is not None:
            return members

        data = await self._client.fetch_json(self._client.category_url(self.category))
        try:
            ids = [parse_identifier(entry["pokemon"]["url"]) for entry in data["pokemon"]]
        except (KeyError, TypeError) as e:
            raise MalformedPayload(f"Unexpected category payload: {e!r}") from e

        members = list(dict.fromkeys(ids))
        self._memberships[self.category] = members
        logger.info(f"CategoryFeed: '{self.category}' has {len(members)} members")
        return members

    async def fetch_page(self) -> Page:
        if self.exhausted:
            total = len(self._memberships.get(self.category, ()))
            return Page(total=total)

        members = await self._members()
        total = len(members)
        start = self._cursor.offset
        ids = tuple(members[start:start + self.page_size])
        has_more = start + self.page_size < total

        self._cursor = CategoryCursor(offset=start + self.page_size, has_more=has_more)
        return Page(identifiers=ids, has_more=has_more, total=total)
