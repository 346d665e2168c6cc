"""Cursor-driven enumeration of everything under a prefix.

The store hands back bounded pages and a cursor. :class:`PageCursor` walks
those pages one at a time; the module-level drivers build on it so no
operation has to write its own pagination loop.

There is no snapshot isolation: objects created or deleted while a scan is
in flight may or may not be seen.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clouddrive.lib.storage.base import ListPage, ObjectInfo, ObjectStore


class PageCursor:
    """Restartable async iterator over the listing pages of one prefix.

    ``position`` is the store cursor the next page will be requested with;
    passing it back as *start* resumes an interrupted scan.
    """

    def __init__(
        self,
        store: ObjectStore,
        prefix: str = "",
        *,
        delimiter: str | None = None,
        start: str | None = None,
        page_size: int | None = None,
    ) -> None:
        self._store = store
        self.prefix = prefix
        self.delimiter = delimiter
        self.page_size = page_size
        self._start = start
        self.position = start
        self.pages_read = 0
        self._exhausted = False

    async def next_page(self) -> ListPage | None:
        """Fetch the next page, or return None once the store is exhausted."""
        if self._exhausted:
            return None
        page = await self._store.list(
            prefix=self.prefix,
            delimiter=self.delimiter,
            cursor=self.position,
            limit=self.page_size,
        )
        self.pages_read += 1
        if page.truncated and page.cursor:
            self.position = page.cursor
        else:
            self.position = None
            self._exhausted = True
        return page

    def restart(self) -> None:
        """Rewind to where this cursor was created."""
        self.position = self._start
        self.pages_read = 0
        self._exhausted = False

    def __aiter__(self) -> AsyncIterator[ListPage]:
        return self

    async def __anext__(self) -> ListPage:
        page = await self.next_page()
        if page is None:
            raise StopAsyncIteration
        return page


async def iter_objects(
    store: ObjectStore,
    prefix: str = "",
    *,
    page_size: int | None = None,
) -> AsyncIterator[ObjectInfo]:
    """Yield every object whose key starts with *prefix*, across all pages."""
    async for page in PageCursor(store, prefix, page_size=page_size):
        for info in page.objects:
            yield info


async def sum_sizes(store: ObjectStore, prefix: str = "") -> int:
    """Return the total size in bytes of every object under *prefix*."""
    total = 0
    async for info in iter_objects(store, prefix):
        total += info.size
    return total


async def child_prefixes(store: ObjectStore, prefix: str = "") -> tuple[list[ObjectInfo], list[str]]:
    """Return the direct objects and rolled-up child prefixes of *prefix*."""
    objects: list[ObjectInfo] = []
    prefixes: list[str] = []
    async for page in PageCursor(store, prefix, delimiter="/"):
        objects.extend(page.objects)
        prefixes.extend(page.prefixes)
    return objects, prefixes
