"""Object store protocol and common types."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

DEFAULT_PAGE_SIZE = 1000


@dataclass(frozen=True)
class ObjectInfo:
    """Metadata for an object held by a store."""

    key: str
    size: int
    uploaded_at: datetime
    content_type: str | None = None
    etag: str | None = None


@dataclass(frozen=True)
class StoredObject:
    """An object's metadata together with its payload."""

    info: ObjectInfo
    body: bytes

    @property
    def key(self) -> str:
        return self.info.key

    @property
    def content_type(self) -> str | None:
        return self.info.content_type


@dataclass
class ListPage:
    """One page of a prefix listing.

    ``prefixes`` holds the rolled-up child prefixes when the listing was
    delimited. ``cursor`` is only meaningful while ``truncated`` is true.
    """

    objects: list[ObjectInfo] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)
    truncated: bool = False
    cursor: str | None = None


@runtime_checkable
class ObjectStore(Protocol):
    """Interface for flat key/blob stores with prefix listing."""

    async def get(self, key: str) -> StoredObject | None:
        """Return the object at *key*, or None if absent."""
        ...

    async def head(self, key: str) -> ObjectInfo | None:
        """Return metadata for *key* without the payload, or None if absent."""
        ...

    async def put(self, key: str, data: bytes | None, content_type: str | None = None) -> ObjectInfo:
        """Create or fully replace the object at *key*."""
        ...

    async def delete(self, keys: Sequence[str]) -> list[str]:
        """Delete *keys* and return the ones that could not be deleted."""
        ...

    async def list(
        self,
        prefix: str = "",
        delimiter: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> ListPage:
        """Return one page of objects whose keys start with *prefix*."""
        ...

    async def close(self) -> None:
        """Release resources held by the store."""
        ...


def paginate(
    entries: Iterable[ObjectInfo],
    prefix: str = "",
    delimiter: str | None = None,
    cursor: str | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
) -> ListPage:
    """Build a listing page from *entries* sorted by key.

    Emulates S3/R2 listing semantics for in-process stores: keys sharing
    ``prefix + segment + delimiter`` collapse into a single prefix entry, and
    rolled-up prefixes count against *limit* like objects do. The returned
    cursor is the name of the last entry emitted; the next page starts
    strictly after it.
    """
    page = ListPage()
    emitted = 0
    last_prefix: str | None = None

    for info in entries:
        key = info.key
        if not key.startswith(prefix):
            continue

        name = key
        rolled_up = False
        if delimiter:
            idx = key.find(delimiter, len(prefix))
            if idx != -1:
                name = key[: idx + len(delimiter)]
                rolled_up = True
                if name == last_prefix:
                    continue
                last_prefix = name

        if cursor is not None and name <= cursor:
            continue

        if emitted == limit:
            page.truncated = True
            break

        if rolled_up:
            page.prefixes.append(name)
        else:
            page.objects.append(info)
        page.cursor = name
        emitted += 1

    if not page.truncated:
        page.cursor = None
    return page
