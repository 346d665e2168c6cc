"""In-process object store backend."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from datetime import datetime, timezone

from clouddrive.lib.storage.base import (
    DEFAULT_PAGE_SIZE,
    ListPage,
    ObjectInfo,
    StoredObject,
    paginate,
)


class MemoryObjectStore:
    """Keep objects in a dict. Contents are lost when the process exits.

    ``page_size`` caps how many entries a single ``list`` call returns, which
    makes it easy to exercise multi-page traversal with small data sets.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.page_size = page_size
        self._objects: dict[str, StoredObject] = {}

    async def get(self, key: str) -> StoredObject | None:
        return self._objects.get(key)

    async def head(self, key: str) -> ObjectInfo | None:
        stored = self._objects.get(key)
        return stored.info if stored else None

    async def put(self, key: str, data: bytes | None, content_type: str | None = None) -> ObjectInfo:
        body = data or b""
        info = ObjectInfo(
            key=key,
            size=len(body),
            uploaded_at=datetime.now(timezone.utc),
            content_type=content_type,
            etag=hashlib.md5(body).hexdigest(),
        )
        self._objects[key] = StoredObject(info=info, body=body)
        return info

    async def delete(self, keys: Sequence[str]) -> list[str]:
        for key in keys:
            self._objects.pop(key, None)
        return []

    async def list(
        self,
        prefix: str = "",
        delimiter: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> ListPage:
        limit = min(limit or self.page_size, self.page_size)
        entries = [self._objects[key].info for key in sorted(self._objects)]
        return paginate(entries, prefix=prefix, delimiter=delimiter, cursor=cursor, limit=limit)

    async def close(self) -> None:
        """Nothing to release."""

    def keys(self) -> list[str]:
        """Return every stored key in sorted order."""
        return sorted(self._objects)
