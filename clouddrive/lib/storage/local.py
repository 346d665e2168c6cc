"""Local filesystem object store backend."""

from __future__ import annotations

import asyncio
import hashlib
import json
import os
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from clouddrive.errors import StoreUnavailable
from clouddrive.lib.storage.base import (
    DEFAULT_PAGE_SIZE,
    ListPage,
    ObjectInfo,
    StoredObject,
    paginate,
)

META_SUFFIX = ".json"
# Abandoned walks are evicted oldest first
MAX_CACHED_SCANS = 8


class LocalObjectStore:
    """Store objects on the local filesystem with hash-based subdirectories.

    Keys are arbitrary strings (folder markers end in ``/``), so the on-disk
    name is the SHA-256 of the key with two levels of fan-out. Each object is
    a payload file plus a ``.json`` sidecar holding the key and metadata; the
    sidecar is written last and is what makes the object visible.

    Listing has to read every sidecar. A walk that starts without a cursor
    scans once and its continuation pages reuse that sorted scan, so a
    paged walk costs one pass over the tree rather than one per page.
    """

    def __init__(self, base_path: Path, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._base_path = base_path
        self.page_size = page_size
        self._scans: dict[str, list[ObjectInfo]] = {}

    async def get(self, key: str) -> StoredObject | None:
        return await self._run(self._read_object, key)

    async def head(self, key: str) -> ObjectInfo | None:
        return await self._run(self._read_info, self._key_to_path(key))

    async def put(self, key: str, data: bytes | None, content_type: str | None = None) -> ObjectInfo:
        body = data or b""
        info = ObjectInfo(
            key=key,
            size=len(body),
            uploaded_at=datetime.now(timezone.utc),
            content_type=content_type,
            etag=hashlib.md5(body).hexdigest(),
        )
        await self._run(self._write_object, info, body)
        return info

    async def delete(self, keys: Sequence[str]) -> list[str]:
        failed = []
        for key in keys:
            try:
                await asyncio.to_thread(self._unlink, self._key_to_path(key))
            except OSError:
                failed.append(key)
        return failed

    async def list(
        self,
        prefix: str = "",
        delimiter: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> ListPage:
        limit = min(limit or self.page_size, self.page_size)
        entries = self._scans.get(prefix) if cursor is not None else None
        if entries is None:
            entries = await self._run(self._scan, prefix)
            self._remember_scan(prefix, entries)

        page = paginate(entries, prefix=prefix, delimiter=delimiter, cursor=cursor, limit=limit)
        if not page.truncated:
            self._scans.pop(prefix, None)
        return page

    async def close(self) -> None:
        """No persistent resources to clean up."""

    # -- internal helpers --

    def _remember_scan(self, prefix: str, entries: list[ObjectInfo]) -> None:
        self._scans.pop(prefix, None)
        if len(self._scans) >= MAX_CACHED_SCANS:
            self._scans.pop(next(iter(self._scans)))
        self._scans[prefix] = entries

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except (OSError, ValueError, KeyError) as exc:
            raise StoreUnavailable(f"Local store error: {exc}") from exc

    def _key_to_path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._base_path / digest[:2] / digest[2:4] / digest

    def _read_object(self, key: str) -> StoredObject | None:
        path = self._key_to_path(key)
        info = self._read_info(path)
        if info is None:
            return None
        try:
            body = path.read_bytes()
        except FileNotFoundError:
            return None
        return StoredObject(info=info, body=body)

    @staticmethod
    def _read_info(path: Path) -> ObjectInfo | None:
        try:
            raw = path.with_suffix(META_SUFFIX).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        meta = json.loads(raw)
        return ObjectInfo(
            key=meta["key"],
            size=meta["size"],
            uploaded_at=datetime.fromisoformat(meta["uploaded_at"]),
            content_type=meta.get("content_type"),
            etag=meta.get("etag"),
        )

    def _write_object(self, info: ObjectInfo, body: bytes) -> None:
        path = self._key_to_path(info.key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(body)
        meta = {
            "key": info.key,
            "size": info.size,
            "uploaded_at": info.uploaded_at.isoformat(),
            "content_type": info.content_type,
            "etag": info.etag,
        }
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(meta), encoding="utf-8")
        os.replace(tmp, path.with_suffix(META_SUFFIX))

    @staticmethod
    def _unlink(path: Path) -> None:
        path.with_suffix(META_SUFFIX).unlink(missing_ok=True)
        path.unlink(missing_ok=True)

    def _scan(self, prefix: str) -> list[ObjectInfo]:
        if not self._base_path.exists():
            return []
        entries = []
        for meta_path in self._base_path.rglob(f"*{META_SUFFIX}"):
            info = self._read_info(meta_path.with_suffix(""))
            if info is not None and info.key.startswith(prefix):
                entries.append(info)
        entries.sort(key=lambda info: info.key)
        return entries
