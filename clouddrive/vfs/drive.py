"""Entry point for request handlers: operations plus size bookkeeping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clouddrive.errors import InvalidArgument, NotFound, PartialFailure, StoreUnavailable
from clouddrive.lib import observability
from clouddrive.vfs import operations
from clouddrive.vfs.folders import FolderTree, build_folder_tree, list_all_folders
from clouddrive.vfs.listing import FolderListing, list_folder
from clouddrive.vfs.paths import PathKind, kind_of, validate_folder, validate_key

if TYPE_CHECKING:
    from clouddrive.lib.deferred import DeferredTasks
    from clouddrive.lib.storage.base import ObjectInfo, ObjectStore, StoredObject
    from clouddrive.vfs.ledger import LedgerReading, SizeLedger
    from clouddrive.vfs.operations import BatchResult

logger = logging.getLogger(__name__)


class Drive:
    """Folder-oriented facade over one object store.

    Every successful mutation hands its byte delta to the ledger as deferred
    work; the caller's response never waits for it. With no ledger
    configured, accounting is simply skipped.
    """

    def __init__(
        self,
        store: ObjectStore,
        deferred: DeferredTasks,
        ledger: SizeLedger | None = None,
    ) -> None:
        self.store = store
        self.deferred = deferred
        self.ledger = ledger

    # -- reads --

    async def list(self, prefix: str = "") -> FolderListing:
        return await list_folder(self.store, validate_folder(prefix))

    async def read(self, key: str) -> StoredObject:
        key = validate_key(key)
        if kind_of(key) is PathKind.FOLDER:
            raise InvalidArgument("Folders cannot be downloaded")
        stored = await self.store.get(key)
        if stored is None:
            raise NotFound(key)
        return stored

    async def usage(self) -> LedgerReading | None:
        """Return the size reading, or None when accounting is off or unreachable."""
        if self.ledger is None:
            return None
        try:
            return await self.ledger.get()
        except StoreUnavailable as exc:
            logger.warning("Size counter unavailable, omitting usage: %s", exc.message)
            return None

    async def measure(self, keys: list[str]) -> int:
        return await operations.measure(self.store, [validate_key(key) for key in keys])

    async def all_folders(self) -> list[str]:
        with observability.span("drive.list_all_folders"):
            return await list_all_folders(self.store)

    async def folder_tree(self) -> FolderTree:
        return build_folder_tree(await self.all_folders())

    # -- mutations --

    async def upload(self, folder: str, filename: str, data: bytes, content_type: str | None) -> ObjectInfo:
        """Store *data* as ``folder + filename``, replacing any existing object."""
        if not filename or "/" in filename:
            raise InvalidArgument("Invalid file name")
        key = validate_key(validate_folder(folder) + filename)
        with observability.span("drive.upload", key=key, size=len(data)):
            previous = await self.store.head(key)
            info = await self.store.put(key, data, content_type)
        self._record(info.size - (previous.size if previous else 0))
        logger.info("Uploaded %s (%d bytes)", key, info.size)
        return info

    async def create_folder(self, path: str) -> str:
        return await operations.create_folder(self.store, path)

    async def delete(self, keys: list[str]) -> BatchResult:
        with observability.span("drive.delete", count=len(keys)):
            result = await operations.delete(self.store, keys)
        self._record(-result.bytes)
        return self._check("delete", result)

    async def rename(self, old_key: str, new_key: str) -> BatchResult:
        with observability.span("drive.rename", old_key=old_key, new_key=new_key):
            result = await operations.rename(self.store, old_key, new_key)
        return self._check("rename", result)

    async def move(self, keys: list[str], destination: str) -> BatchResult:
        with observability.span("drive.move", count=len(keys), destination=destination):
            result = await operations.move(self.store, keys, destination)
        return self._check("move", result)

    async def copy(self, keys: list[str], destination: str) -> BatchResult:
        with observability.span("drive.copy", count=len(keys), destination=destination):
            result = await operations.copy(self.store, keys, destination)
        self._record(result.bytes)
        return self._check("copy", result)

    def reconcile_later(self) -> bool:
        """Schedule a background reconciliation. Returns False when accounting is off."""
        if self.ledger is None:
            return False
        self.ledger.schedule_reconcile()
        return True

    # -- helpers --

    def _record(self, delta: int) -> None:
        if self.ledger is not None:
            self.ledger.record(delta)

    @staticmethod
    def _check(operation: str, result: BatchResult) -> BatchResult:
        observability.batch_outcome(operation, result)
        if not result.ok:
            raise PartialFailure(operation, result)
        return result
