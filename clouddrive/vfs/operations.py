"""Folder-aware mutations expressed as sequences of flat key operations.

None of these are transactional. A recursive operation that dies halfway
leaves whatever it already did in place: a half-renamed folder has keys
under both the old and new prefix. Independent targets in a batch are
processed even when an earlier one failed; their outcome is reported in a
:class:`BatchResult` rather than rolled back.

Size accounting is not done here; see :mod:`clouddrive.vfs.drive`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clouddrive.errors import InvalidArgument, NotFound, StoreUnavailable
from clouddrive.vfs.paths import (
    PathKind,
    as_folder,
    kind_of,
    last_component,
    relocate,
    validate_folder,
    validate_key,
)
from clouddrive.vfs.traversal import iter_objects, sum_sizes

if TYPE_CHECKING:
    from clouddrive.lib.storage.base import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of a multi-target operation.

    ``completed`` and ``skipped`` hold object keys, ``failed`` maps a key to
    the error message, ``bytes`` totals the payload sizes that were deleted,
    copied or moved.
    """

    completed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    bytes: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


def _validate_keys(keys: Iterable[str]) -> list[str]:
    keys = list(keys)
    if not keys:
        raise InvalidArgument("No keys given")
    return [validate_key(key) for key in keys]


async def create_folder(store: ObjectStore, path: str) -> str:
    """Write a zero-byte marker for *path* and return the folder key.

    Writing the marker again is harmless, so re-creating a folder succeeds.
    """
    folder = as_folder(validate_key(path, field="path"))
    await store.put(folder, None, None)
    logger.info("Created folder %s", folder)
    return folder


async def measure(store: ObjectStore, keys: Iterable[str]) -> int:
    """Return the total size of *keys*, expanding folders recursively.

    Absent file keys count as zero.
    """
    total = 0
    for key in keys:
        if kind_of(key) is PathKind.FOLDER:
            total += await sum_sizes(store, key)
        else:
            info = await store.head(key)
            if info is not None:
                total += info.size
    return total


async def delete(store: ObjectStore, keys: Iterable[str]) -> BatchResult:
    """Delete files and whole folder subtrees with one batch delete.

    Sizes are gathered while collecting the targets so ``result.bytes``
    covers exactly the objects the store confirmed as deleted. Absent file
    keys are skipped. A target whose lookup fails is reported in
    ``result.failed`` and the rest of the batch still goes ahead.
    """
    result = BatchResult()
    sizes: dict[str, int] = {}

    for key in _validate_keys(keys):
        try:
            if kind_of(key) is PathKind.FOLDER:
                found = False
                async for info in iter_objects(store, key):
                    sizes[info.key] = info.size
                    found = True
                if not found:
                    result.skipped.append(key)
            else:
                info = await store.head(key)
                if info is None:
                    result.skipped.append(key)
                else:
                    sizes[key] = info.size
        except StoreUnavailable as exc:
            logger.warning("Could not collect %s for deletion: %s", key, exc.message)
            result.failed[key] = exc.message

    if not sizes:
        return result

    not_deleted = set(await store.delete(list(sizes)))
    for key, size in sizes.items():
        if key in not_deleted:
            result.failed[key] = "Delete failed"
        else:
            result.completed.append(key)
            result.bytes += size

    logger.info("Deleted %d objects (%d bytes)", len(result.completed), result.bytes)
    return result


async def rename(store: ObjectStore, old_key: str, new_key: str) -> BatchResult:
    """Rename a file, or every object under a folder prefix.

    Raises:
        NotFound: if *old_key* is a file that does not exist.
        InvalidArgument: if the keys are malformed, a file would become a
            folder (or a folder a file), or a folder would move into its own
            subtree.
    """
    old_key = validate_key(old_key, field="oldKey")
    new_key = validate_key(new_key, field="newKey")
    result = BatchResult()

    if kind_of(old_key) is PathKind.FILE:
        if kind_of(new_key) is PathKind.FOLDER:
            raise InvalidArgument("Cannot rename a file to a folder path")
        if old_key == new_key:
            return result
        stored = await store.get(old_key)
        if stored is None:
            raise NotFound(old_key)
        await store.put(new_key, stored.body, stored.content_type)
        if await store.delete([old_key]):
            raise StoreUnavailable(f"Renamed copy written but could not delete {old_key}")
        result.completed.append(old_key)
        result.bytes = stored.info.size
        logger.info("Renamed %s -> %s", old_key, new_key)
        return result

    if kind_of(new_key) is not PathKind.FOLDER:
        raise InvalidArgument("Cannot rename a folder to a file path")
    if old_key == new_key:
        return result
    if new_key.startswith(old_key):
        raise InvalidArgument("Cannot rename a folder into itself")

    async for info in iter_objects(store, old_key):
        await _transfer(store, info.key, relocate(info.key, old_key, new_key), result, move=True)

    logger.info("Renamed folder %s -> %s (%d objects)", old_key, new_key, len(result.completed))
    return result


async def move(store: ObjectStore, keys: Iterable[str], destination: str) -> BatchResult:
    """Move *keys* into the *destination* folder. See :func:`transfer`."""
    return await transfer(store, keys, destination, move=True)


async def copy(store: ObjectStore, keys: Iterable[str], destination: str) -> BatchResult:
    """Copy *keys* into the *destination* folder. See :func:`transfer`."""
    return await transfer(store, keys, destination, move=False)


async def transfer(
    store: ObjectStore,
    keys: Iterable[str],
    destination: str,
    *,
    move: bool,
) -> BatchResult:
    """Copy (and for moves, then delete) each source into *destination*.

    A source keeps its last path component: ``a/f.txt`` into ``b/`` becomes
    ``b/f.txt`` and ``a/sub/`` becomes ``b/sub/...``. Missing sources and
    sources that would land on themselves are skipped. For a move, each
    original is deleted only after its copy was written.
    """
    destination = validate_folder(destination, field="destination")
    sources = _validate_keys(keys)

    for key in sources:
        target = _destination_key(key, destination)
        if kind_of(key) is PathKind.FOLDER and target != key and target.startswith(key):
            raise InvalidArgument(f"Cannot {'move' if move else 'copy'} {key} into itself")

    result = BatchResult()
    for key in sources:
        target = _destination_key(key, destination)
        if target == key:
            result.skipped.append(key)
            continue

        if kind_of(key) is PathKind.FILE:
            await _transfer(store, key, target, result, move=move)
            continue

        found = False
        try:
            async for info in iter_objects(store, key):
                found = True
                await _transfer(store, info.key, relocate(info.key, key, target), result, move=move)
        except StoreUnavailable as exc:
            logger.warning("Listing %s failed mid-transfer: %s", key, exc.message)
            result.failed[key] = exc.message
            continue
        if not found:
            result.skipped.append(key)

    logger.info(
        "%s %d objects into %s (%d skipped, %d failed)",
        "Moved" if move else "Copied",
        len(result.completed),
        destination or "/",
        len(result.skipped),
        len(result.failed),
    )
    return result


def _destination_key(key: str, destination: str) -> str:
    name = last_component(key)
    return destination + name + ("/" if kind_of(key) is PathKind.FOLDER else "")


async def _transfer(
    store: ObjectStore,
    source: str,
    target: str,
    result: BatchResult,
    *,
    move: bool,
) -> None:
    """Copy one object, delete the source when moving, and record the outcome."""
    try:
        stored = await store.get(source)
        if stored is None:
            result.skipped.append(source)
            return
        await store.put(target, stored.body, stored.content_type)
        if move and await store.delete([source]):
            raise StoreUnavailable(f"Copied to {target} but could not delete {source}")
    except StoreUnavailable as exc:
        logger.warning("Transfer %s -> %s failed: %s", source, target, exc.message)
        result.failed[source] = exc.message
        return
    result.completed.append(source)
    result.bytes += stored.info.size
