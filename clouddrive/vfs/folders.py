"""Whole-store folder discovery for destination pickers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from clouddrive.vfs.paths import SEPARATOR, ancestors, is_folder
from clouddrive.vfs.traversal import iter_objects

if TYPE_CHECKING:
    from clouddrive.lib.storage.base import ObjectStore

FolderTree = dict[str, Any]


async def list_all_folders(store: ObjectStore) -> list[str]:
    """Return every folder path in the store, sorted, root (``""``) first.

    Scans every key, so the cost grows with the total object count; only
    per-page memory is bounded by the store.
    """
    folders = {""}
    async for info in iter_objects(store):
        folders.update(ancestors(info.key))
        if is_folder(info.key):
            folders.add(info.key)
    return sorted(folders)


def build_folder_tree(paths: list[str]) -> FolderTree:
    """Nest folder paths into a mapping keyed by path component.

    ``["a/", "a/b/", "c/"]`` becomes ``{"a": {"b": {}}, "c": {}}``.
    """
    tree: FolderTree = {}
    for path in paths:
        node = tree
        for name in path.split(SEPARATOR):
            if name:
                node = node.setdefault(name, {})
    return tree
