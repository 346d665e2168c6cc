"""Pluggable flat object stores."""

from clouddrive.lib.storage.base import ListPage, ObjectInfo, ObjectStore, StoredObject
from clouddrive.lib.storage.local import LocalObjectStore
from clouddrive.lib.storage.manager import create_object_store
from clouddrive.lib.storage.memory import MemoryObjectStore

__all__ = [
    "ListPage",
    "LocalObjectStore",
    "MemoryObjectStore",
    "ObjectInfo",
    "ObjectStore",
    "StoredObject",
    "create_object_store",
]
