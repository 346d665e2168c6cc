"""Small key-value stores holding derived scalars such as the size counter."""

from clouddrive.lib.counters.base import CounterStore
from clouddrive.lib.counters.file import FileCounterStore
from clouddrive.lib.counters.manager import create_counter_store
from clouddrive.lib.counters.memory import MemoryCounterStore

__all__ = ["CounterStore", "FileCounterStore", "MemoryCounterStore", "create_counter_store"]
