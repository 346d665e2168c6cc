"""Counter store factory."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import TYPE_CHECKING

from clouddrive.lib.counters.file import FileCounterStore
from clouddrive.lib.counters.memory import MemoryCounterStore

if TYPE_CHECKING:
    from clouddrive.config import CounterConfig
    from clouddrive.lib.counters.base import CounterStore


def create_counter_store(config: CounterConfig) -> CounterStore | None:
    """Instantiate a counter store, or return None when accounting is disabled."""
    backend_type = config.backend

    if backend_type == "none":
        return None

    if backend_type == "memory":
        return MemoryCounterStore()

    if backend_type == "file":
        return FileCounterStore(Path(config.path))

    if backend_type == "redis":
        from clouddrive.lib.counters.redis_store import RedisCounterStore

        return RedisCounterStore(config.redis_url, key_prefix=config.key_prefix)

    if ":" in backend_type:
        module_path, _, class_name = backend_type.partition(":")
        module = importlib.import_module(module_path)
        return getattr(module, class_name)(config)

    raise ValueError(
        f"Unknown counter backend '{backend_type}'. "
        "Use 'none', 'memory', 'file', 'redis', or 'module:ClassName'."
    )
