"""Counter store protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CounterStore(Protocol):
    """A small durable string key-value store for derived scalars."""

    async def get(self, name: str) -> str | None:
        """Return the stored value for *name*, or None if never written."""
        ...

    async def put(self, name: str, value: str) -> None:
        """Overwrite the value for *name*."""
        ...

    async def close(self) -> None:
        """Release resources held by the store."""
        ...
