"""In-process counter store."""

from __future__ import annotations


class MemoryCounterStore:
    """Keep counter values in a dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    async def get(self, name: str) -> str | None:
        return self.values.get(name)

    async def put(self, name: str, value: str) -> None:
        self.values[name] = value

    async def close(self) -> None:
        """Nothing to release."""
