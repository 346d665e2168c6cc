"""JSON file counter store for single-host deployments."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

from clouddrive.errors import StoreUnavailable


class FileCounterStore:
    """Persist counter values in one JSON document.

    Every ``put`` rewrites the whole file through a temporary file and an
    atomic rename, so readers never observe a half-written document.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    async def get(self, name: str) -> str | None:
        values = await self._run(self._load)
        return values.get(name)

    async def put(self, name: str, value: str) -> None:
        await self._run(self._store, name, value)

    async def close(self) -> None:
        """No persistent resources to clean up."""

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except (OSError, ValueError) as exc:
            raise StoreUnavailable(f"Counter file error: {exc}") from exc

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        return json.loads(raw) if raw.strip() else {}

    def _store(self, name: str, value: str) -> None:
        values = self._load()
        values[name] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self._path)
