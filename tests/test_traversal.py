"""Tests for cursor-driven traversal."""

from unittest.mock import AsyncMock

import pytest

from clouddrive.lib.storage import ListPage
from clouddrive.vfs.traversal import PageCursor, child_prefixes, iter_objects, sum_sizes


@pytest.fixture
def five_files(store, seed):
    async def _fill():
        await seed(store, {f"docs/{i}.txt": b"x" * (i + 1) for i in range(5)})
        await seed(store, {"other/z.txt": b"zzz"})
        return store

    return _fill


class TestPageCursor:
    @pytest.mark.asyncio
    async def test_walks_every_page(self, five_files):
        store = await five_files()
        cursor = PageCursor(store, "docs/")

        pages = [page async for page in cursor]

        assert cursor.pages_read == 3
        assert [len(p.objects) for p in pages] == [2, 2, 1]
        assert pages[-1].truncated is False

    @pytest.mark.asyncio
    async def test_next_page_returns_none_when_exhausted(self, five_files):
        store = await five_files()
        cursor = PageCursor(store, "other/")
        assert await cursor.next_page() is not None
        assert await cursor.next_page() is None

    @pytest.mark.asyncio
    async def test_position_resumes_scan(self, five_files):
        store = await five_files()
        first = PageCursor(store, "docs/")
        await first.next_page()

        resumed = PageCursor(store, "docs/", start=first.position)
        keys = [o.key async for page in resumed for o in page.objects]
        assert keys == ["docs/2.txt", "docs/3.txt", "docs/4.txt"]

    @pytest.mark.asyncio
    async def test_restart(self, five_files):
        store = await five_files()
        cursor = PageCursor(store, "docs/")
        async for _ in cursor:
            pass

        cursor.restart()
        assert cursor.pages_read == 0
        assert len((await cursor.next_page()).objects) == 2

    @pytest.mark.asyncio
    async def test_passes_page_size_to_store(self):
        store = AsyncMock()
        store.list.return_value = ListPage()

        await PageCursor(store, "a/", page_size=10).next_page()

        store.list.assert_awaited_once_with(prefix="a/", delimiter=None, cursor=None, limit=10)


class TestDrivers:
    @pytest.mark.asyncio
    async def test_iter_objects_crosses_pages(self, five_files):
        store = await five_files()
        keys = [info.key async for info in iter_objects(store, "docs/")]
        assert keys == [f"docs/{i}.txt" for i in range(5)]

    @pytest.mark.asyncio
    async def test_sum_sizes(self, five_files):
        store = await five_files()
        assert await sum_sizes(store, "docs/") == 1 + 2 + 3 + 4 + 5
        assert await sum_sizes(store) == 15 + 3

    @pytest.mark.asyncio
    async def test_child_prefixes(self, store, seed):
        await seed(store, {"a/": None, "a/x.txt": b"1", "b/y.txt": b"2", "c/": None, "top.txt": b"3"})

        objects, prefixes = await child_prefixes(store)

        assert [o.key for o in objects] == ["top.txt"]
        assert prefixes == ["a/", "b/", "c/"]
