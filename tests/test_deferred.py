"""Tests for fire-and-forget background work."""

import asyncio
import logging

import pytest

from clouddrive.lib.deferred import DeferredTasks


class TestDeferredTasks:
    @pytest.mark.asyncio
    async def test_runs_submitted_work(self):
        deferred = DeferredTasks()
        seen = []

        async def work(value, *, scale):
            seen.append(value * scale)

        deferred.submit(work, 2, scale=3)
        assert await deferred.drain() is True
        assert seen == [6]
        assert deferred.pending == 0

    @pytest.mark.asyncio
    async def test_submit_does_not_wait(self):
        deferred = DeferredTasks()
        release = asyncio.Event()

        async def blocked():
            await release.wait()

        deferred.submit(blocked)
        assert deferred.pending == 1

        release.set()
        await deferred.drain()
        assert deferred.pending == 0

    @pytest.mark.asyncio
    async def test_named_submissions_coalesce(self):
        deferred = DeferredTasks()
        release = asyncio.Event()
        runs = []

        async def scan():
            runs.append(1)
            await release.wait()

        deferred.submit(scan, name="scan")
        deferred.submit(scan, name="scan")
        deferred.submit(scan, name="scan")
        assert deferred.pending == 1

        release.set()
        await deferred.drain()
        assert runs == [1]

    @pytest.mark.asyncio
    async def test_name_is_reusable_after_completion(self):
        deferred = DeferredTasks()
        runs = []

        async def scan():
            runs.append(1)

        deferred.submit(scan, name="scan")
        await deferred.drain()
        deferred.submit(scan, name="scan")
        await deferred.drain()
        assert runs == [1, 1]

    @pytest.mark.asyncio
    async def test_failures_are_logged_not_raised(self, caplog):
        deferred = DeferredTasks()

        async def broken():
            raise RuntimeError("boom")

        with caplog.at_level(logging.WARNING, logger="clouddrive.lib.deferred"):
            deferred.submit(broken)
            assert await deferred.drain() is True

        assert "failed" in caplog.text
        assert "boom" in caplog.text

    @pytest.mark.asyncio
    async def test_drain_waits_for_work_submitted_while_draining(self):
        deferred = DeferredTasks()
        seen = []

        async def second():
            seen.append("second")

        async def first():
            seen.append("first")
            deferred.submit(second)

        deferred.submit(first)
        await deferred.drain()
        assert seen == ["first", "second"]

    @pytest.mark.asyncio
    async def test_drain_timeout(self):
        deferred = DeferredTasks()
        release = asyncio.Event()

        async def blocked():
            await release.wait()

        deferred.submit(blocked)
        assert await deferred.drain(timeout=0.01) is False
        assert deferred.pending == 1

        release.set()
        assert await deferred.drain() is True
