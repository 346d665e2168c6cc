"""Tests for the clouddrive command line."""

import asyncio
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from clouddrive.cli import cli
from clouddrive.config import CounterConfig, Settings, StorageConfig
from clouddrive.lib.storage import LocalObjectStore
from clouddrive.vfs.ledger import LAST_RECALCULATED_KEY, TOTAL_SIZE_KEY


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def disk_settings(tmp_path):
    """Settings backed by a local object directory and a JSON counter file."""
    return Settings(
        storage=StorageConfig(backend="local", local_path=str(tmp_path / "objects")),
        counters=CounterConfig(backend="file", path=str(tmp_path / "counters.json")),
    )


@pytest.fixture
def use_settings(disk_settings):
    with patch("clouddrive.config.get_settings", return_value=disk_settings):
        yield disk_settings


def seed_disk(settings, objects):
    store = LocalObjectStore(Path(settings.storage.local_path))

    async def run():
        for key, body in objects.items():
            await store.put(key, body or b"", None)

    asyncio.run(run())


class TestTokenCommand:
    def test_prints_token(self, runner):
        result = runner.invoke(cli, ["token"])
        assert result.exit_code == 0
        assert len(result.output.strip()) >= 32

    def test_hex_format(self, runner):
        result = runner.invoke(cli, ["token", "--format", "hex", "--length", "8"])
        assert result.exit_code == 0
        value = result.output.strip()
        assert len(value) == 16
        int(value, 16)

    def test_write_appends_to_env(self, runner, tmp_path):
        env = tmp_path / ".env"
        env.write_text("DEBUG=true")

        result = runner.invoke(cli, ["token", "--write", str(env)])

        assert result.exit_code == 0
        lines = env.read_text().splitlines()
        assert lines[0] == "DEBUG=true"
        assert lines[1].startswith("ADMIN_TOKEN=")

    def test_write_replaces_existing_token(self, runner, tmp_path):
        env = tmp_path / ".env"
        env.write_text("ADMIN_TOKEN=old\nOTHER=1\n")

        runner.invoke(cli, ["token", "--write", str(env)])

        content = env.read_text()
        assert "ADMIN_TOKEN=old" not in content
        assert content.count("ADMIN_TOKEN=") == 1
        assert "OTHER=1" in content


class TestReconcileCommand:
    def test_prints_total(self, runner, use_settings):
        seed_disk(use_settings, {"a.txt": b"12345", "docs/b.txt": b"12"})

        result = runner.invoke(cli, ["reconcile"])

        assert result.exit_code == 0, result.output
        assert "Total size: 7 bytes" in result.output
        counters = json.loads(Path(use_settings.counters.path).read_text())
        assert counters[TOTAL_SIZE_KEY] == "7"
        assert LAST_RECALCULATED_KEY in counters

    def test_accounting_disabled(self, runner, use_settings):
        use_settings.counters.backend = "none"

        result = runner.invoke(cli, ["reconcile"])

        assert result.exit_code != 0
        assert "Size accounting is disabled" in result.output


class TestUsageCommand:
    def test_never_calculated(self, runner, use_settings):
        result = runner.invoke(cli, ["usage", "--json"])

        assert result.exit_code == 0, result.output
        reading = json.loads(result.output)
        assert reading["total_size"] == 0
        assert reading["provisional"] is True
        assert reading["last_recalculated"] is None
        assert not Path(use_settings.counters.path).exists()

    def test_after_reconcile(self, runner, use_settings):
        seed_disk(use_settings, {"a.bin": b"x" * 2048})
        runner.invoke(cli, ["reconcile"])

        result = runner.invoke(cli, ["usage"])

        assert result.exit_code == 0, result.output
        assert "2 KB (2048 bytes)" in result.output
        assert "never" not in result.output


class TestFoldersCommand:
    def test_flat_listing(self, runner, use_settings):
        seed_disk(use_settings, {"docs/": None, "docs/a.txt": b"a", "pics/2024/b.png": b"b"})

        result = runner.invoke(cli, ["folders"])

        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "/"
        assert "docs/" in lines
        assert "pics/2024/" in lines

    def test_tree(self, runner, use_settings):
        seed_disk(use_settings, {"pics/2024/b.png": b"b"})

        result = runner.invoke(cli, ["folders", "--tree"])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["/", "  pics/", "    2024/"]
