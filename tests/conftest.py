"""Shared pytest fixtures."""

from unittest.mock import patch

import pytest
import yaml

from clouddrive.config import CounterConfig, Settings, StorageConfig, clear_settings_cache
from clouddrive.errors import StoreUnavailable
from clouddrive.lib.counters import MemoryCounterStore
from clouddrive.lib.deferred import DeferredTasks
from clouddrive.lib.storage import MemoryObjectStore
from clouddrive.vfs.drive import Drive
from clouddrive.vfs.ledger import SizeLedger

ADMIN_TOKEN = "test-admin-token"


class FlakyObjectStore(MemoryObjectStore):
    """Memory store that fails calls touching selected keys."""

    def __init__(self, page_size=1000):
        super().__init__(page_size=page_size)
        self.fail_get: set[str] = set()
        self.fail_put: set[str] = set()
        self.fail_delete: set[str] = set()
        self.fail_list: set[str] = set()

    async def get(self, key):
        if key in self.fail_get:
            raise StoreUnavailable(f"get {key} failed")
        return await super().get(key)

    async def put(self, key, data, content_type=None):
        if key in self.fail_put:
            raise StoreUnavailable(f"put {key} failed")
        return await super().put(key, data, content_type)

    async def delete(self, keys):
        failed = [key for key in keys if key in self.fail_delete]
        await super().delete([key for key in keys if key not in self.fail_delete])
        return failed

    async def list(self, prefix="", delimiter=None, cursor=None, limit=None):
        if prefix in self.fail_list:
            raise StoreUnavailable(f"list {prefix} failed")
        return await super().list(prefix, delimiter, cursor, limit)


@pytest.fixture
def store():
    """Memory store with tiny pages so every scan crosses page boundaries."""
    return MemoryObjectStore(page_size=2)


@pytest.fixture
def flaky_store():
    return FlakyObjectStore(page_size=2)


@pytest.fixture
def counters():
    return MemoryCounterStore()


@pytest.fixture
def deferred():
    return DeferredTasks()


@pytest.fixture
def ledger(counters, store, deferred):
    return SizeLedger(counters, store, deferred)


@pytest.fixture
def drive(store, deferred, ledger):
    return Drive(store, deferred, ledger)


@pytest.fixture
def settings():
    return Settings(
        admin_token=ADMIN_TOKEN,
        storage=StorageConfig(backend="memory", page_size=2, max_upload_size=1024),
        counters=CounterConfig(backend="memory"),
    )


@pytest.fixture
def temp_app_yaml(tmp_path):
    """Create a temporary app.yaml file for testing."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        return config_path

    return _create_config


@pytest.fixture
def use_app_yaml(temp_app_yaml):
    """Point get_settings() at a temporary app.yaml for the duration of a test."""
    patchers = []

    def _use(config: dict):
        config_path = temp_app_yaml(config)
        patcher = patch("clouddrive.config.get_config_path", return_value=config_path)
        patcher.start()
        patchers.append(patcher)
        clear_settings_cache()
        return config_path

    yield _use

    for patcher in patchers:
        patcher.stop()
    clear_settings_cache()


@pytest.fixture
def seed():
    """Return a coroutine function putting ``{key: bytes | None}`` into a store."""

    async def _seed(store, objects: dict):
        for key, body in objects.items():
            await store.put(key, body, "text/plain" if body else None)

    return _seed


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
