import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early so env vars are available for YAML interpolation
load_dotenv(Path.cwd() / ".env")

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

CONFIG_ENV_VAR = "CLOUDDRIVE_CONFIG"


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def get_config_path() -> Path:
    """Return the app.yaml path, honouring $CLOUDDRIVE_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return Path.cwd() / "app.yaml"


def load_app_config() -> dict:
    """Load and parse app.yaml with environment variable interpolation."""
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"app.yaml not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    return interpolate_env_vars(config or {})


class S3Config(BaseModel):
    """S3-compatible bucket settings (AWS, R2, MinIO)."""

    bucket: str = ""
    region: str = "auto"
    endpoint_url: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    prefix: str = ""


class StorageConfig(BaseModel):
    """Object store configuration."""

    backend: str = "local"
    local_path: str = "./data/objects"
    page_size: int = 1000
    max_upload_size: int = 100 * 1024 * 1024
    s3: S3Config = S3Config()


class CounterConfig(BaseModel):
    """Counter store holding the aggregate size. ``none`` disables accounting."""

    backend: str = "file"
    path: str = "./data/counters.json"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "clouddrive"


class AccountingConfig(BaseModel):
    """Size accounting behaviour."""

    stale_after_hours: float = 24.0
    quota_bytes: int = 10 * 1024 * 1024 * 1024


class AuthConfig(BaseModel):
    """Authorization for mutating endpoints."""

    admin_token: str = ""
    max_failed_attempts: int = 10
    failed_attempt_window: float = 60.0
    trust_forwarded_for: bool = True


class DeferredConfig(BaseModel):
    """Background work settings."""

    shutdown_timeout: float = 10.0


class LogfireConfig(BaseModel):
    """Pydantic Logfire observability settings."""

    enabled: bool = False
    service_name: str = "clouddrive"
    environment: str | None = None
    sample_rate: float = 1.0
    console: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    debug: bool = False

    # Shortcut for auth.admin_token, the one secret most deployments set
    admin_token: str = ""

    storage: StorageConfig = StorageConfig()
    counters: CounterConfig = CounterConfig()
    accounting: AccountingConfig = AccountingConfig()
    auth: AuthConfig = AuthConfig()
    deferred: DeferredConfig = DeferredConfig()
    logfire: LogfireConfig = LogfireConfig()

    @property
    def effective_admin_token(self) -> str:
        return self.auth.admin_token or self.admin_token


_SECTIONS: dict[str, type[BaseModel]] = {
    "storage": StorageConfig,
    "counters": CounterConfig,
    "accounting": AccountingConfig,
    "auth": AuthConfig,
    "deferred": DeferredConfig,
    "logfire": LogfireConfig,
}


@lru_cache
def get_settings() -> Settings:
    """Load settings from .env and app.yaml."""
    # First create base settings from .env
    base_settings = Settings()

    # Load app.yaml config
    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    # Merge YAML config with settings
    updates = {}

    for name, model in _SECTIONS.items():
        if name in app_config:
            updates[name] = model(**app_config[name])

    for name in ("debug", "admin_token"):
        if name in app_config:
            updates[name] = app_config[name]

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings


def clear_settings_cache() -> None:
    """Forget the cached settings so the next get_settings() reloads them."""
    get_settings.cache_clear()
