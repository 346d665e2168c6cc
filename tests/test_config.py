"""Tests for settings loading from .env, environment and app.yaml."""

import os
from unittest.mock import patch

import pytest

from clouddrive.config import (
    CONFIG_ENV_VAR,
    AuthConfig,
    Settings,
    get_config_path,
    get_settings,
    interpolate_env_vars,
    load_app_config,
)


class TestInterpolateEnvVars:
    def test_replaces_variables(self):
        with patch.dict(os.environ, {"BUCKET_NAME": "files"}):
            assert interpolate_env_vars("s3://$BUCKET_NAME/x") == "s3://files/x"

    def test_recurses_into_containers(self):
        with patch.dict(os.environ, {"TOKEN": "abc"}):
            result = interpolate_env_vars({"auth": {"admin_token": "$TOKEN"}, "list": ["$TOKEN", 3]})
        assert result == {"auth": {"admin_token": "abc"}, "list": ["abc", 3]}

    def test_missing_variable_raises(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("CLOUDDRIVE_UNSET_VAR", None)
            with pytest.raises(ValueError, match="CLOUDDRIVE_UNSET_VAR"):
                interpolate_env_vars("$CLOUDDRIVE_UNSET_VAR")

    def test_non_strings_pass_through(self):
        assert interpolate_env_vars(42) == 42
        assert interpolate_env_vars(None) is None


class TestConfigPath:
    def test_env_override(self, tmp_path):
        custom = tmp_path / "drive.yaml"
        with patch.dict(os.environ, {CONFIG_ENV_VAR: str(custom)}):
            assert get_config_path() == custom

    def test_defaults_to_cwd(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(CONFIG_ENV_VAR, None)
            assert get_config_path().name == "app.yaml"

    def test_missing_file_raises(self, tmp_path):
        with patch("clouddrive.config.get_config_path", return_value=tmp_path / "absent.yaml"):
            with pytest.raises(FileNotFoundError):
                load_app_config()

    def test_empty_file_is_empty_config(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("")
        with patch("clouddrive.config.get_config_path", return_value=path):
            assert load_app_config() == {}


class TestGetSettings:
    def test_yaml_sections_are_merged(self, use_app_yaml):
        use_app_yaml({
            "storage": {"backend": "memory", "page_size": 50},
            "counters": {"backend": "none"},
            "accounting": {"stale_after_hours": 1},
            "debug": True,
        })

        settings = get_settings()

        assert settings.storage.backend == "memory"
        assert settings.storage.page_size == 50
        assert settings.counters.backend == "none"
        assert settings.accounting.stale_after_hours == 1
        assert settings.debug is True

    def test_unlisted_sections_keep_defaults(self, use_app_yaml):
        use_app_yaml({"storage": {"backend": "memory"}})

        settings = get_settings()

        assert settings.auth.max_failed_attempts == 10
        assert settings.counters.backend == "file"

    def test_yaml_values_interpolate_environment(self, use_app_yaml):
        with patch.dict(os.environ, {"DRIVE_TOKEN": "from-env"}):
            use_app_yaml({"auth": {"admin_token": "$DRIVE_TOKEN"}})
            settings = get_settings()

        assert settings.effective_admin_token == "from-env"

    def test_settings_are_cached(self, use_app_yaml):
        use_app_yaml({})
        assert get_settings() is get_settings()


class TestEffectiveAdminToken:
    def test_section_token_wins(self):
        settings = Settings(admin_token="top", auth=AuthConfig(admin_token="section"))
        assert settings.effective_admin_token == "section"

    def test_falls_back_to_top_level(self):
        settings = Settings(admin_token="top", auth=AuthConfig())
        assert settings.effective_admin_token == "top"
