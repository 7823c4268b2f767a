"""Tests for settings models and the settings loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from armory.config import Settings, load_settings
from armory.config.loader import SettingsLoader
from armory.shared.errors import ApplicationError, ErrorCode


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory so no local config.toml or .env is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write_toml(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestSettingsFromEnvironment:
    """ARMORY_-prefixed environment variables."""

    def test_defaults(self, isolated_cwd: Path) -> None:
        settings = Settings()

        assert settings.pagination.default_limit == 50
        assert settings.pagination.max_limit == 200
        assert settings.api.battlenet.max_retries == 2
        assert settings.cache.db_path.endswith("cache.db")

    def test_nested_variables(self, isolated_cwd: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Given
        monkeypatch.setenv("ARMORY_PAGINATION__MAX_LIMIT", "100")
        monkeypatch.setenv("ARMORY_API__BATTLENET__RETRY_JITTER_MS", "0")

        # When
        settings = Settings()

        # Then
        assert settings.pagination.max_limit == 100
        assert settings.api.battlenet.retry_jitter_ms == 0
        assert settings.api.battlenet.client_id == "test-client-id"

    def test_credentials_are_masked_in_repr(self, isolated_cwd: Path) -> None:
        text = repr(Settings().api.battlenet)

        assert "test-client-secret" not in text
        assert "client_secret=****" in text


class TestSettingsFromToml:
    """TOML configuration files."""

    def test_file_values_win_over_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Given
        monkeypatch.setenv("ARMORY_PAGINATION__MAX_LIMIT", "100")
        path = write_toml(
            tmp_path / "armory.toml",
            '[pagination]\nmax_limit = 150\n\n[cache]\ndb_path = ":memory:"\n',
        )

        # When
        settings = Settings.from_toml_file(path)

        # Then
        assert settings.pagination.max_limit == 150
        assert settings.cache.db_path == ":memory:"
        assert settings.api.battlenet.client_id == "test-client-id"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_toml_file(tmp_path / "absent.toml")


class TestLoadSettings:
    """Loader entry point."""

    def test_invalid_values_raise_config_error(self, tmp_path: Path) -> None:
        path = write_toml(tmp_path / "bad.toml", "[pagination]\ndefault_limit = 0\n")

        with pytest.raises(ApplicationError) as exc_info:
            load_settings(path)

        assert exc_info.value.code is ErrorCode.CONFIG_INVALID
        assert exc_info.value.status == 500

    def test_default_location_is_used(self, isolated_cwd: Path) -> None:
        write_toml(isolated_cwd / "config.toml", '[logging]\nlevel = "DEBUG"\n')

        assert load_settings().logging.level == "DEBUG"

    def test_environment_wins_over_dotenv(self, isolated_cwd: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Variables already exported are never overwritten by .env."""
        monkeypatch.setenv("ARMORY_LOGGING__LEVEL", "ERROR")
        (isolated_cwd / ".env").write_text("ARMORY_LOGGING__LEVEL=DEBUG\n", encoding="utf-8")

        assert load_settings().logging.level == "ERROR"


class TestSettingsLoader:
    """Cached global settings."""

    def test_get_config_is_cached_until_reload(self, isolated_cwd: Path) -> None:
        loader = SettingsLoader()

        first = loader.get_config()
        second = loader.get_config()
        reloaded = loader.reload_config()

        assert first is second
        assert reloaded is not first
        assert loader.get_config() is reloaded
