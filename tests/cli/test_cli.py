"""Tests for the armory command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from armory import __version__
from armory.cli.common.error_handler import exit_code_for, handle_cli_error
from armory.cli.typer_app import app
from armory.services import CacheSweeper
from armory.shared.errors import ErrorCode, UpstreamRequestError, create_client_input_error

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Settings file pointing the cache at a private database."""
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "armory.toml"
    path.write_text(f'[cache]\ndb_path = "{(tmp_path / "cache.db").as_posix()}"\n', encoding="utf-8")
    return path


def invoke(config_file: Path, *args: str, **kwargs):
    return runner.invoke(app, ["--config", str(config_file), *args], **kwargs)


class TestGlobalOptions:
    """Main callback behavior."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"Armory {__version__}" in result.output

    def test_missing_config_file_is_a_usage_error(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--config", str(tmp_path / "absent.toml"), "cache", "stats"])

        assert result.exit_code == 2


class TestCacheCommands:
    """Cache maintenance commands against an empty database."""

    def test_stats_as_json(self, config_file: Path) -> None:
        # When
        result = invoke(config_file, "--json", "cache", "stats")

        # Then
        assert result.exit_code == 0, result.output
        document = json.loads(result.stdout)
        assert document["success"] is True
        assert document["command"] == "cache stats"
        assert document["data"] == {"total": 0, "active": 0, "expired": 0}
        assert document["errors"] == []

    def test_stats_as_table(self, config_file: Path) -> None:
        result = invoke(config_file, "cache", "stats")

        assert result.exit_code == 0, result.output
        assert "Cache Statistics" in result.output
        assert "Total Entries" in result.output

    def test_list_and_purge_on_empty_cache(self, config_file: Path) -> None:
        listed = invoke(config_file, "--json", "cache", "list", "--prefix", "realms:")
        purged = invoke(config_file, "--json", "cache", "purge")

        assert json.loads(listed.stdout)["data"]["entries"] == []
        assert json.loads(purged.stdout)["data"]["purged"] == 0

    def test_clear_with_confirmation_flag(self, config_file: Path) -> None:
        result = invoke(config_file, "--json", "cache", "clear", "--yes")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["data"] == {"deleted": 0}

    def test_clear_declined(self, config_file: Path) -> None:
        result = invoke(config_file, "cache", "clear", input="n\n")

        assert result.exit_code == 1

    def test_show_missing_key_exits_with_domain_error(self, config_file: Path) -> None:
        result = invoke(config_file, "cache", "show", "realms:retail:us")

        assert result.exit_code == 2
        assert "Error [cache:not_found]" in result.output

    def test_invalid_list_limit(self, config_file: Path) -> None:
        result = invoke(config_file, "--json", "cache", "list", "--limit", "0")

        assert result.exit_code == 2
        document = json.loads(result.stdout)
        assert document["success"] is False
        assert document["data"]["error_code"] == "cache:invalid_limit"


class TestStatusCommands:
    """Status and metrics output."""

    def test_status_as_json(self, config_file: Path) -> None:
        result = invoke(config_file, "--json", "status")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["status"] == "ok"
        assert data["token_cached"] is False
        assert data["cache"] == {"total": 0, "active": 0, "expired": 0}

    def test_prometheus_exposition(self, config_file: Path) -> None:
        result = invoke(config_file, "metrics", "--prometheus")

        assert result.exit_code == 0, result.output
        assert 'cache_entries{state="active"} 0.0' in result.output


class TestDataCommands:
    """Input validation happens before any Battle.net request."""

    def test_unknown_region_as_json(self, config_file: Path) -> None:
        # When
        result = invoke(config_file, "--json", "realms", "--region", "cn")

        # Then
        assert result.exit_code == 2
        document = json.loads(result.stdout)
        assert document["success"] is False
        assert document["command"] == "realms"
        assert document["data"]["error_code"] == "region:unsupported"
        assert document["data"]["exit_code"] == 2
        assert document["errors"] == ["Unsupported region: cn"]

    def test_missing_credentials_fail_at_startup(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ARMORY_API__BATTLENET__CLIENT_SECRET", "")

        result = invoke(config_file, "realms", "--region", "us")

        assert result.exit_code == 1
        assert "Error [bnet:credentials_missing]" in result.output

    def test_cache_commands_need_no_credentials(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ARMORY_API__BATTLENET__CLIENT_SECRET", "")

        assert invoke(config_file, "cache", "stats").exit_code == 0

    def test_battlenet_commands_run_the_cache_sweeper(self, config_file: Path, mocker) -> None:
        # Given
        start = mocker.spy(CacheSweeper, "start")
        stop = mocker.spy(CacheSweeper, "stop")

        # When
        result = invoke(config_file, "realms", "--region", "cn")

        # Then
        assert result.exit_code == 2
        start.assert_called_once()
        stop.assert_called_once()

    def test_cache_commands_leave_the_sweeper_idle(self, config_file: Path, mocker) -> None:
        start = mocker.spy(CacheSweeper, "start")

        assert invoke(config_file, "cache", "stats").exit_code == 0
        start.assert_not_called()

    def test_unknown_bracket(self, config_file: Path) -> None:
        result = invoke(config_file, "leaderboard", "pvp", "4v4")

        assert result.exit_code == 2
        assert "Error [leaderboard:unsupported_bracket]" in result.output


class TestErrorHandler:
    """Exit codes and error rendering."""

    def test_exit_codes(self) -> None:
        domain = create_client_input_error(ErrorCode.INVALID_LIMIT, "bad limit")
        upstream = UpstreamRequestError("us", "/data/wow/realm/index", 503)

        assert exit_code_for(domain) == 2
        assert exit_code_for(upstream) == 1
        assert exit_code_for(RuntimeError("boom")) == 1
        assert exit_code_for(KeyboardInterrupt()) == 130

    def test_unexpected_error_uses_generic_message(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = handle_cli_error(RuntimeError("db password leaked"), "realms")

        captured = capsys.readouterr()
        error_lines = [line for line in captured.err.splitlines() if line.startswith("Error [")]
        assert exit_code == 1
        assert error_lines == ["Error [server:unexpected]: An unexpected error occurred"]
