"""Tests for the management CLI."""

from __future__ import annotations

from click.testing import CliRunner
import pytest

from catalog_service import __version__
from catalog_service.cli.main import cli
from catalog_service.core.settings import clear_all_caches


@pytest.fixture
def runner():
    clear_all_caches()
    yield CliRunner()
    clear_all_caches()


@pytest.mark.unit
class TestCli:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_groups(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for group in ("db", "cache", "server"):
            assert group in result.output

    def test_db_commands_require_enabled_database(self, runner, monkeypatch):
        monkeypatch.setenv("DB_ENABLED", "false")

        result = runner.invoke(cli, ["db", "create-schema"])

        assert result.exit_code == 1
        assert "DB_ENABLED" in result.output

    def test_cache_commands_require_enabled_redis(self, runner, monkeypatch):
        monkeypatch.setenv("REDIS_ENABLED", "false")

        result = runner.invoke(cli, ["cache", "invalidate"])

        assert result.exit_code == 1
        assert "REDIS_ENABLED" in result.output

    def test_seed_fills_sqlite_database(self, runner, monkeypatch, tmp_path):
        monkeypatch.setenv("DB_ENABLED", "true")
        monkeypatch.setenv("DB_CONNECT_RETRIES", "0")
        monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")

        first = runner.invoke(cli, ["db", "seed", "--count", "30", "--batch-size", "10"])
        second = runner.invoke(cli, ["db", "seed", "--count", "30"])

        assert first.exit_code == 0, first.output
        assert "Inserted 30 products" in first.output
        assert second.exit_code == 0, second.output
        assert "Nothing to do" in second.output
