"""Tests for the command line interface."""

import pytest
from click.testing import CliRunner

from hevy_coach.cli import main
from hevy_coach.config import get_settings


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at an empty data directory with no API keys."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("HEVY_COACH_USER", "cli-user")
    monkeypatch.delenv("HEVY_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    get_settings.cache_clear()
    yield tmp_path / "data"
    get_settings.cache_clear()


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    """Tests for the hevy-coach commands."""

    def test_version(self, runner, cli_env):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "hevy-coach" in result.output

    def test_init_creates_database(self, runner, cli_env):
        result = runner.invoke(main, ["init"])

        assert result.exit_code == 0
        assert "Database initialized" in result.output
        assert "HEVY_API_KEY is not set" in result.output
        assert (cli_env / "hevy_coach.db").exists()

    def test_commands_require_init(self, runner, cli_env):
        result = runner.invoke(main, ["profile", "show"])

        assert result.exit_code == 1
        assert "not initialized" in result.output

    def test_profile_set_and_show(self, runner, cli_env):
        runner.invoke(main, ["init"])

        result = runner.invoke(
            main,
            [
                "profile", "set",
                "--age", "35",
                "--frequency", "4",
                "--experience", "advanced",
                "--focus", "strength",
                "--focus", "powerlifting",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Profile saved" in result.output

        runner.invoke(main, ["profile", "set", "--weight", "90"])
        shown = runner.invoke(main, ["profile", "show"])

        assert shown.exit_code == 0
        assert "cli-user" in shown.output
        assert "advanced" in shown.output
        assert "strength, powerlifting" in shown.output
        assert "90" in shown.output

    def test_invalid_profile_values_exit_with_error(self, runner, cli_env):
        runner.invoke(main, ["init"])

        result = runner.invoke(main, ["profile", "set", "--frequency", "9"])

        assert result.exit_code == 1
        assert "Training frequency must be between 1 and 7" in result.output

    def test_profile_show_without_profile(self, runner, cli_env):
        runner.invoke(main, ["init"])

        result = runner.invoke(main, ["profile", "show"])

        assert result.exit_code == 1
        assert "Profile not found" in result.output

    def test_empty_history(self, runner, cli_env):
        runner.invoke(main, ["init"])

        result = runner.invoke(main, ["routines", "list"])

        assert result.exit_code == 0
        assert "No programs found" in result.output

    def test_export_unknown_program(self, runner, cli_env):
        runner.invoke(main, ["init"])

        result = runner.invoke(main, ["export", "42"])

        assert result.exit_code == 1
        assert "Routine not found" in result.output

    def test_generate_checks_ranges(self, runner, cli_env):
        runner.invoke(main, ["init"])

        result = runner.invoke(main, ["generate", "--per-week", "9"])

        assert result.exit_code == 2
