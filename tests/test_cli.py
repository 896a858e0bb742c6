"""
Tests for gatehouse-ctl CLI tool.
"""

import json
import re
import pytest
import yaml
from datetime import datetime, timedelta
from typer.testing import CliRunner

from gatehouse.cli import app, parse_remember_option


@pytest.fixture
def cli_runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def sqlite_args(tmp_path):
    """Common options selecting a temporary SQLite database."""
    return [
        "--config", str(tmp_path / "absent.yaml"),
        "--provider", "sqlite",
        "--database", str(tmp_path / "users.db"),
    ]


@pytest.fixture
def memory_args(tmp_path):
    """Common options selecting a temporary YAML users file."""
    return [
        "--config", str(tmp_path / "absent.yaml"),
        "--provider", "memory",
        "--users-file", str(tmp_path / "users.yaml"),
    ]


class TestUserCommands:
    """Test user administration commands."""

    def test_add_and_list_sqlite(self, cli_runner, sqlite_args):
        result = cli_runner.invoke(app, ["add-user", "-u", "alice", "-e", "alice@example.com", "-p", "correct-pw"] + sqlite_args)

        assert result.exit_code == 0
        assert "User 'alice' created with id 1" in result.stdout

        result = cli_runner.invoke(app, ["users", "-o", "json"] + sqlite_args)

        assert result.exit_code == 0
        users = json.loads(result.stdout)
        assert users[0]["username"] == "alice"
        assert users[0]["email"] == "alice@example.com"

    def test_list_table(self, cli_runner, sqlite_args):
        cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + sqlite_args)

        result = cli_runner.invoke(app, ["users"] + sqlite_args)

        assert result.exit_code == 0
        assert "alice" in result.stdout

    def test_list_empty(self, cli_runner, sqlite_args):
        result = cli_runner.invoke(app, ["users"] + sqlite_args)

        assert result.exit_code == 0
        assert "No users found" in result.stdout

    def test_add_user_memory_persists_file(self, cli_runner, memory_args, tmp_path):
        result = cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + memory_args)

        assert result.exit_code == 0
        with open(tmp_path / "users.yaml") as f:
            data = yaml.safe_load(f)
        assert data["users"][0]["username"] == "alice"
        assert data["users"][0]["password_hash"].startswith("$2")

    def test_memory_provider_requires_users_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(app, [
            "add-user", "-u", "alice", "-p", "correct-pw",
            "--config", str(tmp_path / "absent.yaml"), "--provider", "memory",
        ])

        assert result.exit_code == 1

    def test_duplicate_user(self, cli_runner, sqlite_args):
        cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + sqlite_args)

        result = cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + sqlite_args)

        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_short_password(self, cli_runner, sqlite_args):
        result = cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "short"] + sqlite_args)

        assert result.exit_code == 1

    def test_delete_user(self, cli_runner, memory_args):
        cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + memory_args)

        result = cli_runner.invoke(app, ["delete-user", "1", "-y"] + memory_args)
        assert result.exit_code == 0

        result = cli_runner.invoke(app, ["delete-user", "1", "-y"] + memory_args)
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestVerifyCommand:
    """Test running a login through the guard from the CLI."""

    def test_verify_success(self, cli_runner, sqlite_args):
        cli_runner.invoke(app, ["add-user", "-u", "alice", "-e", "alice@example.com", "-p", "correct-pw"] + sqlite_args)

        result = cli_runner.invoke(app, ["verify", "alice@example.com", "-p", "correct-pw"] + sqlite_args)

        assert result.exit_code == 0
        assert "Login successful" in result.stdout
        assert "not issued" in result.stdout

    def test_verify_with_remember(self, cli_runner, sqlite_args):
        cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + sqlite_args)

        result = cli_runner.invoke(app, ["verify", "alice", "-p", "correct-pw", "--remember", "2 days"] + sqlite_args)

        assert result.exit_code == 0
        assert "expires" in result.stdout

    def test_verify_wrong_password(self, cli_runner, sqlite_args):
        cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + sqlite_args)

        result = cli_runner.invoke(app, ["verify", "alice", "-p", "wrong-pw"] + sqlite_args)

        assert result.exit_code == 1
        assert "Cannot verify user password" in result.stdout

    def test_verify_invalid_remember(self, cli_runner, sqlite_args):
        cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + sqlite_args)

        result = cli_runner.invoke(app, ["verify", "alice", "-p", "correct-pw", "--remember", "someday"] + sqlite_args)

        assert result.exit_code == 1

    def test_verify_remember_true_uses_default_duration(self, cli_runner, sqlite_args):
        cli_runner.invoke(app, ["add-user", "-u", "alice", "-p", "correct-pw"] + sqlite_args)

        result = cli_runner.invoke(app, ["verify", "alice", "-p", "correct-pw", "--remember", "1"] + sqlite_args)

        assert result.exit_code == 0
        expires_at = datetime.fromisoformat(re.search(r"expires (\S+)", result.stdout).group(1))
        assert expires_at - datetime.utcnow() > timedelta(days=1800)


class TestParseRememberOption:
    """Test mapping of --remember values."""

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes"])
    def test_flag_words_mean_default(self, value):
        assert parse_remember_option(value) is True

    @pytest.mark.parametrize("value", ["0", "false", "no"])
    def test_off_words(self, value):
        assert parse_remember_option(value) is False

    def test_durations_pass_through(self):
        assert parse_remember_option("2 days") == "2 days"
        assert parse_remember_option("3600000") == "3600000"
        assert parse_remember_option(None) is None
