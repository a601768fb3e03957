"""
Tests for the account administration CLI.
"""
import pytest
from typer.testing import CliRunner

from secureshop.cli import app
from secureshop.core import config

runner = CliRunner()


@pytest.fixture
def cli_settings(settings, monkeypatch):
    """Point the CLI at the per-test database."""
    monkeypatch.setattr(config, "get_settings", lambda: settings)
    return settings


class TestAccountCommands:
    """Test cases for ``secureshop accounts``."""

    def test_create_account(self, cli_settings, test_user):
        args = ["accounts", "create", test_user["email"], "--password", test_user["password"]]

        first = runner.invoke(app, args)
        second = runner.invoke(app, args)

        assert first.exit_code == 0
        assert second.exit_code == 1

    def test_create_rejects_weak_password(self, cli_settings):
        result = runner.invoke(app, ["accounts", "create", "weak@example.com", "--password", "short"])

        assert result.exit_code == 1

    def test_create_rejects_unknown_role(self, cli_settings, test_user):
        result = runner.invoke(
            app,
            ["accounts", "create", test_user["email"], "--role", "owner", "--password", test_user["password"]],
        )

        assert result.exit_code == 1

    def test_unlock_and_deactivate(self, cli_settings, test_user):
        runner.invoke(app, ["accounts", "create", test_user["email"], "--password", test_user["password"]])

        assert runner.invoke(app, ["accounts", "unlock", test_user["email"]]).exit_code == 0
        assert runner.invoke(app, ["accounts", "deactivate", test_user["email"]]).exit_code == 0
        assert runner.invoke(app, ["accounts", "revoke-sessions", test_user["email"]]).exit_code == 0

    @pytest.mark.parametrize("command", ["unlock", "deactivate", "revoke-sessions"])
    def test_unknown_account(self, cli_settings, command):
        result = runner.invoke(app, ["accounts", command, "nobody@example.com"])

        assert result.exit_code == 1


class TestServerCommands:
    """Test cases for ``secureshop server``."""

    def test_status(self):
        result = runner.invoke(app, ["server", "status"])

        assert result.exit_code == 0
        assert "Environment" in result.output
