"""Unit tests for the main CLI application."""

import logging

from phpinictl import __version__
from phpinictl.cli.main import app, configure_logging
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"phpinictl version {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        """--help lists every command."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("list", "configure", "info", "validate", "extensions", "backup", "config"):
            assert command in result.stdout

    def test_no_args_shows_help(self) -> None:
        """Running without a command shows usage."""
        result = runner.invoke(app, [])

        assert "Usage" in result.stdout + (result.stderr or "")


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_levels(self) -> None:
        """Verbose enables debug output, quiet keeps only errors."""
        configure_logging(verbose=True, quiet=False)
        assert logging.getLogger().level == logging.DEBUG

        configure_logging(verbose=False, quiet=True)
        assert logging.getLogger().level == logging.ERROR

        configure_logging(verbose=False, quiet=False)
        assert logging.getLogger().level == logging.WARNING
