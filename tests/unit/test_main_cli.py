"""Unit tests for the prune-landed CLI in prune_landed/main.py.

This module tests:
- Option parsing into settings
- Exit codes for configuration, run and unexpected errors
- A full run wired to fake Mercurial and a mocked Bugzilla transport
"""

import functools
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from click.testing import CliRunner

from prune_landed.config.settings import PrunerSettings
from prune_landed.exceptions import PhaseError
from prune_landed.main import (
    EXIT_CONFIG_ERROR,
    EXIT_RUN_ERROR,
    cli,
    load_settings,
    run_pruner,
)
from prune_landed.models.domain import Revision, RunSummary
from prune_landed.utils.connection_pool import HTTPConnectionPool

LANDED = "https://hg.mozilla.org/mozilla-central/rev/"


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def mock_configure_logging():
    with patch("prune_landed.main.configure_logging") as mock:
        yield mock


@pytest.fixture
def mock_run_pruner():
    with patch("prune_landed.main.run_pruner", new_callable=AsyncMock) as mock:
        mock.return_value = RunSummary()
        yield mock


def bugzilla_handler(bugs: dict[str, tuple[str, list[str]]]):
    """Mock transport handler serving bug status and comments."""

    def handler(request: httpx.Request) -> httpx.Response:
        parts = request.url.path.strip("/").split("/")
        bug_id = parts[2]
        status, bodies = bugs[bug_id]
        if parts[-1] == "comment":
            comments = [{"id": i, "raw_text": body} for i, body in enumerate(bodies, start=1)]
            return httpx.Response(200, json={"bugs": {bug_id: {"comments": comments}}})
        return httpx.Response(200, json={"bugs": [{"id": int(bug_id), "status": status}]})

    return handler


class TestOptions:
    """Test option handling."""

    def test_help(self, cli_runner):
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "--path" in result.output
        assert "--interleave" in result.output

    def test_version(self, cli_runner):
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "prune-landed" in result.output

    def test_defaults(self, cli_runner, mock_run_pruner, mock_configure_logging):
        result = cli_runner.invoke(cli, [])

        assert result.exit_code == 0
        settings = mock_run_pruner.call_args.args[0]
        assert settings.repo_path == Path(".")
        assert settings.interleave is False
        mock_configure_logging.assert_called_once_with("WARNING", "console")

    def test_options_reach_settings(self, cli_runner, mock_run_pruner, tmp_path):
        result = cli_runner.invoke(
            cli,
            ["-p", str(tmp_path), "--concurrency", "3", "--interleave", "--log-format", "json"],
        )

        assert result.exit_code == 0
        settings = mock_run_pruner.call_args.args[0]
        assert settings.repo_path == tmp_path
        assert settings.max_concurrent_lookups == 3
        assert settings.interleave is True

    def test_log_level_case_insensitive(self, cli_runner, mock_run_pruner, mock_configure_logging):
        result = cli_runner.invoke(cli, ["--log-level", "debug"])

        assert result.exit_code == 0
        mock_configure_logging.assert_called_once_with("DEBUG", "console")

    def test_unknown_log_level_rejected(self, cli_runner, mock_run_pruner, mock_configure_logging):
        result = cli_runner.invoke(cli, ["--log-level", "verbose"])

        assert result.exit_code == 2
        assert "verbose" in result.output
        mock_configure_logging.assert_not_called()
        mock_run_pruner.assert_not_called()

    def test_concurrency_out_of_range(self, cli_runner, mock_run_pruner):
        result = cli_runner.invoke(cli, ["--concurrency", "0"])

        assert result.exit_code == 2
        mock_run_pruner.assert_not_called()

    def test_config_file(self, cli_runner, mock_run_pruner, tmp_path):
        config = tmp_path / "prune.yaml"
        config.write_text("max_concurrent_lookups: 5\nhg_binary: chg\n")

        result = cli_runner.invoke(cli, ["--config", str(config), "--concurrency", "6"])

        assert result.exit_code == 0
        settings = mock_run_pruner.call_args.args[0]
        assert settings.hg_binary == "chg"
        assert settings.max_concurrent_lookups == 6


class TestExitCodes:
    """Test error reporting."""

    def test_missing_config(self, cli_runner, mock_run_pruner, tmp_path):
        result = cli_runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Configuration file not found" in result.output
        mock_run_pruner.assert_not_called()

    def test_run_error(self, cli_runner, mock_run_pruner):
        mock_run_pruner.side_effect = PhaseError("Failed to get list of draft revisions: boom", phase="list")

        result = cli_runner.invoke(cli, [])

        assert result.exit_code == EXIT_RUN_ERROR
        assert "Error: Failed to get list of draft revisions: boom (phase: list)" in result.output

    def test_unexpected_error(self, cli_runner, mock_run_pruner):
        mock_run_pruner.side_effect = RuntimeError("kaboom")

        result = cli_runner.invoke(cli, [])

        assert result.exit_code == EXIT_RUN_ERROR
        assert "Unexpected error: kaboom" in result.output


class TestLoadSettings:
    """Test load_settings."""

    def test_none_overrides_ignored(self):
        settings = load_settings(None, repo_path=None, interleave=None, max_concurrent_lookups=2)

        assert settings.repo_path == Path(".")
        assert settings.max_concurrent_lookups == 2


class TestFullRun:
    """Run the CLI end to end against fakes."""

    @pytest.fixture
    def revisions(self) -> list[Revision]:
        return [
            Revision(hash="1" * 40, description="Bug 100 - landed"),
            Revision(hash="2" * 40, description="Bug 200 - still open"),
            Revision(hash="3" * 40, description="no bug here"),
            Revision(hash="4" * 40, description="Bug 300: also landed"),
        ]

    @pytest.fixture
    def wired(self, source, revisions):
        source.revisions = revisions
        handler = bugzilla_handler(
            {
                "100": ("RESOLVED", ["Pushed by someone", f"{LANDED}aaaabbbbcccc"]),
                "200": ("NEW", []),
                "300": ("VERIFIED", [f"{LANDED}ddddeeeeffff", "Backed out", f"{LANDED}000011112222"]),
            }
        )
        pool_factory = functools.partial(HTTPConnectionPool, transport=httpx.MockTransport(handler))
        hg_factory = MagicMock(return_value=source)
        with (
            patch("prune_landed.main.MercurialProvider", hg_factory),
            patch("prune_landed.main.HTTPConnectionPool", pool_factory),
        ):
            yield hg_factory

    def test_prompts_and_prunes(self, cli_runner, wired, source, tmp_path):
        result = cli_runner.invoke(cli, ["-p", str(tmp_path)], input="\nmaybe\nn\n")

        assert result.exit_code == 0, result.output
        assert source.retired == [("1" * 40, "aaaabbbbcccc")]
        assert "111111111111 Bug 100 - landed\n  prune to aaaabbbbcccc? [Yn] > " in result.output
        assert "444444444444 Bug 300: also landed\n  prune to 000011112222? " in result.output
        assert "Pruned 1 of 2 prunable revisions." in result.output
        assert wired.call_args.kwargs["repo_path"] == tmp_path

    def test_no_drafts(self, cli_runner, wired, source):
        source.revisions = []

        result = cli_runner.invoke(cli, [])

        assert result.exit_code == 0
        assert "No draft revisions found." in result.output


class TestRunPruner:
    """Test run_pruner wiring directly."""

    @pytest.mark.asyncio
    async def test_uses_given_prompt(self, source, scripted_prompt, capsys):
        source.revisions = [Revision(hash="5" * 40, description="Bug 9 - x")]
        handler = bugzilla_handler({"9": ("RESOLVED", [f"{LANDED}abc123"])})
        prompt = scripted_prompt(["y"])

        with (
            patch("prune_landed.main.MercurialProvider", MagicMock(return_value=source)),
            patch(
                "prune_landed.main.HTTPConnectionPool",
                functools.partial(HTTPConnectionPool, transport=httpx.MockTransport(handler)),
            ),
        ):
            summary = await run_pruner(PrunerSettings(), prompt=prompt)

        assert summary.pruned == 1
        assert source.retired == [("5" * 40, "abc123")]
        assert prompt.prompts == ["[Yn] > "]
        assert "Pruned 1 of 1 prunable revisions." in capsys.readouterr().out
