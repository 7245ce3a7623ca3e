"""CLI entry point for prune-landed."""

import asyncio
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
import structlog

from prune_landed import __version__
from prune_landed.config.settings import PrunerSettings
from prune_landed.engine.confirmation import ConfirmationLoop, terminal_prompt
from prune_landed.engine.orchestrator import PruneOrchestrator
from prune_landed.engine.resolver import LandingResolver
from prune_landed.exceptions import ConfigurationError, PruneLandedError
from prune_landed.models.domain import RunSummary
from prune_landed.providers.bugzilla_rest import BugzillaRestProvider
from prune_landed.providers.mercurial import MercurialProvider
from prune_landed.utils.connection_pool import HTTPConnectionPool
from prune_landed.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_RUN_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


async def run_pruner(
    settings: PrunerSettings,
    prompt: Callable[[str], str] = terminal_prompt,
) -> RunSummary:
    """Wire up the collaborators from settings and execute one run."""
    source = MercurialProvider(
        repo_path=settings.repo_path,
        hg_binary=settings.hg_binary,
        timeout=settings.command_timeout,
    )

    async with HTTPConnectionPool(
        base_url=settings.bugzilla_url,
        max_connections=settings.max_concurrent_lookups,
        timeout=settings.http_timeout,
        headers={"Accept": "application/json", "User-Agent": f"prune-landed/{__version__}"},
    ) as pool:
        resolver = LandingResolver(
            BugzillaRestProvider(pool),
            keyword=settings.issue_keyword,
            completed_statuses=settings.completed_statuses,
            landing_prefix=settings.landing_url_prefix,
            max_concurrency=settings.max_concurrent_lookups,
        )
        confirmation = ConfirmationLoop(source, prompt=prompt, threaded_input=settings.interleave)
        orchestrator = PruneOrchestrator(
            source,
            resolver,
            confirmation,
            revset=settings.draft_revset,
            interleave=settings.interleave,
        )
        return await orchestrator.run()


def load_settings(config: str | None, **overrides: Any) -> PrunerSettings:
    """Build settings from an optional config file plus command-line overrides."""
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if config is not None:
        return PrunerSettings.from_yaml(config, **overrides)
    return PrunerSettings.load(**overrides)


@click.command("prune-landed")
@click.option(
    "--path",
    "-p",
    "repo_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Path to the Mercurial repository (default: current directory)",
)
@click.option("--config", type=click.Path(dir_okay=False), default=None, help="Path to a YAML configuration file")
@click.option(
    "--concurrency",
    "max_concurrent_lookups",
    type=click.IntRange(1, 64),
    default=None,
    help="Maximum concurrent bug lookups",
)
@click.option(
    "--interleave/--no-interleave",
    default=None,
    help="Start prompting while later bug lookups are still running",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Log output format",
)
@click.version_option(__version__, prog_name="prune-landed")
def cli(
    repo_path: Path | None,
    config: str | None,
    max_concurrent_lookups: int | None,
    interleave: bool | None,
    log_level: str,
    log_format: str,
) -> None:
    """Prune local draft revisions that have already landed upstream.

    \b
    For every draft revision whose subject starts with "Bug <number>", the
    bug is looked up; if it is RESOLVED or VERIFIED and a comment links to
    the landed changeset, you are asked whether to prune the draft with the
    landed changeset as its successor.

    \b
    Exit codes:
      0 - Run completed
      1 - Listing, lookup or prune failed
      2 - Configuration error
    """
    configure_logging(log_level, log_format)  # type: ignore[arg-type]

    try:
        settings = load_settings(
            config,
            repo_path=repo_path,
            max_concurrent_lookups=max_concurrent_lookups,
            interleave=interleave,
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        asyncio.run(run_pruner(settings))
    except PruneLandedError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("run_error", exc_info=True)
        sys.exit(EXIT_RUN_ERROR)
    except click.Abort:
        raise
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error("run_unexpected", exc_info=True)
        sys.exit(EXIT_RUN_ERROR)


if __name__ == "__main__":
    cli()
