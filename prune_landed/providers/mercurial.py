"""Mercurial implementation of RevisionSource, shelling out to ``hg``."""

import json
import subprocess
from pathlib import Path

import structlog
from pydantic import ValidationError

from prune_landed.exceptions import VcsCommandError, VcsParseError
from prune_landed.models.domain import Revision
from prune_landed.providers.base import RevisionSource
from prune_landed.utils.async_subprocess import run_command

log = structlog.get_logger(__name__)

DRAFT_REVSET = "draft() and not(obsolete())"


class MercurialProvider(RevisionSource):
    """Runs Mercurial commands against one repository.

    Every command is run as ``hg -R <repo_path> ...`` so the tool works from
    any working directory. Pruning requires the evolve extension to be
    enabled in the user's configuration.
    """

    def __init__(
        self,
        repo_path: str | Path = ".",
        hg_binary: str = "hg",
        timeout: float | None = None,
    ) -> None:
        """Initialize Mercurial provider.

        Args:
            repo_path: Path to the repository (or any directory inside it).
            hg_binary: Name or path of the Mercurial executable.
            timeout: Seconds after which a command is killed; None to wait
                indefinitely.
        """
        self.repo_path = Path(repo_path)
        self.hg_binary = hg_binary
        self.timeout = timeout

    async def _run(self, *args: str) -> str:
        """Run an hg subcommand and return its stdout."""
        argv = (self.hg_binary, "-R", str(self.repo_path), *args)
        log.debug("hg_command", args=list(args))

        try:
            stdout, _, _ = await run_command(*argv, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            raise VcsCommandError(
                f"Mercurial error running 'hg {args[0]}'",
                stdout=e.stdout or "",
                stderr=e.stderr or "",
                returncode=e.returncode,
            ) from e
        except TimeoutError as e:
            raise VcsCommandError(f"'hg {args[0]}' timed out after {self.timeout}s") from e
        except OSError as e:
            raise VcsCommandError(f"Could not run {self.hg_binary}: {e}") from e

        return stdout

    async def sync_remote(self) -> None:
        """Pull changesets without touching the working directory."""
        await self._run("pull")
        log.info("hg_pulled", repo=str(self.repo_path))

    async def list_revisions(self, revset: str = DRAFT_REVSET) -> list[Revision]:
        """List revisions matching a revset."""
        output = await self._run("log", "--template", "json", "--rev", revset)

        try:
            records = json.loads(output) if output.strip() else []
            revisions = [Revision.model_validate(record) for record in records]
        except (ValueError, TypeError, ValidationError) as e:
            raise VcsParseError(f"Mercurial output could not be parsed: {e}") from e

        log.info("hg_revisions_listed", revset=revset, count=len(revisions))
        return revisions

    async def retire(self, revision_id: str, successor_id: str | None = None) -> None:
        """Prune a revision, recording its successor if given."""
        args = ["prune", "--rev", revision_id]
        if successor_id:
            args += ["--succ", successor_id]
        await self._run(*args)
        log.info("hg_pruned", revision=revision_id[:12], successor=successor_id)
