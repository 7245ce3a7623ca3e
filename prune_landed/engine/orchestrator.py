"""
Run orchestration: pull, list drafts, resolve landings, confirm and prune.

Only the initial pull is allowed to fail softly. Any other failure is
re-raised as a PhaseError naming the phase that failed ("list", "resolve" or
"prune"); revisions pruned before the failure stay pruned.
"""

from collections.abc import Callable
from contextlib import aclosing

import click
import structlog

from prune_landed.engine.confirmation import ConfirmationLoop
from prune_landed.engine.resolver import LandingResolver
from prune_landed.exceptions import IssueTrackerError, PhaseError, PruneLandedError, VcsError
from prune_landed.models.domain import ConfirmationSummary, Revision, RunSummary
from prune_landed.providers.base import RevisionSource
from prune_landed.providers.mercurial import DRAFT_REVSET

log = structlog.get_logger(__name__)

NO_DRAFTS_MESSAGE = "No draft revisions found."
NO_PRUNABLE_MESSAGE = "No prunable revisions found."


class PruneOrchestrator:
    """Sequences one complete prune run."""

    def __init__(
        self,
        source: RevisionSource,
        resolver: LandingResolver,
        confirmation: ConfirmationLoop,
        revset: str = DRAFT_REVSET,
        interleave: bool = False,
        echo: Callable[..., None] = click.echo,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            source: Repository to pull, list and prune in.
            resolver: Resolver matching revisions to landings.
            confirmation: Loop asking the operator about each candidate.
            revset: Revset selecting the drafts to consider.
            interleave: Prompt for each candidate as soon as it is resolved
                instead of resolving every revision first.
            echo: Writes status lines to the operator.
        """
        self.source = source
        self.resolver = resolver
        self.confirmation = confirmation
        self.revset = revset
        self.interleave = interleave
        self.echo = echo

    async def sync(self) -> bool:
        """Pull from the remote, warning instead of failing.

        Returns:
            True if the pull succeeded.
        """
        try:
            await self.source.sync_remote()
        except PruneLandedError as e:
            log.warning("remote_sync_failed", error=e.message)
            self.echo(f"Warning, pull failed: {e.message}", err=True)
            return False
        return True

    async def run(self) -> RunSummary:
        """Execute the full run.

        Returns:
            RunSummary with counts for the run.

        Raises:
            PhaseError: If listing, resolving or pruning fails.
        """
        summary = RunSummary()
        summary.sync_failed = not await self.sync()

        try:
            revisions = await self.source.list_revisions(self.revset)
        except PruneLandedError as e:
            raise PhaseError(f"Failed to get list of draft revisions: {e.message}", phase="list") from e

        summary.drafts = len(revisions)
        if not revisions:
            self.echo(NO_DRAFTS_MESSAGE)
            return summary

        log.info("resolving_landings", drafts=len(revisions), interleave=self.interleave)
        confirmed = await self._confirm(revisions)

        summary.candidates = confirmed.candidates
        summary.pruned = confirmed.pruned
        summary.skipped = confirmed.skipped

        if summary.candidates == 0:
            self.echo(NO_PRUNABLE_MESSAGE)
        else:
            self.echo(f"Pruned {summary.pruned} of {summary.candidates} prunable revisions.")

        log.info(
            "run_completed",
            drafts=summary.drafts,
            candidates=summary.candidates,
            pruned=summary.pruned,
        )
        return summary

    async def _confirm(self, revisions: list[Revision]) -> ConfirmationSummary:
        """Resolve candidates and hand them to the confirmation loop."""
        try:
            if self.interleave:
                async with aclosing(self.resolver.resolve(revisions)) as stream:
                    return await self.confirmation.run(stream)

            candidates = await self.resolver.resolve_all(revisions)
            log.info("landings_resolved", candidates=len(candidates))
            return await self.confirmation.run(candidates)
        except IssueTrackerError as e:
            raise PhaseError(f"Failed to look up landed revisions: {e.message}", phase="resolve") from e
        except VcsError as e:
            raise PhaseError(f"Failed to prune revision: {e.message}", phase="prune") from e
