"""
Interactive confirmation of landing candidates.

Each candidate is shown to the operator as::

    abcdef012345 Bug 42: fix thing
      prune to deadbeefcafe? [Yn] >

An empty answer or ``y`` prunes the revision, ``n`` skips it, and anything
else asks again. Candidates are handled strictly one at a time: the prune
for an accepted candidate completes before the next one is shown.
"""

import asyncio
from collections.abc import AsyncIterable, Callable, Iterable

import click
import structlog

from prune_landed.models.domain import ConfirmationSummary, Decision, LandingCandidate
from prune_landed.providers.base import RevisionSource

log = structlog.get_logger(__name__)

ANSWER_PROMPT = "[Yn] > "
NO_DESCRIPTION = "<no description>"

_ACCEPT_ANSWERS = frozenset({"", "y"})
_REJECT_ANSWERS = frozenset({"n"})


def parse_decision(answer: str) -> Decision | None:
    """Interpret an operator answer.

    Returns:
        ACCEPT for an empty answer or "y", REJECT for "n" (either case),
        None for anything else.
    """
    normalized = answer.strip().lower()
    if normalized in _ACCEPT_ANSWERS:
        return Decision.ACCEPT
    if normalized in _REJECT_ANSWERS:
        return Decision.REJECT
    return None


def terminal_prompt(text: str) -> str:
    """Read one answer from the terminal."""
    return click.prompt(text, default="", show_default=False, prompt_suffix="")


def format_candidate(candidate: LandingCandidate) -> str:
    """Render the description shown above the answer prompt."""
    revision = candidate.revision
    subject = NO_DESCRIPTION if revision.subject is None else revision.subject
    return f"{revision.short_hash} {subject}\n  prune to {candidate.successor}? "


class ConfirmationLoop:
    """Asks about each candidate and prunes the accepted ones."""

    def __init__(
        self,
        source: RevisionSource,
        prompt: Callable[[str], str] = terminal_prompt,
        echo: Callable[..., None] = click.echo,
        threaded_input: bool = False,
    ) -> None:
        """Initialize the loop.

        Args:
            source: Repository in which accepted revisions are pruned.
            prompt: Reads one answer, given the prompt text.
            echo: Writes text to the operator (click.echo signature).
            threaded_input: Read answers in a worker thread so other
                coroutines (pending lookups) keep running while the operator
                thinks.
        """
        self.source = source
        self.prompt = prompt
        self.echo = echo
        self.threaded_input = threaded_input

    async def _read_answer(self) -> str:
        if self.threaded_input:
            return await asyncio.to_thread(self.prompt, ANSWER_PROMPT)
        return self.prompt(ANSWER_PROMPT)

    async def confirm(self, candidate: LandingCandidate) -> Decision:
        """Ask the operator about one candidate until they give a valid answer."""
        self.echo(format_candidate(candidate), nl=False)
        while True:
            decision = parse_decision(await self._read_answer())
            if decision is not None:
                return decision

    async def handle(self, candidate: LandingCandidate, summary: ConfirmationSummary) -> None:
        """Confirm one candidate and prune it if accepted.

        Raises:
            VcsError: If pruning fails.
        """
        summary.candidates += 1
        decision = await self.confirm(candidate)
        revision = candidate.revision

        if decision is Decision.REJECT:
            summary.skipped += 1
            log.info("prune_declined", revision=revision.short_hash)
            return

        await self.source.retire(revision.hash, candidate.successor)
        summary.pruned += 1
        log.info("revision_pruned", revision=revision.short_hash, successor=candidate.successor)

    async def run(
        self,
        candidates: Iterable[LandingCandidate] | AsyncIterable[LandingCandidate],
    ) -> ConfirmationSummary:
        """Process every candidate in order.

        Accepts a list of already resolved candidates or an async stream
        that is still resolving.

        Raises:
            VcsError: If a prune fails; the remaining candidates are not
                offered, and earlier prunes stay in place.
        """
        summary = ConfirmationSummary()
        if isinstance(candidates, AsyncIterable):
            async for candidate in candidates:
                await self.handle(candidate, summary)
        else:
            for candidate in candidates:
                await self.handle(candidate, summary)
        return summary
