"""
Landing resolution: match local drafts to the upstream changesets that landed them.

For every revision the resolver:

1. Reads the bug number from the subject (``Bug 1234 - ...``).
2. Fetches the bug and keeps it only if its status is complete
   (RESOLVED or VERIFIED by default).
3. Scans the bug's comments newest first for a landing URL such as
   ``https://hg.mozilla.org/mozilla-central/rev/<hash>`` and takes the hash.

Lookups for different revisions are independent, so they run concurrently
up to a fixed limit, but candidates are always yielded in the order the
revisions were given.

Error Handling:
    Any tracker failure is fatal. It is raised from the iterator when the
    failing revision's turn comes, and every lookup still in flight is
    cancelled.

Example:
    >>> resolver = LandingResolver(tracker, max_concurrency=4)
    >>> async for candidate in resolver.resolve(revisions):
    ...     print(candidate.revision.short_hash, candidate.successor)
"""

import asyncio
import string
from collections.abc import AsyncIterator, Collection, Sequence

import structlog

from prune_landed.models.domain import Comment, IssueDetails, IssueStatus, LandingCandidate, Revision
from prune_landed.providers.base import IssueTracker

log = structlog.get_logger(__name__)

DEFAULT_COMPLETED_STATUSES = frozenset({IssueStatus.RESOLVED, IssueStatus.VERIFIED})
DEFAULT_LANDING_PREFIX = "https://hg.mozilla.org/mozilla-central/rev/"

_HEX_DIGITS = frozenset(string.hexdigits)


class LandingResolver:
    """Finds revisions whose bug records an upstream landing."""

    def __init__(
        self,
        tracker: IssueTracker,
        keyword: str = "bug",
        completed_statuses: Collection[IssueStatus] = DEFAULT_COMPLETED_STATUSES,
        landing_prefix: str = DEFAULT_LANDING_PREFIX,
        max_concurrency: int = 8,
    ) -> None:
        """Initialize the resolver.

        Args:
            tracker: Issue tracker used for bug lookups.
            keyword: Subject word that introduces a bug number.
            completed_statuses: Statuses meaning the bug's work is done.
            landing_prefix: URL prefix of a landing comment; the landed hash
                is the final path segment after it.
            max_concurrency: Maximum number of revisions looked up at once.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.tracker = tracker
        self.keyword = keyword
        self.completed_statuses = frozenset(completed_statuses)
        self.landing_prefix = landing_prefix
        self.max_concurrency = max_concurrency

    def extract_issue(self, revision: Revision) -> str | None:
        """Return the bug referenced by a revision's subject, if any."""
        return revision.referenced_issue(self.keyword)

    def is_complete(self, details: IssueDetails) -> bool:
        """Whether the bug is in a status that means its work has landed."""
        return details.status in self.completed_statuses

    def find_landing(self, comments: Sequence[Comment]) -> str | None:
        """Find the most recent landed hash in a bug's discussion.

        Args:
            comments: Comments in chronological order.

        Returns:
            The hash from the newest landing comment whose URL ends in a
            hex segment, or None.
        """
        for comment in reversed(comments):
            words = comment.body.split(maxsplit=1)
            if not words or not comment.body.startswith(self.landing_prefix):
                continue
            url = words[0]
            segment = url.rsplit("/", 1)[-1]
            if segment and all(c in _HEX_DIGITS for c in segment):
                return segment
            log.debug("landing_url_malformed", comment_id=comment.id, url=url)
        return None

    async def resolve_one(self, revision: Revision) -> LandingCandidate | None:
        """Resolve a single revision to a landing candidate.

        Returns:
            A LandingCandidate, or None if the revision references no bug,
            the bug is not complete, or no landing comment was found.

        Raises:
            IssueTrackerError: If a lookup fails.
        """
        issue_id = self.extract_issue(revision)
        if issue_id is None:
            log.debug("revision_without_issue", revision=revision.short_hash)
            return None

        details = await self.tracker.fetch_details(issue_id)
        if not self.is_complete(details):
            log.debug("issue_not_complete", revision=revision.short_hash, issue=issue_id, status=details.status.value)
            return None

        comments = await self.tracker.fetch_discussion(issue_id)
        successor = self.find_landing(comments)
        if successor is None:
            log.debug("landing_not_found", revision=revision.short_hash, issue=issue_id)
            return None

        log.info("landing_found", revision=revision.short_hash, issue=issue_id, successor=successor)
        return LandingCandidate(revision=revision, successor=successor)

    async def resolve(self, revisions: Sequence[Revision]) -> AsyncIterator[LandingCandidate]:
        """Yield landing candidates in input order while lookups run concurrently.

        Raises:
            IssueTrackerError: From the first failing lookup, in input order.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(revision: Revision) -> LandingCandidate | None:
            async with semaphore:
                return await self.resolve_one(revision)

        tasks = [asyncio.create_task(bounded(revision)) for revision in revisions]
        try:
            for task in tasks:
                candidate = await task
                if candidate is not None:
                    yield candidate
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def resolve_all(self, revisions: Sequence[Revision]) -> list[LandingCandidate]:
        """Resolve every revision before returning any candidate."""
        return [candidate async for candidate in self.resolve(revisions)]
