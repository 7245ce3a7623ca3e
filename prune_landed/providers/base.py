"""
Abstract base classes for the collaborators the pruning engine talks to.

The engine only depends on these interfaces; the concrete Bugzilla and
Mercurial implementations live alongside, and tests substitute mocks.
"""

from abc import ABC, abstractmethod

from prune_landed.models.domain import Comment, IssueDetails, Revision


class IssueTracker(ABC):
    """Read-only access to an issue tracker.

    Implementations raise subclasses of IssueTrackerError on failure and
    perform no retries of their own.
    """

    @abstractmethod
    async def fetch_details(self, issue_id: str) -> IssueDetails:
        """Fetch the lifecycle details of an issue.

        Args:
            issue_id: Tracker identifier of the issue.

        Returns:
            IssueDetails for the requested issue.

        Raises:
            IssueTrackerError: If the request fails.
            IssueTrackerParseError: If the response cannot be decoded.
            ApiContractError: If the response does not describe the issue.
        """

    @abstractmethod
    async def fetch_discussion(self, issue_id: str) -> list[Comment]:
        """Fetch every comment on an issue, oldest first.

        Args:
            issue_id: Tracker identifier of the issue.

        Returns:
            Comments in chronological order.

        Raises:
            IssueTrackerError: If the request fails.
            IssueTrackerParseError: If the response cannot be decoded.
            ApiContractError: If the response has no entry for the issue.
        """


class RevisionSource(ABC):
    """A local repository that can list and retire revisions."""

    @abstractmethod
    async def sync_remote(self) -> None:
        """Pull new changesets from the default remote.

        Raises:
            VcsError: If the pull fails.
        """

    @abstractmethod
    async def list_revisions(self, revset: str) -> list[Revision]:
        """List revisions matching a revset, in repository order.

        Raises:
            VcsCommandError: If the command fails.
            VcsParseError: If the output cannot be parsed.
        """

    @abstractmethod
    async def retire(self, revision_id: str, successor_id: str | None = None) -> None:
        """Mark a revision obsolete, optionally recording its successor.

        Raises:
            VcsCommandError: If the command fails.
        """
