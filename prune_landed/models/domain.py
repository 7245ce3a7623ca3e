"""
Domain models for prune-landed.

Revisions come from Mercurial's JSON log template and issue data from the
Bugzilla REST API; both are validated with Pydantic so malformed payloads
fail loudly at the boundary. Everything here is transient and lives for a
single run.

Example:
    Building a revision from ``hg log --template json`` output::

        revision = Revision.model_validate(
            {"node": "abcdef0123456789...", "desc": "Bug 42: fix thing"}
        )
        revision.referenced_issue()  # "42"
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

SHORT_HASH_LENGTH = 12
ISSUE_ID_TRAILING_PUNCTUATION = ":,;."


class IssueStatus(str, Enum):
    """Lifecycle state of a Bugzilla bug.

    Bugzilla installations can define their own workflow, so any status
    string not listed here parses as UNKNOWN instead of failing.
    """

    UNCONFIRMED = "UNCONFIRMED"
    NEW = "NEW"
    ASSIGNED = "ASSIGNED"
    REOPENED = "REOPENED"
    RESOLVED = "RESOLVED"
    """A resolution has been made and is awaiting verification."""

    VERIFIED = "VERIFIED"
    """The resolution has been verified."""

    CLOSED = "CLOSED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str) -> "IssueStatus":
        """Parse a status string, case-insensitively."""
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN


class Revision(BaseModel):
    """A local Mercurial changeset.

    Attributes:
        hash: Full hex node id of the changeset.
        description: The entire commit message.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hash: str = Field(alias="node")
    description: str = Field(alias="desc")

    @property
    def short_hash(self) -> str:
        """First 12 characters of the node id, as Mercurial displays it."""
        return self.hash[:SHORT_HASH_LENGTH]

    @property
    def subject(self) -> str | None:
        """First line of the description, or None if the description is empty."""
        if not self.description:
            return None
        return self.description.split("\n", 1)[0]

    def referenced_issue(self, keyword: str = "bug") -> str | None:
        """Get the issue named at the start of the subject, if any.

        A subject of the form ``Bug 1234 - fix the thing`` references issue
        ``1234``. The keyword is matched case-insensitively and must be the
        first word. A leading ``#`` (``Bug #1234``) and punctuation trailing
        the identifier (``Bug 1234: ...``) are dropped.

        Args:
            keyword: Word that introduces an issue reference.

        Returns:
            The word following the keyword, or None if there is no reference.
        """
        if self.subject is None:
            return None
        words = self.subject.split()
        if len(words) < 2 or words[0].lower() != keyword.lower():
            return None
        return words[1].removeprefix("#").rstrip(ISSUE_ID_TRAILING_PUNCTUATION) or None


class IssueDetails(BaseModel):
    """The parts of a bug's metadata the resolver needs."""

    model_config = ConfigDict(frozen=True)

    id: str
    status: IssueStatus

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        # Bugzilla returns numeric ids
        return str(v) if isinstance(v, int) else v

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: Any) -> Any:
        if isinstance(v, str):
            return IssueStatus.parse(v)
        return v


class Comment(BaseModel):
    """A comment posted on a bug.

    Attributes:
        id: Global id of the comment; increases with posting order.
        body: Unformatted comment text.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    body: str = Field(alias="raw_text")


@dataclass(frozen=True)
class LandingCandidate:
    """A local revision paired with the upstream changeset that landed it."""

    revision: Revision
    successor: str


class Decision(str, Enum):
    """Operator answer to a prune prompt."""

    ACCEPT = "accept"
    REJECT = "reject"


@dataclass
class ConfirmationSummary:
    """Outcome of one pass of the confirmation loop."""

    candidates: int = 0
    pruned: int = 0
    skipped: int = 0


@dataclass
class RunSummary:
    """Outcome of a complete run."""

    drafts: int = 0
    candidates: int = 0
    pruned: int = 0
    skipped: int = 0
    sync_failed: bool = False
