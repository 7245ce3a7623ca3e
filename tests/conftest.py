"""Pytest configuration and shared fixtures."""

import asyncio
from collections.abc import Callable

import pytest
import structlog

from prune_landed.exceptions import ApiContractError, VcsCommandError
from prune_landed.models.domain import Comment, IssueDetails, IssueStatus, Revision
from prune_landed.providers.base import IssueTracker, RevisionSource

LANDING_PREFIX = "https://hg.mozilla.org/mozilla-central/rev/"


class FakeIssueTracker(IssueTracker):
    """In-memory issue tracker recording every lookup."""

    def __init__(self, issues: dict[str, tuple[str, list[str]]] | None = None) -> None:
        self.issues = issues or {}
        self.detail_calls: list[str] = []
        self.discussion_calls: list[str] = []
        self.delays: dict[str, float] = {}
        self.errors: dict[str, Exception] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def _enter(self, issue_id: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(issue_id, 0))
        finally:
            self.in_flight -= 1
        if issue_id in self.errors:
            raise self.errors[issue_id]

    async def fetch_details(self, issue_id: str) -> IssueDetails:
        self.detail_calls.append(issue_id)
        await self._enter(issue_id)
        if issue_id not in self.issues:
            raise ApiContractError(f"No bugs in response for bug {issue_id}", issue_id=issue_id)
        status, _ = self.issues[issue_id]
        return IssueDetails(id=issue_id, status=IssueStatus.parse(status))

    async def fetch_discussion(self, issue_id: str) -> list[Comment]:
        self.discussion_calls.append(issue_id)
        _, bodies = self.issues[issue_id]
        return [Comment(id=index, body=body) for index, body in enumerate(bodies, start=1)]


class FakeRevisionSource(RevisionSource):
    """In-memory repository recording pulls and prunes."""

    def __init__(self, revisions: list[Revision] | None = None) -> None:
        self.revisions = revisions or []
        self.sync_error: Exception | None = None
        self.list_error: Exception | None = None
        self.retire_error: Exception | None = None
        self.sync_calls = 0
        self.listed_revsets: list[str] = []
        self.retired: list[tuple[str, str | None]] = []

    async def sync_remote(self) -> None:
        self.sync_calls += 1
        if self.sync_error:
            raise self.sync_error

    async def list_revisions(self, revset: str) -> list[Revision]:
        self.listed_revsets.append(revset)
        if self.list_error:
            raise self.list_error
        return list(self.revisions)

    async def retire(self, revision_id: str, successor_id: str | None = None) -> None:
        if self.retire_error:
            raise self.retire_error
        self.retired.append((revision_id, successor_id))


class ScriptedPrompt:
    """Prompt callable answering from a fixed script."""

    def __init__(self, answers: list[str]) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, text: str) -> str:
        self.prompts.append(text)
        if not self.answers:
            raise AssertionError("prompted more times than scripted")
        return self.answers.pop(0)


class EchoRecorder:
    """Stand-in for click.echo collecting output."""

    def __init__(self) -> None:
        self.out: list[str] = []
        self.err: list[str] = []

    def __call__(self, message: str = "", nl: bool = True, err: bool = False) -> None:
        (self.err if err else self.out).append(message + ("\n" if nl else ""))

    @property
    def stdout(self) -> str:
        return "".join(self.out)

    @property
    def stderr(self) -> str:
        return "".join(self.err)


@pytest.fixture
def make_revision() -> Callable[..., Revision]:
    """Factory for revisions with a unique 40-character hash."""
    counter = iter(range(1, 10_000))

    def _make(description: str, node: str | None = None) -> Revision:
        return Revision(hash=node or f"{next(counter):040x}", description=description)

    return _make


@pytest.fixture
def tracker() -> FakeIssueTracker:
    """Empty fake issue tracker."""
    return FakeIssueTracker()


@pytest.fixture
def source() -> FakeRevisionSource:
    """Empty fake revision source."""
    return FakeRevisionSource()


@pytest.fixture
def scripted_prompt() -> Callable[[list[str]], ScriptedPrompt]:
    """Factory for scripted prompts."""
    return ScriptedPrompt


@pytest.fixture
def echo() -> EchoRecorder:
    """Recorder standing in for click.echo."""
    return EchoRecorder()


@pytest.fixture
def landing_prefix() -> str:
    return LANDING_PREFIX


@pytest.fixture
def hg_error() -> VcsCommandError:
    """A typical Mercurial failure."""
    return VcsCommandError("Mercurial error running 'hg pull'", stderr="abort: no suitable response from remote hg!\n")


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()
