"""Bugzilla provider implementation using direct REST API calls."""

from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from prune_landed.exceptions import ApiContractError, IssueTrackerError, IssueTrackerParseError
from prune_landed.models.domain import Comment, IssueDetails
from prune_landed.providers.base import IssueTracker
from prune_landed.utils.connection_pool import HTTPConnectionPool

log = structlog.get_logger(__name__)

DEFAULT_BUGZILLA_URL = "https://bugzilla.mozilla.org/rest"


def _bug_path(issue_id: str) -> str:
    """REST path of a bug, with the id escaped as a single path segment."""
    return f"/bug/{quote(issue_id, safe='')}"


class BugzillaRestProvider(IssueTracker):
    """Bugzilla implementation of IssueTracker.

    The provider does not own its connection pool: one pool is created per
    run and shared by every lookup.
    """

    def __init__(self, pool: HTTPConnectionPool) -> None:
        """Initialize Bugzilla provider.

        Args:
            pool: Connection pool whose base URL is the Bugzilla REST root
                (e.g. https://bugzilla.mozilla.org/rest)
        """
        self._pool = pool

    async def fetch_details(self, issue_id: str) -> IssueDetails:
        """Get the status of a bug."""
        log.debug("fetch_details", issue_id=issue_id)

        data = await self._get_json(_bug_path(issue_id), issue_id, params={"include_fields": "id,status"})

        bugs = data.get("bugs") if isinstance(data, dict) else None
        if not isinstance(bugs, list):
            raise IssueTrackerParseError(f"Unexpected response shape for bug {issue_id}", issue_id=issue_id)
        if not bugs:
            raise ApiContractError(f"No bugs in response for bug {issue_id}", issue_id=issue_id)

        try:
            details = IssueDetails.model_validate(bugs[-1])
        except ValidationError as e:
            raise IssueTrackerParseError(f"Failed to parse details for bug {issue_id}: {e}", issue_id=issue_id) from e
        if details.id != issue_id:
            raise ApiContractError(f"API fault: requested bug {issue_id}, got bug {details.id}", issue_id=issue_id)

        log.debug("issue_status", issue_id=issue_id, status=details.status.value)
        return details

    async def fetch_discussion(self, issue_id: str) -> list[Comment]:
        """Get all comments on a bug, oldest first."""
        log.debug("fetch_discussion", issue_id=issue_id)

        data = await self._get_json(f"{_bug_path(issue_id)}/comment", issue_id)

        bugs = data.get("bugs") if isinstance(data, dict) else None
        if not isinstance(bugs, dict):
            raise IssueTrackerParseError(f"Unexpected response shape for bug {issue_id}", issue_id=issue_id)

        entry = bugs.get(issue_id)
        if entry is None:
            raise ApiContractError(f"API fault: bug {issue_id} not in comment response", issue_id=issue_id)

        try:
            return [Comment.model_validate(c) for c in entry["comments"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise IssueTrackerParseError(f"Failed to parse comments for bug {issue_id}: {e}", issue_id=issue_id) from e

    async def _get_json(self, path: str, issue_id: str, **kwargs: Any) -> Any:
        """GET a path and decode the JSON body, translating failures."""
        try:
            response = await self._pool.get(path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error("bugzilla_request_failed", issue_id=issue_id, status=e.response.status_code)
            raise IssueTrackerError(
                f"Could not fetch bug {issue_id}",
                status_code=e.response.status_code,
                issue_id=issue_id,
            ) from e
        except httpx.HTTPError as e:
            log.error("bugzilla_request_failed", issue_id=issue_id, error=str(e))
            raise IssueTrackerError(f"Could not fetch bug {issue_id}: {e}", issue_id=issue_id) from e

        try:
            return response.json()
        except ValueError as e:
            raise IssueTrackerParseError(f"Invalid JSON in response for bug {issue_id}", issue_id=issue_id) from e
