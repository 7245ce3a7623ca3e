"""Domain models for prune-landed.

Key Models:
    - Revision: Local Mercurial changeset
    - IssueDetails: Bug metadata (lifecycle status)
    - Comment: Bug discussion entry
    - LandingCandidate: Revision paired with its landed successor

Enums:
    - IssueStatus: Bugzilla lifecycle state
    - Decision: Operator answer to a prune prompt
"""

from prune_landed.models.domain import (
    Comment,
    ConfirmationSummary,
    Decision,
    IssueDetails,
    IssueStatus,
    LandingCandidate,
    Revision,
    RunSummary,
)

__all__ = [
    "Comment",
    "ConfirmationSummary",
    "Decision",
    "IssueDetails",
    "IssueStatus",
    "LandingCandidate",
    "Revision",
    "RunSummary",
]
