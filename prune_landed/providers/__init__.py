"""Collaborator interfaces and their Bugzilla / Mercurial implementations."""

from prune_landed.providers.base import IssueTracker, RevisionSource
from prune_landed.providers.bugzilla_rest import BugzillaRestProvider
from prune_landed.providers.mercurial import MercurialProvider

__all__ = [
    "BugzillaRestProvider",
    "IssueTracker",
    "MercurialProvider",
    "RevisionSource",
]
