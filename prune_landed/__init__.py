"""prune-landed: retire local Mercurial drafts that already landed upstream."""

__version__ = "0.1.0"
