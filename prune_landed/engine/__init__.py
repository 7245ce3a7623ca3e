"""Landing resolution, operator confirmation and the run orchestrator."""

from prune_landed.engine.confirmation import ConfirmationLoop, parse_decision
from prune_landed.engine.orchestrator import PruneOrchestrator
from prune_landed.engine.resolver import LandingResolver

__all__ = [
    "ConfirmationLoop",
    "LandingResolver",
    "PruneOrchestrator",
    "parse_decision",
]
