"""Configuration for prune-landed.

Example:
    >>> from prune_landed.config import PrunerSettings
    >>> settings = PrunerSettings.from_yaml("prune-landed.yaml", repo_path="~/src/gecko")
"""

from prune_landed.config.settings import PrunerSettings

__all__ = ["PrunerSettings"]
