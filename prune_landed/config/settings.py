"""
Configuration using Pydantic settings.

Settings come from (highest priority first) command-line flags, an optional
YAML file, ``PRUNE_LANDED_*`` environment variables, and the defaults below.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from prune_landed.engine.resolver import DEFAULT_COMPLETED_STATUSES, DEFAULT_LANDING_PREFIX
from prune_landed.exceptions import ConfigurationError
from prune_landed.models.domain import IssueStatus
from prune_landed.providers.bugzilla_rest import DEFAULT_BUGZILLA_URL
from prune_landed.providers.mercurial import DRAFT_REVSET


class PrunerSettings(BaseSettings):
    """All tunables for a prune run."""

    model_config = SettingsConfigDict(
        env_prefix="PRUNE_LANDED_",
        case_sensitive=False,
    )

    repo_path: Path = Field(default=Path("."), description="Path to the local Mercurial repository")
    hg_binary: str = Field(default="hg", description="Mercurial executable")
    draft_revset: str = Field(
        default=DRAFT_REVSET,
        description="Revset selecting revisions to consider",
    )
    command_timeout: float | None = Field(default=None, gt=0, description="Seconds before an hg command is killed")

    bugzilla_url: str = Field(default=DEFAULT_BUGZILLA_URL, description="Bugzilla REST API root")
    http_timeout: float = Field(default=30.0, gt=0, description="Seconds before a Bugzilla request times out")
    issue_keyword: str = Field(default="bug", min_length=1, description="Subject word introducing an issue id")
    completed_statuses: frozenset[IssueStatus] = Field(
        default=DEFAULT_COMPLETED_STATUSES,
        description="Issue statuses that mean the work has landed",
    )
    landing_url_prefix: str = Field(
        default=DEFAULT_LANDING_PREFIX,
        description="Comment prefix identifying a landing in the upstream mainline",
    )

    max_concurrent_lookups: int = Field(default=8, ge=1, le=64, description="Concurrent issue lookups")
    interleave: bool = Field(
        default=False,
        description="Start prompting while later lookups are still running",
    )

    @field_validator("bugzilla_url")
    @classmethod
    def validate_bugzilla_url(cls, v: str) -> str:
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError(f"bugzilla_url must start with http:// or https://, got: {v}")
        return v.rstrip("/")

    @field_validator("completed_statuses", mode="before")
    @classmethod
    def parse_statuses(cls, v: object) -> object:
        if isinstance(v, str):
            v = [part for part in v.split(",") if part.strip()]
        if isinstance(v, (list, tuple, set, frozenset)):
            return frozenset(IssueStatus.parse(s.strip()) if isinstance(s, str) else s for s in v)
        return v

    @classmethod
    def from_yaml(cls, config_path: str | Path, **overrides: object) -> PrunerSettings:
        """Load settings from a YAML file with environment variable interpolation.

        Supports ``${VAR_NAME}`` and ``${VAR_NAME:-default}``.

        Args:
            config_path: Path to YAML configuration file
            **overrides: Values taking precedence over the file

        Returns:
            PrunerSettings instance

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML mapping, not a list or scalar")

        return cls.load(**{**config_dict, **overrides})

    @classmethod
    def load(cls, **values: object) -> PrunerSettings:
        """Build settings from explicit values, wrapping validation errors.

        Raises:
            ConfigurationError: If any value is invalid
        """
        try:
            return cls(**values)
        except Exception as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Replace ``${VAR}`` placeholders with environment variables.

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a variable without a default is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
