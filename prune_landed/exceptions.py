"""Custom exception hierarchy for prune-landed.

Every failure the tool can report derives from PruneLandedError so the CLI
can turn it into a one-line message and a non-zero exit code.

Exception Hierarchy:
    PruneLandedError (base)
    ├── ConfigurationError
    ├── VcsError
    │   ├── VcsCommandError
    │   └── VcsParseError
    ├── IssueTrackerError
    │   ├── IssueTrackerParseError
    │   └── ApiContractError
    └── PhaseError

Example Usage:
    >>> from prune_landed.exceptions import VcsCommandError
    >>> try:
    ...     await hg.list_revisions("draft()")
    ... except VcsCommandError as e:
    ...     print(e.stderr)
"""


class PruneLandedError(Exception):
    """Base exception for all prune-landed errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(PruneLandedError):
    """Configuration file or setting is invalid.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Setting out of range
    """

    pass


class VcsError(PruneLandedError):
    """Base class for failures talking to the version-control tool."""

    pass


class VcsCommandError(VcsError):
    """Mercurial could not be run, timed out, or exited non-zero.

    Attributes:
        stdout: Output Mercurial wrote to stdout (usually empty)
        stderr: Output Mercurial wrote to stderr (usually the diagnosis)
        returncode: Process exit code, None if the process never completed
    """

    def __init__(
        self,
        message: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            stdout: Captured stdout of the command
            stderr: Captured stderr of the command
            returncode: Exit code of the command
        """
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode

        detail = f"{stdout}{stderr}".strip()
        full_message = f"{message}: {detail}" if detail else message
        super().__init__(full_message)
        self.message = full_message


class VcsParseError(VcsError):
    """Mercurial output could not be parsed."""

    pass


class IssueTrackerError(PruneLandedError):
    """Communication with the issue tracker failed.

    Attributes:
        status_code: HTTP status code, if a response was received
        issue_id: The issue being fetched when the failure occurred
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        issue_id: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            issue_id: Issue identifier (if applicable)
        """
        self.status_code = status_code
        self.issue_id = issue_id

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = full_message


class IssueTrackerParseError(IssueTrackerError):
    """The tracker returned a payload that could not be decoded."""

    pass


class ApiContractError(IssueTrackerError):
    """The tracker response was well-formed but lacked the expected data."""

    pass


class PhaseError(PruneLandedError):
    """A run phase failed and the run was aborted.

    Attributes:
        phase: Name of the failing phase ("list", "resolve" or "prune")
    """

    def __init__(self, message: str, phase: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
            phase: Name of the phase that failed
        """
        self.phase = phase
        super().__init__(f"{message} (phase: {phase})")
