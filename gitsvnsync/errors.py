"""
Error types raised by the sync services.

Content conflicts are not errors: the replay engine turns them into
Conflicted or SkippedEmpty outcomes. Everything here is caught by the
orchestrator at branch or repository level and logged.
"""

from typing import Optional, Sequence


class SyncError(Exception):
    """Base class for sync failures local to one repository or branch."""

    def __init__(self, message: str, repo: Optional[str] = None, branch: Optional[str] = None):
        super().__init__(message)
        self.repo = repo
        self.branch = branch


class RepositoryValidationError(SyncError):
    """Directory is not a work tree with both a hub remote and a trunk remote."""


class GitCommandError(SyncError):
    """A git query that must succeed returned a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, output: Optional[str] = None):
        cmd = ' '.join(command)
        message = f"'{cmd}' exited with status {returncode}"
        if output:
            message += f": {output}"
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.output = output


class TransportError(SyncError):
    """Fetching from or publishing to a remote failed."""


class BootstrapError(SyncError):
    """A branch lineage could not be created."""


class ReplayError(SyncError):
    """A lineage could not be advanced and the step could not be recorded."""
