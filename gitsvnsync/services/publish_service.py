"""
Publishing replayed work for git-svn-sync.

Staging is submitted to Subversion with a single dcommit; hub-local is
pushed to the hub remote. Failures are raised as TransportError and
recorded on the branch by the orchestrator. Nothing is retried within a
pass; the next pass publishes whatever staging or hub-local still holds.
"""

import logging
from typing import Optional

from ..config import SUCCESS
from ..domain.branch import TrackedBranch
from ..errors import TransportError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


class Publisher:
    """Dispatches staging to the trunk and hub-local to the hub."""

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def dcommit(self, path: str, branch: TrackedBranch) -> None:
        """
        Submit staging's new commits to Subversion, keeping commit authors.

        Raises:
            TransportError: If checkout or dcommit fails
        """
        if not self.git.checkout(path, branch.staging, force=True):
            raise TransportError(f"Could not check out {branch.staging}", repo=path, branch=branch.name)

        success, output = self.git.svn_dcommit(path)
        if not success:
            logger.error(f"Failed to dcommit changes from {branch.staging} to SVN.")
            raise TransportError(
                f"dcommit from {branch.staging} failed: {output or 'unknown error'}",
                repo=path, branch=branch.name,
            )
        logger.log(SUCCESS, f"Successfully committed changes from {branch.staging} to SVN.")

    def push_hub(self, path: str, branch: TrackedBranch) -> None:
        """
        Push hub-local to the hub remote.

        Raises:
            TransportError: If the push fails
        """
        success, output = self.git.push(path, remote=branch.hub_remote, branch=branch.hub_local)
        if not success:
            logger.error(f"Failed to push updates from {branch.hub_local} to {branch.hub_remote}.")
            raise TransportError(
                f"push of {branch.hub_local} to {branch.hub_remote} failed: {output or 'unknown error'}",
                repo=path, branch=branch.name,
            )
        logger.log(SUCCESS, f"Successfully pushed {branch.hub_local} to {branch.hub_remote}.")
