"""
Change-set extraction for git-svn-sync.
"""

import logging
from typing import Optional, Tuple

from ..domain.branch import TrackedBranch, ChangeSet, Direction
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


class ChangeSetExtractor:
    """
    Computes the commits each side has that the other has not seen yet.

    Hub changes are commits on the hub remote branch missing from hub-local;
    by default only merge commits are taken, so a feature branch merged on
    the hub reaches Subversion as one revision. Trunk changes are revisions
    on the trunk mirror missing from staging.
    """

    def __init__(self, git_client: Optional[GitClient] = None, merges_only: bool = True):
        self.git = git_client or GitClient()
        self.merges_only = merges_only

    def hub_changes(self, path: str, branch: TrackedBranch) -> ChangeSet:
        commits = self.git.rev_list(
            path,
            include=branch.hub_remote_ref,
            exclude=branch.hub_local,
            merges_only=self.merges_only,
        )
        return ChangeSet(branch, Direction.HUB_TO_TRUNK, tuple(commits))

    def trunk_changes(self, path: str, branch: TrackedBranch) -> ChangeSet:
        commits = self.git.rev_list(
            path,
            include=branch.trunk_mirror,
            exclude=branch.staging,
        )
        return ChangeSet(branch, Direction.TRUNK_TO_HUB, tuple(commits))

    def extract(self, path: str, branch: TrackedBranch) -> Tuple[ChangeSet, ChangeSet]:
        """
        Compute both change sets for a branch, oldest commit first.

        Raises:
            GitCommandError: If a lineage ref cannot be resolved
        """
        hub = self.hub_changes(path, branch)
        trunk = self.trunk_changes(path, branch)
        logger.debug(f"{branch}: {len(hub)} hub change(s), {len(trunk)} trunk change(s)")
        return hub, trunk
