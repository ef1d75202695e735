"""
Branch lineage bootstrapping for git-svn-sync.

Makes sure the staging and hub-local branches exist locally and that the
hub remote carries the branch, creating each lineage from the previous one
the first time a branch is seen.
"""

import logging
from typing import List, Optional

from ..domain.branch import TrackedBranch
from ..errors import BootstrapError, GitCommandError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


class LineageBootstrapper:
    """
    Creates missing lineages for a tracked branch.

    Order matters: staging is created from the trunk mirror, hub-local
    from staging, and the hub remote branch from hub-local.

    Example:
        bootstrapper = LineageBootstrapper(git_client)
        created = bootstrapper.ensure("/path/to/repo", TrackedBranch("main"))
        # [] when the branch was already bootstrapped
    """

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def ensure(self, path: str, branch: TrackedBranch) -> List[str]:
        """
        Ensure every lineage of a branch exists.

        Args:
            path: Path to the repository
            branch: Branch to bootstrap

        Returns:
            Names of the lineages that had to be created, in creation order

        Raises:
            BootstrapError: If any lineage could not be created
        """
        created = []

        if not self.git.ref_exists(path, branch.staging_head):
            logger.info(f"Creating {branch.staging} from {branch.trunk_mirror}")
            if not self.git.create_branch(path, branch.staging, branch.trunk_mirror):
                raise BootstrapError(
                    f"Could not create {branch.staging} from {branch.trunk_mirror}",
                    repo=path, branch=branch.name,
                )
            created.append(branch.staging)

        if not self.git.ref_exists(path, branch.hub_local_head):
            logger.info(f"Creating {branch.hub_local} from {branch.staging}")
            if not self.git.create_branch(path, branch.hub_local, branch.staging):
                raise BootstrapError(
                    f"Could not create {branch.hub_local} from {branch.staging}",
                    repo=path, branch=branch.name,
                )
            created.append(branch.hub_local)

        try:
            on_hub = self.git.remote_branch_exists(path, branch.hub_remote, branch.name)
        except GitCommandError as e:
            raise BootstrapError(
                f"Could not query {branch.hub_remote} for {branch.name}: {e}",
                repo=path, branch=branch.name,
            ) from e

        if not on_hub:
            logger.info(f"Publishing {branch.hub_local} to {branch.hub_remote}")
            success, output = self.git.push(
                path,
                remote=branch.hub_remote,
                branch=branch.hub_local,
                set_upstream=True,
            )
            if not success:
                raise BootstrapError(
                    f"Could not publish {branch.hub_local} to {branch.hub_remote}: {output or 'push failed'}",
                    repo=path, branch=branch.name,
                )
            created.append(branch.hub_remote_ref)

        return created
