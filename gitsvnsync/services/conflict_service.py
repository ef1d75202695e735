"""
Conflict recording for git-svn-sync.

When a replayed commit cannot be applied cleanly, the conflicted working
tree is committed as-is (markers included) under a tagged message, so the
lineage moves on and a human can find and fix the conflict later.
"""

import logging
from typing import Optional

from ..domain.replay import Conflicted, SkippedEmpty, ReplayOutcome, conflict_message
from ..errors import ReplayError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


class ConflictRecorder:
    """Finalizes a stopped cherry-pick as a conflict commit, or skips it when empty."""

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def record(self, path: str, lineage: str, commit: str, message: str) -> ReplayOutcome:
        """
        Record the in-progress cherry-pick of commit on lineage.

        Args:
            path: Path to the repository
            lineage: Branch the cherry-pick targets
            commit: Source commit id that failed to apply
            message: Original message of the source commit

        Returns:
            Conflicted if a conflict commit was created, SkippedEmpty if the
            step carried no change and was skipped

        Raises:
            ReplayError: If the step could be neither committed nor skipped
        """
        tagged = conflict_message(lineage, commit, message)

        if not self.git.add_all(path):
            raise ReplayError(f"Could not stage conflicted tree of {commit} on {lineage}")

        continued, output = self.git.cherry_pick_continue(path)
        if continued:
            if not self.git.amend_message(path, tagged):
                raise ReplayError(f"Could not tag conflict commit for {commit} on {lineage}")
            new_commit = self.git.rev_parse(path, "HEAD")
            logger.warning(f"Recorded conflict of {commit} on {lineage} as {new_commit}")
            return Conflicted(commit, message, new_commit)

        if self.git.has_staged_changes(path):
            raise ReplayError(f"Could not finalize conflicted replay of {commit} on {lineage}: {output}")

        if not self.git.cherry_pick_skip(path):
            raise ReplayError(f"Could not skip empty replay of {commit} on {lineage}")
        logger.warning(f"Skipping cherry-pick of {commit} on {lineage} due to empty changes.")
        return SkippedEmpty(commit)
