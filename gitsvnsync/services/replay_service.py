"""
Replay engine for git-svn-sync.

Cherry-picks every commit of a change set onto its destination lineage,
oldest first, one commit at a time. A commit that does not apply cleanly
is handed to the ConflictRecorder and the engine moves on to the next one,
so a single conflict never stops the rest of the change set.
"""

import logging
from typing import Dict, List, Optional

from ..domain.branch import ChangeSet, Direction
from ..domain.replay import Applied, ReplayOutcome
from ..errors import ReplayError
from ..infra.git_client import GitClient
from .conflict_service import ConflictRecorder

logger = logging.getLogger(__name__)

# Hub content wins on staging; hub-local content wins over trunk revisions
DEFAULT_PREFERENCES = {
    Direction.HUB_TO_TRUNK: "theirs",
    Direction.TRUNK_TO_HUB: "ours",
}


class ReplayEngine:
    """
    Applies change sets onto destination lineages.

    Example:
        engine = ReplayEngine(git_client)
        outcomes = engine.replay("/path/to/repo", hub_changes)
        conflicts = [o for o in outcomes if isinstance(o, Conflicted)]
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        recorder: Optional[ConflictRecorder] = None,
        strategy: str = "recursive",
        preferences: Optional[Dict[Direction, str]] = None,
    ):
        """
        Initialize ReplayEngine.

        Args:
            git_client: GitClient instance (creates new if None)
            recorder: ConflictRecorder sharing the same client (created if None)
            strategy: Merge strategy used for every cherry-pick
            preferences: Conflict side preference per direction
        """
        self.git = git_client or GitClient()
        self.recorder = recorder or ConflictRecorder(self.git)
        self.strategy = strategy
        self.preferences = dict(DEFAULT_PREFERENCES)
        if preferences:
            self.preferences.update(preferences)

    def replay(self, path: str, changeset: ChangeSet) -> List[ReplayOutcome]:
        """
        Replay a change set onto its destination lineage.

        Returns:
            One outcome per commit, in change set order (empty for an
            empty change set)

        Raises:
            ReplayError: If the destination cannot be checked out or a
                failed step can be neither recorded nor skipped
        """
        if not changeset:
            return []

        destination = changeset.destination
        if not self.git.checkout(path, destination, force=True):
            raise ReplayError(f"Could not check out {destination}", repo=path, branch=changeset.branch.name)

        preference = self.preferences[changeset.direction]
        outcomes = []
        for commit in changeset:
            outcomes.append(self.replay_commit(path, destination, commit, preference))
        return outcomes

    def replay_commit(self, path: str, destination: str, commit: str, preference: str) -> ReplayOutcome:
        """Apply a single commit onto the checked out destination."""
        # Merge commits are replayed as their diff against the first parent
        mainline = 1 if self.git.parent_count(path, commit) > 1 else None

        success, _ = self.git.cherry_pick(
            path,
            commit,
            strategy=self.strategy,
            preference=preference,
            mainline=mainline,
        )
        if success:
            new_commit = self.git.rev_parse(path, "HEAD")
            logger.debug(f"Applied {commit} to {destination} as {new_commit}")
            return Applied(commit, new_commit)

        logger.warning(f"Failed to cherry-pick {commit} to {destination}. Committing conflicts...")
        message = self.git.commit_message(path, commit)
        try:
            return self.recorder.record(path, destination, commit, message)
        except ReplayError:
            self.git.cherry_pick_abort(path)
            raise
