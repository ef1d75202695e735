"""
Branch lineage domain objects for git-svn-sync.

A tracked branch name maps onto four refs in the local repository:

    hub_local       B               what hub consumers see
    hub_remote_ref  origin/B        last published state on the hub
    trunk_mirror    svn/B           last state fetched from Subversion
    staging         inter/B         translation surface for both directions

Commits from the hub are replayed onto staging before being dcommitted to
Subversion; trunk revisions are rebased onto staging and replayed onto the
hub-local branch.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Iterator, Tuple


class Direction(Enum):
    """Direction of a replay pass."""
    HUB_TO_TRUNK = "hub_to_trunk"
    TRUNK_TO_HUB = "trunk_to_hub"


@dataclass(frozen=True)
class TrackedBranch:
    """A branch name kept in sync between the hub and the trunk."""
    name: str
    hub_remote: str = "origin"
    trunk_prefix: str = "svn"
    staging_prefix: str = "inter"

    @property
    def hub_local(self) -> str:
        return self.name

    @property
    def hub_remote_ref(self) -> str:
        return f"{self.hub_remote}/{self.name}"

    @property
    def trunk_mirror(self) -> str:
        return f"{self.trunk_prefix}/{self.name}"

    @property
    def staging(self) -> str:
        return f"{self.staging_prefix}/{self.name}"

    @property
    def staging_head(self) -> str:
        return f"refs/heads/{self.staging}"

    @property
    def hub_local_head(self) -> str:
        return f"refs/heads/{self.hub_local}"

    @property
    def trunk_mirror_ref(self) -> str:
        return f"refs/remotes/{self.trunk_mirror}"

    @property
    def hub_tracking_ref(self) -> str:
        return f"refs/remotes/{self.hub_remote_ref}"

    def destination_for(self, direction: Direction) -> str:
        """Lineage that receives replays in the given direction."""
        if direction == Direction.HUB_TO_TRUNK:
            return self.staging
        return self.hub_local

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ChangeSet:
    """
    Commits present on a source lineage but absent from the destination.

    Commit ids are stored oldest first, in the order they must be replayed.
    """
    branch: TrackedBranch
    direction: Direction
    commits: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def source(self) -> str:
        if self.direction == Direction.HUB_TO_TRUNK:
            return self.branch.hub_remote_ref
        return self.branch.trunk_mirror

    @property
    def destination(self) -> str:
        return self.branch.destination_for(self.direction)

    def __iter__(self) -> Iterator[str]:
        return iter(self.commits)

    def __len__(self) -> int:
        return len(self.commits)

    def __bool__(self) -> bool:
        return bool(self.commits)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'branch': self.branch.name,
            'direction': self.direction.value,
            'source': self.source,
            'destination': self.destination,
            'commits': list(self.commits),
        }
