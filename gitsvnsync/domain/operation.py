"""
Sync result domain objects for git-svn-sync.

Provides the state machine stages and standardized result types for a
sync pass over one repository and each of its tracked branches. All
results are plain dataclasses so they can be returned from pool workers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

from .replay import ReplayOutcome, Conflicted


class OperationStatus(Enum):
    """Status of an individual unit of work."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"


class RepoState(Enum):
    """Stages of a repository sync pass."""
    VALIDATING = "validating"
    FETCHING = "fetching"
    SYNCING = "syncing"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class BranchState(Enum):
    """Stages of one branch's pipeline inside a repository pass."""
    BOOTSTRAPPING = "bootstrapping"
    EXTRACTING = "extracting"
    REPLAYING = "replaying"
    PUBLISHING = "publishing"
    DONE = "done"


@dataclass
class BranchSyncResult:
    """
    What happened to one tracked branch during a pass.

    `state` is the last stage reached; for a failed branch it is the stage
    in which the failure happened. `to_dcommit` and `to_push` count the
    commits staging and hub-local held beyond their published counterparts
    when the publish step ran (or would run, for a dry run).
    """
    branch: str
    state: BranchState = BranchState.BOOTSTRAPPING
    status: OperationStatus = OperationStatus.SUCCESS
    created: List[str] = field(default_factory=list)
    hub_changes: int = 0
    trunk_changes: int = 0
    hub_outcomes: List[ReplayOutcome] = field(default_factory=list)
    trunk_outcomes: List[ReplayOutcome] = field(default_factory=list)
    to_dcommit: int = 0
    to_push: int = 0
    dcommitted: bool = False
    pushed: bool = False
    error: Optional[str] = None

    @property
    def conflicts(self) -> List[Conflicted]:
        return [o for o in self.hub_outcomes + self.trunk_outcomes if isinstance(o, Conflicted)]

    def fail(self, error: str) -> None:
        self.status = OperationStatus.FAILED
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'branch': self.branch,
            'state': self.state.value,
            'status': self.status.value,
            'hub_changes': self.hub_changes,
            'trunk_changes': self.trunk_changes,
            'conflicts': len(self.conflicts),
            'to_dcommit': self.to_dcommit,
            'to_push': self.to_push,
            'dcommitted': self.dcommitted,
            'pushed': self.pushed,
        }
        if self.created:
            result['created'] = self.created
        if self.hub_outcomes:
            result['hub_outcomes'] = [o.to_dict() for o in self.hub_outcomes]
        if self.trunk_outcomes:
            result['trunk_outcomes'] = [o.to_dict() for o in self.trunk_outcomes]
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class RepositorySyncResult:
    """Outcome of one repository's sync pass."""
    repo_path: str
    repo_name: str
    state: RepoState = RepoState.VALIDATING
    status: OperationStatus = OperationStatus.SUCCESS
    branches: List[BranchSyncResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed_branches(self) -> List[BranchSyncResult]:
        return [b for b in self.branches if b.status == OperationStatus.FAILED]

    @property
    def conflict_count(self) -> int:
        return sum(len(b.conflicts) for b in self.branches)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'path': self.repo_path,
            'name': self.repo_name,
            'state': self.state.value,
            'status': self.status.value,
            'branches': [b.to_dict() for b in self.branches],
        }
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class SyncSummary:
    """
    Summary of a sync run across every discovered repository.
    """
    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    branches: int = 0
    failed_branches: int = 0
    conflicts: int = 0
    dry_run: bool = False
    details: List[RepositorySyncResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no repository or branch failed."""
        return self.failed == 0 and self.failed_branches == 0

    def add_detail(self, detail: RepositorySyncResult) -> None:
        """Add a repository result and update counts."""
        self.details.append(detail)
        self.total += 1

        if detail.status == OperationStatus.SKIPPED:
            self.skipped += 1
        elif detail.status == OperationStatus.FAILED:
            self.failed += 1
            if detail.error:
                self.errors.append(f"{detail.repo_name}: {detail.error}")
        else:
            self.successful += 1

        self.branches += len(detail.branches)
        self.conflicts += detail.conflict_count
        for branch in detail.failed_branches:
            self.failed_branches += 1
            self.errors.append(f"{detail.repo_name}/{branch.branch}: {branch.error}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'summary',
            'total': self.total,
            'successful': self.successful,
            'skipped': self.skipped,
            'failed': self.failed,
            'branches': self.branches,
            'failed_branches': self.failed_branches,
            'conflicts': self.conflicts,
            'dry_run': self.dry_run,
            'errors': self.errors,
        }
