"""
Domain layer for git-svn-sync.

Contains pure domain objects with no I/O or side effects:
- TrackedBranch: A branch name and the lineages derived from it
- ChangeSet: Ordered commits awaiting replay in one direction
- Applied / Conflicted / SkippedEmpty: Per-commit replay outcomes
- BranchSyncResult / RepositorySyncResult / SyncSummary: Pass results
"""

from .branch import TrackedBranch, ChangeSet, Direction
from .replay import (
    Applied,
    Conflicted,
    SkippedEmpty,
    ReplayOutcome,
    conflict_message,
)
from .operation import (
    OperationStatus,
    RepoState,
    BranchState,
    BranchSyncResult,
    RepositorySyncResult,
    SyncSummary,
)

__all__ = [
    'TrackedBranch',
    'ChangeSet',
    'Direction',
    'Applied',
    'Conflicted',
    'SkippedEmpty',
    'ReplayOutcome',
    'conflict_message',
    'OperationStatus',
    'RepoState',
    'BranchState',
    'BranchSyncResult',
    'RepositorySyncResult',
    'SyncSummary',
]
