"""
git-svn-sync - Keep branches in sync between a Git hub and a Subversion trunk.

For every branch tracked by git-svn, new merge commits on the hub are
cherry-picked onto a staging branch and dcommitted to Subversion, and new
Subversion revisions are cherry-picked onto the hub branch and pushed.
Conflicts are committed with a tagged message instead of stopping the sync.

Quick Start:
    from gitsvnsync import RepositorySyncService, SyncOptions

    service = RepositorySyncService(SyncOptions(sync_all=True))
    result = service.sync_repository("/path/to/git-svn/checkout")
    for branch in result.branches:
        print(branch.branch, branch.status.value, len(branch.conflicts))

Domain Objects:
    TrackedBranch - A branch name and its hub / staging / trunk lineages
    ChangeSet - Commits pending in one direction, oldest first
    Applied, Conflicted, SkippedEmpty - Per-commit replay outcomes

Services:
    RepositorySyncService - Validate, fetch and sync a repository
    ReplayEngine, ConflictRecorder, LineageBootstrapper,
    ChangeSetExtractor, Publisher - The individual pipeline stages
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    TrackedBranch,
    ChangeSet,
    Direction,
    Applied,
    Conflicted,
    SkippedEmpty,
    BranchSyncResult,
    RepositorySyncResult,
    SyncSummary,
)

# Services
from .services import (
    RepositorySyncService,
    SyncOptions,
    ReplayEngine,
    ConflictRecorder,
    LineageBootstrapper,
    ChangeSetExtractor,
    Publisher,
)

# Configuration
from .config import load_config, save_config, configure_logging

__all__ = [
    "__version__",
    # Domain objects
    "TrackedBranch",
    "ChangeSet",
    "Direction",
    "Applied",
    "Conflicted",
    "SkippedEmpty",
    "BranchSyncResult",
    "RepositorySyncResult",
    "SyncSummary",
    # Services
    "RepositorySyncService",
    "SyncOptions",
    "ReplayEngine",
    "ConflictRecorder",
    "LineageBootstrapper",
    "ChangeSetExtractor",
    "Publisher",
    # Configuration
    "load_config",
    "save_config",
    "configure_logging",
]
