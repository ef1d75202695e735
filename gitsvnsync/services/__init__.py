"""
Service layer for git-svn-sync.

Contains the sync protocol, one service per stage:
- LineageBootstrapper: Create missing staging / hub-local / hub remote branches
- ChangeSetExtractor: Compute commits pending in each direction
- ReplayEngine: Cherry-pick change sets commit by commit
- ConflictRecorder: Commit or skip a replay step that did not apply
- Publisher: dcommit staging to Subversion, push hub-local to the hub
- RepositorySyncService: Run the pipeline per repository and per branch

Services are the primary API for commands to use.
"""

from .bootstrap_service import LineageBootstrapper
from .changeset_service import ChangeSetExtractor
from .conflict_service import ConflictRecorder
from .replay_service import ReplayEngine
from .publish_service import Publisher
from .sync_service import RepositorySyncService, SyncOptions, RepositoryHandle

__all__ = [
    'LineageBootstrapper',
    'ChangeSetExtractor',
    'ConflictRecorder',
    'ReplayEngine',
    'Publisher',
    'RepositorySyncService',
    'SyncOptions',
    'RepositoryHandle',
]
