"""
Repository sync orchestration for git-svn-sync.

Runs the sync pipeline over repositories:

    VALIDATING -> FETCHING -> SYNCING -> DONE
                                 |
        per branch: BOOTSTRAPPING -> EXTRACTING -> REPLAYING -> PUBLISHING -> DONE

Repositories are independent units of work and may run in parallel worker
processes. Branches of one repository share a working tree and index, so
they are always processed one after another.
"""

import fnmatch
import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List, Optional, Set, Tuple

from ..config import SUCCESS, as_patterns, configure_logging, validate_preference
from ..domain.branch import TrackedBranch, Direction
from ..domain.operation import (
    BranchState,
    BranchSyncResult,
    OperationStatus,
    RepoState,
    RepositorySyncResult,
    SyncSummary,
)
from ..errors import ReplayError, RepositoryValidationError, SyncError, TransportError
from ..infra.git_client import GitClient
from .bootstrap_service import LineageBootstrapper
from .changeset_service import ChangeSetExtractor
from .publish_service import Publisher
from .replay_service import ReplayEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncOptions:
    """
    Everything a sync pass needs, passed by value to each worker.
    """
    sync_all: bool = False
    merges_only: bool = True
    dry_run: bool = False
    debug: bool = False
    parallel: int = 0  # 0 = one worker per CPU
    hub_remote: str = "origin"
    svn_remote: str = "svn"
    trunk_prefix: str = "svn"
    staging_prefix: str = "inter"
    strategy: str = "recursive"
    hub_to_trunk_preference: str = "theirs"
    trunk_to_hub_preference: str = "ours"
    exclude_branches: Tuple[str, ...] = ("tags/*", "*@*")
    log_file: Optional[str] = None
    log_level: str = "INFO"
    timeout: Optional[int] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], **overrides) -> "SyncOptions":
        """
        Build options from a loaded config; overrides that are None are ignored.

        Raises:
            ConfigError: If a merge-side preference is not 'ours' or 'theirs'
        """
        sync = config.get('sync', {})
        values = {
            'sync_all': bool(sync.get('sync_all', False)),
            'merges_only': bool(sync.get('merges_only', True)),
            'parallel': int(config.get('parallel', {}).get('max_workers', 0) or 0),
            'hub_remote': sync.get('hub_remote', 'origin'),
            'svn_remote': sync.get('svn_remote', 'svn'),
            'trunk_prefix': sync.get('trunk_prefix', 'svn'),
            'staging_prefix': sync.get('staging_prefix', 'inter'),
            'strategy': sync.get('strategy', 'recursive'),
            'hub_to_trunk_preference': sync.get('hub_to_trunk_preference', 'theirs'),
            'trunk_to_hub_preference': sync.get('trunk_to_hub_preference', 'ours'),
            'exclude_branches': tuple(as_patterns(sync.get('exclude_branches', cls.exclude_branches))),
            'log_file': config.get('logging', {}).get('file'),
            'log_level': config.get('logging', {}).get('level', 'INFO'),
            'timeout': config.get('git', {}).get('timeout'),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        validate_preference(values['hub_to_trunk_preference'], 'sync.hub_to_trunk_preference')
        validate_preference(values['trunk_to_hub_preference'], 'sync.trunk_to_hub_preference')
        return cls(**values)

    @property
    def workers(self) -> int:
        return self.parallel if self.parallel > 0 else (os.cpu_count() or 1)

    @property
    def preferences(self) -> Dict[Direction, str]:
        return {
            Direction.HUB_TO_TRUNK: self.hub_to_trunk_preference,
            Direction.TRUNK_TO_HUB: self.trunk_to_hub_preference,
        }

    def tracked(self, name: str) -> TrackedBranch:
        return TrackedBranch(
            name,
            hub_remote=self.hub_remote,
            trunk_prefix=self.trunk_prefix,
            staging_prefix=self.staging_prefix,
        )

    def is_excluded(self, name: str) -> bool:
        return name == 'HEAD' or any(fnmatch.fnmatch(name, p) for p in self.exclude_branches)


@dataclass(frozen=True)
class RepositoryHandle:
    """A directory verified to track both a hub remote and a trunk remote."""
    path: str
    name: str
    hub_url: str
    trunk_url: str


@dataclass
class FetchReport:
    """Branch names whose remote-tracking refs moved during a fetch."""
    hub_changed: Set[str] = field(default_factory=set)
    trunk_changed: Set[str] = field(default_factory=set)

    @property
    def changed(self) -> Set[str]:
        return self.hub_changed | self.trunk_changed


def _moved(before: Dict[str, str], after: Dict[str, str]) -> Set[str]:
    return {name for name, sha in after.items() if before.get(name) != sha}


class RepositorySyncService:
    """
    Service that syncs repositories between the hub and the trunk.

    Example:
        service = RepositorySyncService(SyncOptions(sync_all=True))

        for progress in service.sync_repos(paths):
            print(progress)

        summary = service.last_summary
        print(f"{summary.conflicts} conflicts recorded")
    """

    def __init__(
        self,
        options: Optional[SyncOptions] = None,
        git_client: Optional[GitClient] = None,
    ):
        """
        Initialize RepositorySyncService.

        Args:
            options: Sync options (defaults if None)
            git_client: GitClient instance (creates new if None)
        """
        self.options = options or SyncOptions()
        self.git = git_client or GitClient(timeout=self.options.timeout)
        self.bootstrapper = LineageBootstrapper(self.git)
        self.extractor = ChangeSetExtractor(self.git, merges_only=self.options.merges_only)
        self.engine = ReplayEngine(
            self.git,
            strategy=self.options.strategy,
            preferences=self.options.preferences,
        )
        self.publisher = Publisher(self.git)
        self.last_result: Optional[RepositorySyncResult] = None
        self.last_summary: Optional[SyncSummary] = None

    # ------------------------------------------------------------------
    # Repository stages
    # ------------------------------------------------------------------

    def validate(self, path: str) -> RepositoryHandle:
        """
        Check path is a work tree with a hub remote and a trunk remote.

        Raises:
            RepositoryValidationError: If any of the three is missing
        """
        if not os.path.isdir(path) or not self.git.is_inside_work_tree(path):
            raise RepositoryValidationError("Not a git working tree.", repo=path)

        trunk_url = self.git.svn_url(path, self.options.svn_remote)
        if not trunk_url:
            raise RepositoryValidationError("Not a valid git-svn repository.", repo=path)

        hub_url = self.git.remote_url(path, self.options.hub_remote)
        if not hub_url:
            raise RepositoryValidationError(f"No remote {self.options.hub_remote} set.", repo=path)

        return RepositoryHandle(
            path=path,
            name=os.path.basename(os.path.abspath(path)),
            hub_url=hub_url,
            trunk_url=trunk_url,
        )

    def fetch(self, path: str) -> FetchReport:
        """
        Refresh hub and trunk remote-tracking refs.

        Returns:
            FetchReport naming the branches whose refs moved

        Raises:
            TransportError: If either fetch fails
        """
        hub_ns = f"refs/remotes/{self.options.hub_remote}"
        trunk_ns = f"refs/remotes/{self.options.trunk_prefix}"
        hub_before = self.git.list_refs(path, hub_ns)
        trunk_before = self.git.list_refs(path, trunk_ns)

        success, output = self.git.fetch_all(path, prune=True)
        if not success:
            raise TransportError(f"git fetch failed: {output or 'unknown error'}", repo=path)

        success, output = self.git.svn_fetch(path)
        if not success:
            raise TransportError(f"git svn fetch failed: {output or 'unknown error'}", repo=path)

        return FetchReport(
            hub_changed=_moved(hub_before, self.git.list_refs(path, hub_ns)),
            trunk_changed=_moved(trunk_before, self.git.list_refs(path, trunk_ns)),
        )

    def tracked_branches(self, path: str) -> List[str]:
        """Branch names present on the trunk-mirror side, sorted."""
        refs = self.git.list_refs(path, f"refs/remotes/{self.options.trunk_prefix}")
        return sorted(name for name in refs if not self.options.is_excluded(name))

    def select_branches(self, path: str, report: FetchReport) -> List[TrackedBranch]:
        """
        Tracked branches to sync this pass, in name order.

        Without sync_all, a branch is selected when its hub or trunk ref moved
        during the fetch, or when an earlier pass left commits unpublished.
        """
        branches = [self.options.tracked(name) for name in self.tracked_branches(path)]
        if self.options.sync_all:
            return branches
        return [b for b in branches if b.name in report.changed or any(self.unpublished(path, b))]

    def unpublished(self, path: str, branch: TrackedBranch) -> Tuple[int, int]:
        """
        Commits waiting to leave the local lineages.

        Returns:
            (staging commits not on the trunk mirror,
             hub-local commits not on the hub remote ref);
            a side whose refs do not exist yet counts as 0

        Raises:
            GitCommandError: If the refs exist but cannot be compared
        """
        to_dcommit = to_push = 0
        if self.git.ref_exists(path, branch.staging_head) and self.git.ref_exists(path, branch.trunk_mirror_ref):
            to_dcommit = self.git.count_ahead(path, branch.staging, branch.trunk_mirror)
        if self.git.ref_exists(path, branch.hub_local_head) and self.git.ref_exists(path, branch.hub_tracking_ref):
            to_push = self.git.count_ahead(path, branch.hub_local, branch.hub_remote_ref)
        return to_dcommit, to_push

    def sync_repository(self, path: str) -> RepositorySyncResult:
        """
        Run one full sync pass over a repository.

        Never raises for validation, transport or branch failures; they are
        logged and reported in the returned result.
        """
        result = RepositorySyncResult(
            repo_path=path,
            repo_name=os.path.basename(os.path.abspath(path)),
        )
        self.last_result = result

        try:
            handle = self.validate(path)
        except RepositoryValidationError as e:
            logger.error(f"Skipping {path}: {e}")
            result.state = RepoState.SKIPPED
            result.status = OperationStatus.SKIPPED
            result.error = str(e)
            return result

        result.repo_name = handle.name
        logger.info(f"Processing repository at {path} ({handle.hub_url} <-> {handle.trunk_url})")

        result.state = RepoState.FETCHING
        try:
            report = self.fetch(path)
            branches = self.select_branches(path, report)
        except SyncError as e:
            logger.error(f"Failed to fetch {path}: {e}")
            result.state = RepoState.FAILED
            result.status = OperationStatus.FAILED
            result.error = str(e)
            return result

        result.state = RepoState.SYNCING
        for branch in branches:
            logger.debug(f"Syncing branch {branch}:")
            if self.options.dry_run:
                result.branches.append(self.preview_branch(path, branch))
            else:
                result.branches.append(self.sync_branch(path, branch))

        result.state = RepoState.DONE
        if self.options.dry_run:
            result.status = OperationStatus.DRY_RUN
        logger.info(f"Done processing repository at {path}")
        return result

    # ------------------------------------------------------------------
    # Branch pipeline
    # ------------------------------------------------------------------

    def sync_branch(self, path: str, branch: TrackedBranch) -> BranchSyncResult:
        """
        Run the per-branch pipeline; failures are contained in the result.
        """
        result = BranchSyncResult(branch=branch.name)

        try:
            result.state = BranchState.BOOTSTRAPPING
            result.created = self.bootstrapper.ensure(path, branch)

            result.state = BranchState.EXTRACTING
            hub_changes, trunk_changes = self.extractor.extract(path, branch)
            result.hub_changes = len(hub_changes)
            result.trunk_changes = len(trunk_changes)

            result.state = BranchState.REPLAYING
            if hub_changes:
                self._update_hub_local(path, branch)
            if trunk_changes:
                self._rebase_staging(path, branch)
            result.hub_outcomes = self.engine.replay(path, hub_changes)
            result.trunk_outcomes = self.engine.replay(path, trunk_changes)
        except SyncError as e:
            logger.error(f"Failed to sync {branch} in {path} while {result.state.value}: {e}")
            result.fail(str(e))
            return result

        # Publish from lineage state, not from this pass's outcomes: commits
        # left behind by an earlier failed publish go out as well.
        result.state = BranchState.PUBLISHING
        try:
            result.to_dcommit, result.to_push = self.unpublished(path, branch)
        except SyncError as e:
            logger.error(f"Failed to sync {branch} in {path} while {result.state.value}: {e}")
            result.fail(str(e))
            return result

        errors = []
        if result.to_dcommit:
            try:
                self.publisher.dcommit(path, branch)
                result.dcommitted = True
            except TransportError as e:
                errors.append(str(e))
        if result.to_push:
            try:
                self.publisher.push_hub(path, branch)
                result.pushed = True
            except TransportError as e:
                errors.append(str(e))

        if errors:
            result.fail("; ".join(errors))
            return result

        result.state = BranchState.DONE
        if result.conflicts:
            logger.warning(f"{branch}: synced with {len(result.conflicts)} conflict commit(s)")
        elif result.dcommitted or result.pushed or result.created:
            logger.log(SUCCESS, f"{branch}: synced")
        return result

    def preview_branch(self, path: str, branch: TrackedBranch) -> BranchSyncResult:
        """Report pending changes for a branch without touching anything."""
        result = BranchSyncResult(branch=branch.name, status=OperationStatus.DRY_RUN)

        missing = [
            lineage for lineage, ref in ((branch.staging, branch.staging_head),
                                         (branch.hub_local, branch.hub_local_head),
                                         (branch.hub_remote_ref, branch.hub_tracking_ref))
            if not self.git.ref_exists(path, ref)
        ]
        if missing:
            # Would be bootstrapped (or published to the hub); nothing to compare against yet
            result.created = missing
            return result

        try:
            result.state = BranchState.EXTRACTING
            hub_changes, trunk_changes = self.extractor.extract(path, branch)
            result.to_dcommit, result.to_push = self.unpublished(path, branch)
        except SyncError as e:
            result.fail(str(e))
            return result

        result.hub_changes = len(hub_changes)
        result.trunk_changes = len(trunk_changes)
        result.state = BranchState.DONE
        return result

    def _update_hub_local(self, path: str, branch: TrackedBranch) -> None:
        """Bring hub-local up to the hub remote branch."""
        if not self.git.checkout(path, branch.hub_local, force=True):
            raise ReplayError(f"Could not check out {branch.hub_local}", repo=path, branch=branch.name)
        success, output = self.git.merge(path, branch.hub_remote_ref)
        if not success:
            self.git.merge_abort(path)
            raise ReplayError(
                f"Could not merge {branch.hub_remote_ref} into {branch.hub_local}: {output or 'merge failed'}",
                repo=path, branch=branch.name,
            )

    def _rebase_staging(self, path: str, branch: TrackedBranch) -> None:
        """Rebase staging onto the latest Subversion revision of its branch."""
        if not self.git.checkout(path, branch.staging, force=True):
            raise ReplayError(f"Could not check out {branch.staging}", repo=path, branch=branch.name)
        success, output = self.git.svn_rebase(path)
        if not success:
            self.git.rebase_abort(path)
            raise ReplayError(
                f"git svn rebase of {branch.staging} failed: {output or 'rebase failed'}",
                repo=path, branch=branch.name,
            )

    # ------------------------------------------------------------------
    # Fan-out over repositories
    # ------------------------------------------------------------------

    def sync_repos(self, paths: List[str]) -> Generator[str, None, SyncSummary]:
        """
        Sync many repositories, in parallel worker processes when allowed.

        Yields:
            Progress messages

        Returns:
            SyncSummary with every repository result
        """
        summary = SyncSummary(dry_run=self.options.dry_run)
        self.last_summary = summary

        if not paths:
            yield "No repositories to sync"
            return summary

        workers = min(self.options.workers, len(paths))
        if workers > 1:
            yield f"Syncing {len(paths)} repositories (parallel={workers})..."
            yield from self._sync_parallel(paths, workers, summary)
        else:
            yield f"Syncing {len(paths)} repositories..."
            yield from self._sync_sequential(paths, summary)

        return summary

    def _sync_sequential(self, paths: List[str], summary: SyncSummary) -> Generator[str, None, None]:
        for path in paths:
            detail = self.sync_repository(path)
            summary.add_detail(detail)
            yield _describe(detail)

    def _sync_parallel(self, paths: List[str], workers: int, summary: SyncSummary) -> Generator[str, None, None]:
        with ProcessPoolExecutor(
            max_workers=workers,
            initializer=_init_worker,
            initargs=(self.options,),
        ) as executor:
            futures = {executor.submit(sync_repository_task, path, self.options): path for path in paths}

            for future in as_completed(futures):
                path = futures[future]
                try:
                    detail = future.result()
                except Exception as e:
                    logger.error(f"Worker failed on {path}: {e}")
                    detail = RepositorySyncResult(
                        repo_path=path,
                        repo_name=os.path.basename(os.path.abspath(path)),
                        state=RepoState.FAILED,
                        status=OperationStatus.FAILED,
                        error=str(e),
                    )
                summary.add_detail(detail)
                yield _describe(detail)


def _init_worker(options: SyncOptions) -> None:
    """Pool initializer: each worker process sets up its own logging."""
    configure_logging(options.log_file, debug=options.debug, level=options.log_level)


def sync_repository_task(path: str, options: SyncOptions) -> RepositorySyncResult:
    """Entry point run inside a worker process for one repository."""
    return RepositorySyncService(options).sync_repository(path)


def _describe(detail: RepositorySyncResult) -> str:
    """One-line progress message for a finished repository."""
    if detail.status == OperationStatus.SKIPPED:
        return f"  - {detail.repo_name}: skipped ({detail.error})"
    if detail.status == OperationStatus.FAILED:
        return f"  ✗ {detail.repo_name}: {detail.error}"

    parts = [f"{len(detail.branches)} branch(es)"]
    if detail.conflict_count:
        parts.append(f"{detail.conflict_count} conflict(s)")
    if detail.failed_branches:
        parts.append(f"{len(detail.failed_branches)} failed")
    mark = "✗" if detail.failed_branches else "✓"
    return f"  {mark} {detail.repo_name}: {', '.join(parts)}"


