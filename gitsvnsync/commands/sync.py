"""
Sync command for git-svn-sync.

Discovers every repository under a root directory and syncs each tracked
branch between the hub and Subversion. Individual repository or branch
failures are logged and summarized; they never change the exit code.
"""

import json
import logging
import os
import sys
from typing import Optional

import click

from ..config import as_patterns, load_config, configure_logging
from ..domain.operation import OperationStatus, SyncSummary
from ..exit_codes import ConfigError, InvalidRootError, exit_with_code
from ..services.sync_service import RepositorySyncService, SyncOptions
from ..utils import find_git_repos

logger = logging.getLogger("gitsvnsync")


def _prepare(root, **overrides):
    """Load config, build options, set up logging and validate the root.

    Returns (options, paths). Exits on config or root errors.
    """
    config = load_config()
    try:
        options = SyncOptions.from_config(config, **overrides)
    except ConfigError as e:
        exit_with_code(e.exit_code, f"Error: {e}")

    configure_logging(options.log_file, debug=options.debug, level=options.log_level)

    root = root or os.getcwd()
    if not os.path.isdir(root):
        error = InvalidRootError(root)
        logger.error(str(error))
        sys.exit(error.exit_code)

    exclude = as_patterns(config.get('discovery', {}).get('exclude_patterns'))
    paths = find_git_repos(root, exclude_patterns=exclude)
    logger.debug(f"Found {len(paths)} repositories under {root}")
    return options, paths


@click.command('sync')
@click.argument('root', required=False)
@click.option('--all', '-a', 'sync_all', is_flag=True, help='Sync every tracked branch, not only branches with new activity')
@click.option('--debug', '-D', is_flag=True, help='Trace every git command in the log')
@click.option('--parallel', '-p', type=int, default=None, help='Repositories synced at once (default: one per CPU)')
@click.option('--full-history', is_flag=True, help='Replay every hub commit, not only merge commits')
@click.option('--log-file', type=click.Path(dir_okay=False), default=None, help='Append log messages to this file')
@click.option('--dry-run', is_flag=True, help='Fetch and report pending changes without replaying')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSONL')
@click.option('--pretty', is_flag=True, help='Display with rich formatting')
def sync_handler(
    root: Optional[str],
    sync_all: bool,
    debug: bool,
    parallel: Optional[int],
    full_history: bool,
    log_file: Optional[str],
    dry_run: bool,
    output_json: bool,
    pretty: bool,
):
    """
    Sync hub and Subversion branches of every git-svn repository under ROOT.

    ROOT defaults to the current directory. New hub merge commits are
    dcommitted to Subversion; new Subversion revisions are pushed to the hub.

    \b
    Examples:
        # Sync branches that changed since the last fetch
        git-svn-sync sync ~/mirrors
        # Sync every tracked branch, tracing git commands
        git-svn-sync sync -a -D ~/mirrors
        # Preview without touching any branch
        git-svn-sync sync --dry-run --pretty
    """
    options, paths = _prepare(
        root,
        sync_all=sync_all or None,
        merges_only=False if full_history else None,
        debug=debug or None,
        dry_run=dry_run or None,
        parallel=parallel,
        log_file=log_file,
    )

    service = RepositorySyncService(options)
    progress_iter = service.sync_repos(paths)

    if output_json:
        _sync_output_json(service, progress_iter)
    elif pretty:
        _sync_output_pretty(service, progress_iter)
    else:
        _sync_output_simple(service, progress_iter)


# ============================================================================
# Output helpers
# ============================================================================

def _sync_output_simple(service: RepositorySyncService, progress_iter):
    """Progress lines followed by a short summary, all on stderr."""
    mode = "[dry run] " if service.options.dry_run else ""

    for progress in progress_iter:
        print(f"{mode}{progress}", file=sys.stderr)

    summary = service.last_summary
    if summary:
        print(f"\n{mode}Sync complete:", file=sys.stderr)
        print(f"  Repositories: {summary.successful} synced", file=sys.stderr)
        if summary.skipped > 0:
            print(f"  Skipped: {summary.skipped}", file=sys.stderr)
        print(f"  Branches: {summary.branches}", file=sys.stderr)
        if summary.conflicts > 0:
            print(f"  Conflicts recorded: {summary.conflicts}", file=sys.stderr)
        if summary.errors:
            print(f"  Failed: {summary.failed} repositories, {summary.failed_branches} branches", file=sys.stderr)
            for error in summary.errors:
                print(f"    - {error}", file=sys.stderr)


def _sync_output_json(service: RepositorySyncService, progress_iter):
    """JSONL: one line per repository result, then the summary."""
    for progress in progress_iter:
        print(json.dumps({'progress': progress}), flush=True)

    summary = service.last_summary
    if summary:
        for detail in summary.details:
            print(json.dumps(detail.to_dict()), flush=True)
        print(json.dumps(summary.to_dict()), flush=True)


def _sync_output_pretty(service: RepositorySyncService, progress_iter):
    """Rich table with one row per branch."""
    from rich.console import Console

    console = Console(stderr=True)
    with console.status("Syncing repositories..."):
        for _ in progress_iter:
            pass

    summary = service.last_summary
    if summary:
        render_summary_table(summary, console)


def render_summary_table(summary: SyncSummary, console):
    """Render a SyncSummary as a rich table plus a one-line footer."""
    from rich.table import Table

    title = "Pending changes" if summary.dry_run else "Sync results"
    table = Table(title=title)
    table.add_column("Repository", style="cyan")
    table.add_column("Branch")
    table.add_column("Hub", justify="right")
    table.add_column("Trunk", justify="right")
    table.add_column("Conflicts", justify="right")
    table.add_column("Status")

    styles = {
        OperationStatus.SUCCESS: "green",
        OperationStatus.DRY_RUN: "blue",
        OperationStatus.SKIPPED: "yellow",
        OperationStatus.FAILED: "red",
    }

    for detail in summary.details:
        if not detail.branches:
            status = detail.status
            table.add_row(
                detail.repo_name, "-", "-", "-", "-",
                f"[{styles[status]}]{status.value}[/{styles[status]}] {detail.error or ''}".rstrip(),
            )
            continue
        for branch in detail.branches:
            status = branch.status
            note = branch.error or (f"bootstrap {', '.join(branch.created)}" if branch.created else "")
            table.add_row(
                detail.repo_name,
                branch.branch,
                str(branch.hub_changes),
                str(branch.trunk_changes),
                str(len(branch.conflicts)),
                f"[{styles[status]}]{status.value}[/{styles[status]}] {note}".rstrip(),
            )

    console.print(table)
    console.print(
        f"{summary.total} repositories, {summary.branches} branches, "
        f"{summary.conflicts} conflicts, {summary.failed + summary.failed_branches} failures"
    )
