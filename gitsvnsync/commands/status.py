"""
Status command for git-svn-sync: pending changes per tracked branch.
"""

import json
from typing import Optional

import click
from rich.console import Console

from ..services.sync_service import RepositorySyncService
from .sync import _prepare, render_summary_table


@click.command('status')
@click.argument('root', required=False)
@click.option('--all/--changed', 'sync_all', default=True,
              help='Report every tracked branch (default) or only branches with new activity')
@click.option('--debug', '-D', is_flag=True, help='Trace every git command in the log')
@click.option('--log-file', type=click.Path(dir_okay=False), default=None, help='Append log messages to this file')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSONL')
def status_handler(root: Optional[str], sync_all: bool, debug: bool, log_file: Optional[str], output_json: bool):
    """
    Show hub and Subversion changes waiting to be synced under ROOT.

    Fetches both sides, then counts pending commits per branch without
    replaying or publishing anything. Repositories are checked one at a time.
    """
    options, paths = _prepare(
        root,
        sync_all=sync_all,
        debug=debug or None,
        dry_run=True,
        parallel=1,
        log_file=log_file,
    )

    service = RepositorySyncService(options)
    for _ in service.sync_repos(paths):
        pass
    summary = service.last_summary

    if output_json:
        for detail in summary.details:
            print(json.dumps(detail.to_dict()))
        print(json.dumps(summary.to_dict()))
        return

    render_summary_table(summary, Console())
