#!/usr/bin/env python3

import click

from gitsvnsync import __version__
from gitsvnsync.commands.sync import sync_handler
from gitsvnsync.commands.status import status_handler
from gitsvnsync.commands.config import config_cmd


@click.group()
@click.version_option(version=__version__)
def cli():
    """git-svn-sync - Keep Git hub branches and Subversion branches in sync.

    Scans a directory for git-svn checkouts and, for every tracked branch,
    replays new hub merge commits to Subversion and new Subversion revisions
    to the hub, recording conflicts as tagged commits.
    """
    pass


cli.add_command(sync_handler, name='sync')
cli.add_command(status_handler, name='status')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
