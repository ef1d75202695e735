"""
Repository discovery for git-svn-sync.
"""

import fnmatch
import os
import logging

logger = logging.getLogger(__name__)


def find_git_repos(base_dir, exclude_patterns=None):
    """Find every git repository below a directory.

    The directory itself counts when it is a repository. Repositories nested
    inside other repositories are found too.

    Args:
        base_dir: Directory to search
        exclude_patterns: Directory names (or glob patterns) to skip

    Returns:
        Sorted list of repository paths
    """
    excludes = set(exclude_patterns or [])

    def should_exclude_dir(dir_name):
        return any(fnmatch.fnmatch(dir_name, pattern) for pattern in excludes)

    def on_error(error):
        logger.warning(f"Cannot scan {error.filename}: {error.strerror}")

    repos = set()
    for root, dirs, _ in os.walk(base_dir, onerror=on_error):
        if '.git' in dirs:
            repos.add(root)
            # Never descend into the git directory itself
            dirs.remove('.git')
        dirs[:] = [d for d in dirs if not should_exclude_dir(d)]

    return sorted(repos)
