"""
Infrastructure layer for git-svn-sync.

Contains abstractions for external systems:
- GitClient: git and git-svn command execution

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient

__all__ = [
    'GitClient',
]
