"""
Git client infrastructure for git-svn-sync.

Provides a clean abstraction over git and git-svn command execution.
All commands the sync protocol issues go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Traceable (every command is logged at DEBUG before it runs)
"""

import os
import subprocess
from typing import Dict, List, Mapping, Optional, Tuple
import logging

from ..errors import GitCommandError

logger = logging.getLogger(__name__)

# Editor that accepts the prepared message unchanged
NON_INTERACTIVE_ENV = {'GIT_EDITOR': 'true'}


class GitClient:
    """
    Abstraction over git commands.

    Methods that change the repository return a success flag (and the
    command output where a caller needs it for error reporting). Queries
    whose answer the sync cannot do without raise GitCommandError.

    Example:
        client = GitClient()
        if client.ref_exists("/path/to/repo", "refs/heads/inter/main"):
            commits = client.rev_list("/path/to/repo", "svn/main", "inter/main")
    """

    def __init__(self, timeout: Optional[int] = None):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: None, wait forever)
        """
        self.timeout = timeout

    def _run(
        self,
        args: List[str],
        cwd: str,
        check: bool = False,
        capture_stderr: bool = False,
        env: Optional[Mapping[str, str]] = None,
    ) -> Tuple[Optional[str], int]:
        """
        Run a git command.

        Args:
            args: Arguments after 'git'
            cwd: Working directory
            check: Raise GitCommandError on non-zero exit
            capture_stderr: Include stderr in output
            env: Extra environment variables

        Returns:
            Tuple of (stdout, returncode)
        """
        cmd = ['git'] + list(args)
        logger.debug(f"Running in '{cwd}': {' '.join(cmd)}")

        run_env = None
        if env:
            run_env = os.environ.copy()
            run_env.update(env)

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=run_env,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            if check:
                raise GitCommandError(cmd, -1, "timed out")
            return None, -1
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            if check:
                raise GitCommandError(cmd, -1, str(e))
            return None, -1

        output = result.stdout
        if capture_stderr and result.stderr:
            output += result.stderr

        if result.returncode != 0:
            logger.debug(f"Exit status {result.returncode}: {result.stderr.strip()}")
            if check:
                raise GitCommandError(cmd, result.returncode, result.stderr.strip() or None)

        return output.strip() if output else None, result.returncode

    # ------------------------------------------------------------------
    # Repository validation
    # ------------------------------------------------------------------

    def is_inside_work_tree(self, path: str) -> bool:
        """Check if path is inside a git working tree."""
        output, code = self._run(['rev-parse', '--is-inside-work-tree'], cwd=path)
        return code == 0 and output == 'true'

    def config_get(self, path: str, key: str) -> Optional[str]:
        """Read a single git config value, None if unset."""
        output, code = self._run(['config', '--get', key], cwd=path)
        if code == 0 and output:
            return output
        return None

    def remote_url(self, path: str, remote: str = "origin") -> Optional[str]:
        """Get the URL of a hub remote."""
        return self.config_get(path, f"remote.{remote}.url")

    def svn_url(self, path: str, svn_remote: str = "svn") -> Optional[str]:
        """Get the URL of a git-svn remote."""
        return self.config_get(path, f"svn-remote.{svn_remote}.url")

    # ------------------------------------------------------------------
    # Refs
    # ------------------------------------------------------------------

    def list_refs(self, path: str, namespace: str) -> Dict[str, str]:
        """
        List refs below a namespace.

        Args:
            path: Path to git repository
            namespace: Ref prefix, e.g. "refs/remotes/svn"

        Returns:
            Mapping of name relative to the namespace to commit id
        """
        prefix = namespace.rstrip('/') + '/'
        output, _ = self._run(
            ['for-each-ref', '--format=%(objectname) %(refname)', prefix],
            cwd=path,
            check=True,
        )
        refs = {}
        for line in (output or '').splitlines():
            sha, _, refname = line.partition(' ')
            if refname.startswith(prefix):
                refs[refname[len(prefix):]] = sha
        return refs

    def ref_exists(self, path: str, ref: str) -> bool:
        """Check a fully qualified ref exists (e.g. refs/heads/main)."""
        _, code = self._run(['show-ref', '--verify', '--quiet', ref], cwd=path)
        return code == 0

    def remote_branch_exists(self, path: str, remote: str, branch: str) -> bool:
        """
        Ask the remote itself whether it has a branch.

        Raises:
            GitCommandError: If the remote could not be queried
        """
        output, code = self._run(
            ['ls-remote', '--exit-code', '--heads', remote, f"refs/heads/{branch}"],
            cwd=path,
        )
        if code == 0:
            return True
        if code == 2:  # --exit-code: no matching refs
            return False
        raise GitCommandError(['git', 'ls-remote', remote, branch], code, output)

    def create_branch(self, path: str, name: str, start_point: str) -> bool:
        """Create a local branch at start_point without checking it out."""
        _, code = self._run(['branch', name, start_point], cwd=path)
        return code == 0

    def rev_parse(self, path: str, rev: str = "HEAD") -> Optional[str]:
        """Resolve a revision to a commit id."""
        output, code = self._run(['rev-parse', '--verify', '--quiet', f"{rev}^{{commit}}"], cwd=path)
        if code == 0 and output:
            return output
        return None

    # ------------------------------------------------------------------
    # Commit graph queries
    # ------------------------------------------------------------------

    def rev_list(
        self,
        path: str,
        include: str,
        exclude: str,
        merges_only: bool = False,
    ) -> List[str]:
        """
        Commits reachable from include but not from exclude, oldest first.

        Raises:
            GitCommandError: If either ref cannot be resolved
        """
        args = ['rev-list', '--reverse']
        if merges_only:
            args.append('--merges')
        args += [include, f"^{exclude}", '--']
        output, _ = self._run(args, cwd=path, check=True)
        return output.split() if output else []

    def count_ahead(self, path: str, ref: str, base: str) -> int:
        """
        Number of commits on ref that base does not have.

        Raises:
            GitCommandError: If either ref cannot be resolved
        """
        output, _ = self._run(['rev-list', '--count', ref, f"^{base}", '--'], cwd=path, check=True)
        return int(output) if output else 0

    def commit_message(self, path: str, commit: str) -> str:
        """Full message (subject and body) of a single commit."""
        output, _ = self._run(['log', '--format=%B', '-n', '1', commit], cwd=path, check=True)
        return output or ''

    def parent_count(self, path: str, commit: str) -> int:
        """Number of parents of a commit (2+ for merges)."""
        output, _ = self._run(['rev-list', '--parents', '-n', '1', commit], cwd=path, check=True)
        return len(output.split()) - 1 if output else 0

    def has_staged_changes(self, path: str) -> bool:
        """True if the index differs from HEAD."""
        _, code = self._run(['diff', '--cached', '--quiet'], cwd=path)
        return code != 0

    # ------------------------------------------------------------------
    # Working tree operations
    # ------------------------------------------------------------------

    def checkout(self, path: str, branch: str, force: bool = True) -> bool:
        """Switch the working tree to branch, discarding local changes if force."""
        args = ['checkout']
        if force:
            args.append('-f')
        args.append(branch)
        _, code = self._run(args, cwd=path)
        return code == 0

    def merge(self, path: str, ref: str) -> Tuple[bool, Optional[str]]:
        """Merge ref into the current branch with the default message."""
        output, code = self._run(['merge', '--no-edit', ref], cwd=path, capture_stderr=True)
        return code == 0, output

    def merge_abort(self, path: str) -> bool:
        _, code = self._run(['merge', '--abort'], cwd=path)
        return code == 0

    def rebase_abort(self, path: str) -> bool:
        _, code = self._run(['rebase', '--abort'], cwd=path)
        return code == 0

    def cherry_pick(
        self,
        path: str,
        commit: str,
        strategy: str = "recursive",
        preference: Optional[str] = None,
        mainline: Optional[int] = None,
    ) -> Tuple[bool, Optional[str]]:
        """
        Cherry-pick a single commit onto the current branch.

        Args:
            path: Path to git repository
            commit: Commit to replay
            strategy: Merge strategy
            preference: Conflict side preference passed as -X ("ours"/"theirs")
            mainline: Parent number to diff a merge commit against

        Returns:
            Tuple of (success, output)
        """
        args = ['cherry-pick', f"--strategy={strategy}"]
        if preference:
            args += ['-X', preference]
        if mainline:
            args += ['-m', str(mainline)]
        args.append(commit)
        output, code = self._run(args, cwd=path, capture_stderr=True)
        return code == 0, output

    def cherry_pick_continue(self, path: str) -> Tuple[bool, Optional[str]]:
        """Finalize a stopped cherry-pick with the prepared message."""
        output, code = self._run(
            ['cherry-pick', '--continue'],
            cwd=path,
            capture_stderr=True,
            env=NON_INTERACTIVE_ENV,
        )
        return code == 0, output

    def cherry_pick_skip(self, path: str) -> bool:
        _, code = self._run(['cherry-pick', '--skip'], cwd=path)
        return code == 0

    def cherry_pick_abort(self, path: str) -> bool:
        _, code = self._run(['cherry-pick', '--abort'], cwd=path)
        return code == 0

    def add_all(self, path: str) -> bool:
        """Stage every working tree change, conflict markers included."""
        _, code = self._run(['add', '-A'], cwd=path)
        return code == 0

    def amend_message(self, path: str, message: str) -> bool:
        """Replace the message of HEAD, keeping its author."""
        _, code = self._run(['commit', '--amend', '--allow-empty', '-m', message], cwd=path)
        return code == 0

    # ------------------------------------------------------------------
    # Hub transport
    # ------------------------------------------------------------------

    def fetch_all(self, path: str, prune: bool = True) -> Tuple[bool, Optional[str]]:
        """Fetch every hub remote."""
        args = ['fetch', '--all']
        if prune:
            args.append('--prune')
        output, code = self._run(args, cwd=path, capture_stderr=True)
        return code == 0, output

    def push(
        self,
        path: str,
        remote: str = "origin",
        branch: Optional[str] = None,
        set_upstream: bool = False,
    ) -> Tuple[bool, Optional[str]]:
        """
        Push to remote.

        Returns:
            Tuple of (success, output)
        """
        args = ['push']
        if set_upstream:
            args.append('--set-upstream')
        args.append(remote)
        if branch:
            args.append(branch)
        output, code = self._run(args, cwd=path, capture_stderr=True)
        return code == 0, output

    # ------------------------------------------------------------------
    # Trunk (git-svn) transport
    # ------------------------------------------------------------------

    def svn_fetch(self, path: str) -> Tuple[bool, Optional[str]]:
        """Fetch every revision of every Subversion branch."""
        output, code = self._run(['svn', 'fetch', '--fetch-all'], cwd=path, capture_stderr=True)
        return code == 0, output

    def svn_rebase(self, path: str) -> Tuple[bool, Optional[str]]:
        """Rebase the current branch onto its latest Subversion revision."""
        output, code = self._run(['svn', 'rebase'], cwd=path, capture_stderr=True)
        return code == 0, output

    def svn_dcommit(self, path: str) -> Tuple[bool, Optional[str]]:
        """Submit the current branch's new commits to Subversion, keeping authors."""
        output, code = self._run(
            ['svn', 'dcommit', '--add-author-from', '--use-log-author'],
            cwd=path,
            capture_stderr=True,
        )
        return code == 0, output
