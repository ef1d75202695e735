"""
Shared fixtures for git-svn-sync tests.

Real-git fixtures build a repository that looks like a git-svn checkout
from the sync's point of view: the trunk mirror is a plain ref under
refs/remotes/svn/ and the hub is a local bare repository named origin.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gitsvnsync.infra.git_client import GitClient


class GitRepo:
    """Thin test helper around a repository on disk."""

    def __init__(self, path):
        self.path = Path(path)

    def __str__(self):
        return str(self.path)

    def git(self, *args):
        """Run git here and return stripped stdout; fail the test on error."""
        result = subprocess.run(
            ["git"] + list(args),
            cwd=self.path,
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
        return result.stdout.strip()

    def head(self, rev="HEAD"):
        return self.git("rev-parse", rev)

    def commit(self, filename, content, message):
        """Write (or delete, if content is None) a file and commit it."""
        path = self.path / filename
        if content is None:
            self.git("rm", "-q", filename)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
            self.git("add", "-A")
        self.git("commit", "-q", "-m", message)
        return self.head()

    def merge_feature(self, target, feature, filename, content, message):
        """Commit on a feature branch off target and merge it back with --no-ff."""
        self.git("checkout", "-q", "-b", feature, target)
        self.commit(filename, content, f"Work on {feature}")
        self.git("checkout", "-q", target)
        self.git("merge", "-q", "--no-ff", feature, "-m", message)
        return self.head()

    def show(self, rev, filename):
        return self.git("show", f"{rev}:{filename}")

    def subjects(self, rev, count):
        """Subjects of the newest `count` commits on rev, newest first."""
        return self.git("log", "--format=%s", "-n", str(count), rev).splitlines()


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    """Isolate git from the user's configuration."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.delenv("GIT_EDITOR", raising=False)
    return home


@pytest.fixture
def hub(tmp_path, git_env):
    """A bare repository standing in for the hub remote."""
    path = tmp_path / "hub.git"
    path.mkdir()
    repo = GitRepo(path)
    repo.git("init", "-q", "--bare")
    return repo


@pytest.fixture
def work(tmp_path, git_env, hub):
    """
    A working repository with one base commit on 'scratch'.

    origin points at the bare hub; no lineage refs exist yet.
    """
    path = tmp_path / "work"
    path.mkdir()
    repo = GitRepo(path)
    repo.git("init", "-q")
    repo.git("checkout", "-q", "-b", "scratch")
    repo.git("config", "user.name", "Test User")
    repo.git("config", "user.email", "test@example.com")
    repo.git("config", "commit.gpgsign", "false")
    repo.commit("a.txt", "line1\nline2\nline3\n", "Base commit")
    repo.git("remote", "add", "origin", str(hub))
    return repo


@pytest.fixture
def synced_main(work):
    """
    'main' fully bootstrapped: svn/main, inter/main, main and origin/main
    all point at the base commit.
    """
    base = work.head()
    work.git("update-ref", "refs/remotes/svn/main", base)
    work.git("branch", "inter/main", base)
    work.git("branch", "main", base)
    work.git("push", "-q", "origin", "main")
    work.git("fetch", "-q", "origin")
    return work


@pytest.fixture
def mock_git_client():
    """A GitClient mock where every lineage exists and nothing is pending."""
    client = MagicMock(spec=GitClient)
    client.is_inside_work_tree.return_value = True
    client.svn_url.return_value = "https://svn.example.com/repo"
    client.remote_url.return_value = "git@example.com:team/repo.git"
    client.list_refs.return_value = {}
    client.fetch_all.return_value = (True, "")
    client.svn_fetch.return_value = (True, "")
    client.ref_exists.return_value = True
    client.remote_branch_exists.return_value = True
    client.create_branch.return_value = True
    client.push.return_value = (True, "")
    client.rev_list.return_value = []
    client.count_ahead.return_value = 0
    client.checkout.return_value = True
    client.merge.return_value = (True, "")
    client.svn_rebase.return_value = (True, "")
    client.svn_dcommit.return_value = (True, "")
    client.parent_count.return_value = 2
    client.cherry_pick.return_value = (True, "")
    client.cherry_pick_continue.return_value = (True, "")
    client.cherry_pick_skip.return_value = True
    client.add_all.return_value = True
    client.amend_message.return_value = True
    client.has_staged_changes.return_value = False
    client.commit_message.return_value = "Merge branch 'feature'"
    client.rev_parse.return_value = "f00d"
    return client
