"""
Tests for repository discovery.
"""

from gitsvnsync.utils import find_git_repos


def make_repo(path):
    (path / ".git").mkdir(parents=True)
    return str(path)


class TestFindGitRepos:
    """Tests for find_git_repos."""

    def test_empty_directory(self, tmp_path):
        assert find_git_repos(str(tmp_path)) == []

    def test_finds_nested_repositories_sorted(self, tmp_path):
        beta = make_repo(tmp_path / "beta")
        alpha = make_repo(tmp_path / "alpha")
        deep = make_repo(tmp_path / "group" / "deep")
        (tmp_path / "plain").mkdir()

        assert find_git_repos(str(tmp_path)) == [alpha, beta, deep]

    def test_root_itself(self, tmp_path):
        root = make_repo(tmp_path)

        assert find_git_repos(str(tmp_path)) == [root]

    def test_repository_inside_repository(self, tmp_path):
        outer = make_repo(tmp_path / "outer")
        inner = make_repo(tmp_path / "outer" / "vendor" / "inner")

        assert find_git_repos(str(tmp_path)) == [outer, inner]

    def test_does_not_descend_into_git_dir(self, tmp_path):
        outer = make_repo(tmp_path / "outer")
        (tmp_path / "outer" / ".git" / "modules" / "sub" / ".git").mkdir(parents=True)

        assert find_git_repos(str(tmp_path)) == [outer]

    def test_exclude_patterns(self, tmp_path):
        kept = make_repo(tmp_path / "kept")
        make_repo(tmp_path / "node_modules" / "pkg")
        make_repo(tmp_path / "build-1" / "copy")

        found = find_git_repos(str(tmp_path), exclude_patterns=["node_modules", "build-*"])

        assert found == [kept]

