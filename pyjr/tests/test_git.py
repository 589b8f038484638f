"""Unit tests for the GitPython-backed git wrapper."""

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from git.exc import GitCommandError

from pyjr.git import RealGit
from pyjr.typing import CollaboratorError
from pyjr.tests.utils import make_config


@pytest.fixture
def repo() -> MagicMock:
    return MagicMock()


@pytest.fixture
def real_git(repo: MagicMock) -> RealGit:
    g = RealGit(make_config(), path="/repo")
    g._repo = repo
    return g


class TestRemoteBranchTip:
    """Tests for reading remote-tracking refs."""

    def test_found(self, real_git: RealGit, repo: MagicMock) -> None:
        repo.git.for_each_ref.return_value = "refs/remotes/origin/test/abc " + "1" * 40
        assert real_git.get_remote_branch_tip("test/abc") == "1" * 40
        repo.git.for_each_ref.assert_called_once_with(
            "--format=%(refname) %(objectname)", "refs/remotes/origin/test/abc"
        )

    def test_missing(self, real_git: RealGit, repo: MagicMock) -> None:
        repo.git.for_each_ref.return_value = ""
        assert real_git.get_remote_branch_tip("test/abc") is None

    def test_nested_refs_ignored(self, real_git: RealGit, repo: MagicMock) -> None:
        """for-each-ref also lists refs below the given name."""
        repo.git.for_each_ref.return_value = "refs/remotes/origin/test/abc/old " + "2" * 40
        assert real_git.get_remote_branch_tip("test/abc") is None


class TestObjects:
    """Tests for tree, commit and diff commands."""

    def test_get_tree(self, real_git: RealGit, repo: MagicMock) -> None:
        repo.git.rev_parse.return_value = "t" * 40 + "\n"
        assert real_git.get_tree("c" * 40) == "t" * 40
        repo.git.rev_parse.assert_called_once_with("c" * 40 + "^{tree}")

    def test_create_commit_keeps_multiline_message(self, real_git: RealGit, repo: MagicMock) -> None:
        repo.git.commit_tree.return_value = "n" * 40
        commit = real_git.create_commit("t" * 40, ["a" * 40, "b" * 40], "Title\n\nBody")
        assert commit == "n" * 40
        repo.git.commit_tree.assert_called_once_with(
            "t" * 40, "-p", "a" * 40, "-p", "b" * 40, "-m", "Title\n\nBody"
        )

    def test_push(self, real_git: RealGit, repo: MagicMock) -> None:
        real_git.push_commit_to_branch("n" * 40, "test/abc")
        repo.git.push.assert_called_once_with("origin", "n" * 40 + ":refs/heads/test/abc")

    def test_diff(self, real_git: RealGit, repo: MagicMock) -> None:
        repo.git.diff_tree.return_value = "diff --git a/f b/f"
        assert real_git.get_commit_diff("c" * 40) == "diff --git a/f b/f"
        repo.git.diff_tree.assert_called_once_with("-p", "--no-commit-id", "c" * 40)

    def test_is_ancestor(self, real_git: RealGit, repo: MagicMock) -> None:
        repo.is_ancestor.return_value = True
        assert real_git.is_ancestor("a" * 40, "b" * 40)
        repo.is_ancestor.assert_called_once_with("a" * 40, "b" * 40)

    def test_find_branches_with_prefix(self, real_git: RealGit, repo: MagicMock) -> None:
        repo.git.for_each_ref.return_value = "origin/test/abc\norigin/test/def\n"
        assert real_git.find_branches_with_prefix("test/") == ["test/abc", "test/def"]
        repo.git.for_each_ref.assert_called_once_with(
            "--format=%(refname:short)", "refs/remotes/origin/test/*"
        )


class TestErrors:
    def test_git_failure_wrapped(self, real_git: RealGit, repo: MagicMock) -> None:
        repo.git.push.side_effect = GitCommandError("push", 1, stderr="rejected")
        with pytest.raises(CollaboratorError) as exc_info:
            real_git.push_commit_to_branch("n" * 40, "test/abc")
        assert "rejected" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, GitCommandError)

    def test_repo_opened_once_across_threads(self, repo: MagicMock) -> None:
        def slow_open(*args: object, **kwargs: object) -> MagicMock:
            time.sleep(0.05)
            return repo
        repo.git.diff_tree.return_value = ""
        g = RealGit(make_config(), path="/repo")

        with patch("pyjr.git.git.Repo", side_effect=slow_open) as open_repo:
            with ThreadPoolExecutor(max_workers=4) as executor:
                list(executor.map(g.get_commit_diff, ["a" * 40, "b" * 40, "c" * 40, "d" * 40]))

        open_repo.assert_called_once_with("/repo", search_parent_directories=True)

    def test_not_a_repository(self, tmp_path: Path) -> None:
        g = RealGit(make_config(), path=str(tmp_path))
        with pytest.raises(CollaboratorError) as exc_info:
            g.get_tree("c" * 40)
        assert "Not in a git repository" in str(exc_info.value)
