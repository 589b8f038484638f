"""Adapter classes to wrap PyGithub objects with our protocol interfaces."""

from typing import List, Optional
import logging

from github import Github
from github.Repository import Repository
from github.PullRequest import PullRequest as PyGithubPullRequest
from github.GitRef import GitRef
from github.GithubObject import NotSet

from . import (
    PyGithubProtocol,
    GitHubRepoProtocol,
    GitHubPullRequestProtocol,
    GitHubRefProtocol,
    GitHubGitRefProtocol,
)
from .types import DIFF_MEDIA_TYPE, PyGithubRequesterInternal, parse_diff_response

logger = logging.getLogger(__name__)


class PyGithubPullRequestAdapter(GitHubPullRequestProtocol):
    """Adapter for PyGithub PullRequest objects."""

    def __init__(self, pr: PyGithubPullRequest) -> None:
        self._pr = pr

    @property
    def number(self) -> int:
        return self._pr.number

    @property
    def state(self) -> str:
        return self._pr.state

    @property
    def html_url(self) -> str:
        return self._pr.html_url

    @property
    def draft(self) -> bool:
        return bool(self._pr.draft)

    @property
    def base(self) -> GitHubRefProtocol:
        return self._pr.base

    @property
    def head(self) -> GitHubRefProtocol:
        return self._pr.head

    def edit(self, title: Optional[str] = None, body: Optional[str] = None,
             base: Optional[str] = None) -> None:
        """Edit the pull request."""
        # Convert None to NotSet for PyGithub
        self._pr.edit(
            title=title if title is not None else NotSet,
            body=body if body is not None else NotSet,
            base=base if base is not None else NotSet
        )

    def get_diff(self) -> str:
        """Fetch the PR as a unified diff using the diff media type."""
        # PyGithub has no public call for alternate media types
        requester: PyGithubRequesterInternal = getattr(self._pr, '_requester')
        _headers, data = requester.requestJsonAndCheck(
            "GET", self._pr.url, headers={"Accept": DIFF_MEDIA_TYPE}
        )
        return parse_diff_response(data)


class PyGithubGitRefAdapter(GitHubGitRefProtocol):
    """Adapter for PyGithub GitRef objects."""

    def __init__(self, ref: GitRef) -> None:
        self._ref = ref

    @property
    def ref(self) -> str:
        return self._ref.ref


class PyGithubRepoAdapter(GitHubRepoProtocol):
    """Adapter for PyGithub Repository objects."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def get_pulls(self, state: str = "open", head: str = "",
                  base: str = "") -> List[GitHubPullRequestProtocol]:
        """Get pull requests with optional filtering."""
        # Convert empty strings to NotSet for PyGithub
        pulls = self._repo.get_pulls(
            state=state,
            head=head if head else NotSet,
            base=base if base else NotSet
        )
        return [PyGithubPullRequestAdapter(pr) for pr in pulls]

    def create_pull(self, title: str, body: str, base: str, head: str,
                    draft: bool = False) -> GitHubPullRequestProtocol:
        """Create a new pull request."""
        pr = self._repo.create_pull(
            title=title,
            body=body,
            base=base,
            head=head,
            draft=draft
        )
        return PyGithubPullRequestAdapter(pr)

    def get_git_matching_refs(self, ref: str) -> List[GitHubGitRefProtocol]:
        """Refs whose name starts with `ref` (e.g. "heads/jd/")."""
        return [PyGithubGitRefAdapter(r) for r in self._repo.get_git_matching_refs(ref)]


class PyGithubAdapter(PyGithubProtocol):
    """Adapter for the main PyGithub object."""

    def __init__(self, github: Github) -> None:
        self._github = github

    def get_repo(self, full_name_or_id: str) -> GitHubRepoProtocol:
        """Get a repository by full name."""
        return PyGithubRepoAdapter(self._github.get_repo(full_name_or_id))
