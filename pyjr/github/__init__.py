"""GitHub interfaces and implementation."""

import os
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

import requests
import yaml
from github.GithubException import GithubException

from ..config.models import JrConfig
from ..typing import CollaboratorError, PreconditionError
from .types import PullRequestInfo

# Get module logger
logger = logging.getLogger(__name__)

# PyGithub raises GithubException for API errors and lets transport errors through
API_ERRORS = (GithubException, requests.RequestException)

# Define protocols for GitHub objects
@runtime_checkable
class GitHubRefProtocol(Protocol):
    """Protocol for GitHub PR base/head references."""
    @property
    def ref(self) -> str:
        """Get the ref name (e.g., 'main', 'jd/zxkvlmno')."""
        ...

    @property
    def sha(self) -> str:
        """Get the commit SHA."""
        ...

@runtime_checkable
class GitHubGitRefProtocol(Protocol):
    """Protocol for git refs of a repository."""
    @property
    def ref(self) -> str:
        """Full ref name, e.g. 'refs/heads/main'."""
        ...

@runtime_checkable
class GitHubPullRequestProtocol(Protocol):
    """Protocol for GitHub pull request objects (real or fake)."""
    @property
    def number(self) -> int:
        ...

    @property
    def state(self) -> str:
        """Get the PR state (open, closed)."""
        ...

    @property
    def html_url(self) -> str:
        ...

    @property
    def draft(self) -> bool:
        ...

    @property
    def base(self) -> GitHubRefProtocol:
        ...

    @property
    def head(self) -> GitHubRefProtocol:
        ...

    def edit(self, title: Optional[str] = None, body: Optional[str] = None,
             base: Optional[str] = None) -> None:
        """Edit the pull request."""
        ...

    def get_diff(self) -> str:
        """Unified diff of the pull request."""
        ...

class GitHubRepoProtocol(Protocol):
    """Protocol for GitHub repository objects."""
    def get_pulls(self, state: str = "open", head: str = "",
                  base: str = "") -> List[GitHubPullRequestProtocol]:
        ...

    def create_pull(self, title: str, body: str, base: str, head: str,
                    draft: bool = False) -> GitHubPullRequestProtocol:
        ...

    def get_git_matching_refs(self, ref: str) -> List[GitHubGitRefProtocol]:
        ...

class PyGithubProtocol(Protocol):
    """Protocol for the main PyGithub object (real or fake)."""
    def get_repo(self, full_name_or_id: str) -> GitHubRepoProtocol:
        ...


def find_github_token(config: Optional[JrConfig] = None) -> Optional[str]:
    """Find GitHub token from config, env var, or gh CLI config."""
    if config is not None and config.user.github_token:
        return config.user.github_token

    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    # Then try gh CLI config at ~/.config/gh/hosts.yml
    gh_config_path = Path.home() / ".config" / "gh" / "hosts.yml"
    try:
        if gh_config_path.exists():
            with open(gh_config_path, "r") as f:
                gh_config = yaml.safe_load(f)
                if gh_config and "github.com" in gh_config:
                    github_config: Dict[str, object] = gh_config["github.com"]
                    token = github_config.get("oauth_token")
                    if isinstance(token, str):
                        return token
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error reading gh CLI config: {e}")
    return None


def to_info(pr: GitHubPullRequestProtocol) -> PullRequestInfo:
    return PullRequestInfo(
        number=pr.number,
        state=pr.state,
        html_url=pr.html_url,
        head=pr.head.ref,
        base=pr.base.ref,
        draft=pr.draft,
    )


class GitHubClient:
    """Pull request operations keyed by head branch name.

    PR lookups are memoized for the lifetime of the client, which is a single
    command invocation. Writes drop the memoized entry for their branch.
    """
    def __init__(self, config: JrConfig, github_client: PyGithubProtocol):
        self.config = config
        self.client = github_client
        self._repo: Optional[GitHubRepoProtocol] = None
        self._pulls: Dict[str, Optional[GitHubPullRequestProtocol]] = {}
        self._lock = threading.Lock()

    @property
    def repo(self) -> GitHubRepoProtocol:
        """Get GitHub repository, loading it once across worker threads."""
        with self._lock:
            return self._load_repo()

    def _load_repo(self) -> GitHubRepoProtocol:
        if self._repo is None:
            owner = self.config.repo.github_repo_owner
            name = self.config.repo.github_repo_name
            if not owner or not name:
                raise CollaboratorError(
                    "GitHub repository unknown: set github_repo_owner/github_repo_name "
                    "or use a GitHub remote"
                )
            try:
                self._repo = self.client.get_repo(f"{owner}/{name}")
            except API_ERRORS as e:
                raise CollaboratorError(f"Failed to load GitHub repo {owner}/{name}: {e}") from e
        return self._repo

    def get_pull_request_for_branch(self, branch: str) -> Optional[GitHubPullRequestProtocol]:
        """Most recent PR (any state) whose head is branch, or None."""
        with self._lock:
            if branch in self._pulls:
                return self._pulls[branch]
        owner = self.config.repo.github_repo_owner
        logger.info(f"> github find PR for {branch}")
        try:
            pulls = self.repo.get_pulls(state="all", head=f"{owner}:{branch}")
        except API_ERRORS as e:
            raise CollaboratorError(f"Failed to list pull requests for {branch}: {e}") from e
        pr = pulls[0] if pulls else None
        with self._lock:
            self._pulls[branch] = pr
        return pr

    def get_pull_request_info(self, branch: str) -> Optional[PullRequestInfo]:
        pr = self.get_pull_request_for_branch(branch)
        return to_info(pr) if pr is not None else None

    def _forget(self, branch: str) -> None:
        with self._lock:
            self._pulls.pop(branch, None)

    def find_branches_with_prefix(self, prefix: str) -> List[str]:
        logger.info(f"> github list branches {prefix}*")
        try:
            refs = self.repo.get_git_matching_refs(f"heads/{prefix}")
        except API_ERRORS as e:
            raise CollaboratorError(f"Failed to list branches with prefix {prefix}: {e}") from e
        return [r.ref[len("refs/heads/"):] for r in refs if r.ref.startswith("refs/heads/")]

    def pr_is_open(self, branch: str) -> bool:
        info = self.get_pull_request_info(branch)
        return info is not None and info.is_open

    def pr_url(self, branch: str) -> Optional[str]:
        info = self.get_pull_request_info(branch)
        return info.html_url if info is not None else None

    def pr_create(self, branch: str, base: str, title: str, body: str) -> str:
        logger.info(f"> github create {branch} -> {base} : {title}")
        try:
            pr = self.repo.create_pull(
                title=title, body=body, base=base, head=branch, draft=self.config.repo.draft
            )
        except API_ERRORS as e:
            raise CollaboratorError(f"Failed to create PR for {branch}: {e}") from e
        self._forget(branch)
        return pr.html_url

    def pr_edit(self, branch: str, base: str) -> str:
        pr = self.get_pull_request_for_branch(branch)
        if pr is None:
            raise PreconditionError(f"No PR found for PR branch {branch}")
        logger.info(f"> github update #{pr.number} base -> {base}")
        try:
            pr.edit(base=base)
        except API_ERRORS as e:
            raise CollaboratorError(f"Failed to update PR #{pr.number}: {e}") from e
        self._forget(branch)
        return pr.html_url

    def pr_diff(self, branch: str) -> Optional[str]:
        pr = self.get_pull_request_for_branch(branch)
        if pr is None:
            return None
        logger.info(f"> github diff #{pr.number}")
        try:
            return pr.get_diff()
        except API_ERRORS + (ValueError,) as e:
            raise CollaboratorError(f"Failed to fetch diff of PR #{pr.number}: {e}") from e
