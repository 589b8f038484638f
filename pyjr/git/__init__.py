"""Git interfaces and implementation."""

import os
import shlex
import logging
import threading
from typing import List, Optional
import git
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from ..typing import CollaboratorError, CommitID, TreeID
from ..config.models import JrConfig

# Get module logger
logger = logging.getLogger(__name__)


class RealGit:
    """Git implementation backed by GitPython."""
    def __init__(self, config: JrConfig, path: Optional[str] = None):
        """Initialize with config and the directory to search for a repository from."""
        self.config: JrConfig = config
        self.path = path or os.getcwd()
        self._repo: Optional[git.Repo] = None
        self._lock = threading.Lock()

    @property
    def repo(self) -> git.Repo:
        # First touched from enrichment worker threads
        with self._lock:
            if self._repo is None:
                try:
                    self._repo = git.Repo(self.path, search_parent_directories=True)
                except (InvalidGitRepositoryError, NoSuchPathError):
                    raise CollaboratorError(f"Not in a git repository: {self.path}")
            return self._repo

    @property
    def remote(self) -> str:
        return self.config.repo.github_remote

    def run_cmd(self, command: str) -> str:
        """Run a git command given as a single shell-quoted string."""
        cmd_str = command.strip()
        logger.info(f"> git {cmd_str}")
        cmd_parts = shlex.split(cmd_str)
        return self._git(cmd_parts[0], *cmd_parts[1:])

    def _git(self, command: str, *args: str) -> str:
        method = getattr(self.repo.git, command.replace('-', '_'))
        try:
            result = method(*args)
        except GitCommandError as e:
            raise CollaboratorError(f"Git command failed: {e}") from e
        return result if isinstance(result, str) else str(result)

    def get_tree(self, commit_id: CommitID) -> TreeID:
        return TreeID(self.run_cmd(f"rev-parse {commit_id}^{{tree}}").strip())

    def get_remote_branch_tip(self, branch: str) -> Optional[CommitID]:
        """Commit of the remote-tracking ref for branch, None if there is none."""
        ref = f"refs/remotes/{self.remote}/{branch}"
        output = self.run_cmd(f"for-each-ref '--format=%(refname) %(objectname)' {ref}")
        # for-each-ref also matches refs nested below the pattern
        for line in output.splitlines():
            name, _, sha = line.strip().partition(" ")
            if name == ref:
                return CommitID(sha)
        return None

    def create_commit(self, tree: TreeID, parents: List[CommitID], message: str) -> CommitID:
        """Write a commit object without touching any ref or the working copy."""
        logger.info(f"> git commit-tree {tree} {' '.join('-p ' + p for p in parents)}")
        args: List[str] = [tree]
        for parent in parents:
            args += ["-p", parent]
        # Passed as a separate argument so multi-line messages survive intact
        args += ["-m", message]
        return CommitID(self._git("commit-tree", *args).strip())

    def push_commit_to_branch(self, commit_id: CommitID, branch: str) -> None:
        self.run_cmd(f"push {self.remote} {commit_id}:refs/heads/{branch}")

    def is_ancestor(self, ancestor: CommitID, descendant: CommitID) -> bool:
        logger.debug(f"> git merge-base --is-ancestor {ancestor} {descendant}")
        try:
            return self.repo.is_ancestor(ancestor, descendant)
        except GitCommandError as e:
            raise CollaboratorError(f"Git command failed: {e}") from e

    def get_commit_diff(self, commit_id: CommitID) -> str:
        return self.run_cmd(f"diff-tree -p --no-commit-id {commit_id}")

    def find_branches_with_prefix(self, prefix: str) -> List[str]:
        """Remote branches whose name starts with prefix, remote name stripped."""
        output = self.run_cmd(
            f"for-each-ref --format=%(refname:short) refs/remotes/{self.remote}/{prefix}*"
        )
        strip = f"{self.remote}/"
        return [
            line[len(strip):] if line.startswith(strip) else line
            for line in output.splitlines() if line.strip()
        ]
