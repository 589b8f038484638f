"""Local changes enriched with the state of their remote branch and PR."""

import concurrent.futures
import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config.models import JrConfig
from .diff_utils import diffs_equal
from .typing import (
    AlreadyMergedError, Change, CollaboratorError, CommitID, GitInterface,
    GithubInterface, JujutsuInterface, SyncStatus, TrunkNotPushedError,
)
from .util import branch_name

logger = logging.getLogger(__name__)


@dataclass
class CommitInfo:
    """A change plus everything known about its PR branch and base branch."""
    change: Change
    commit_diff: str
    pr_branch: str
    base_branch: str
    pr_tip: Optional[CommitID] = None
    pr_diff: Optional[str] = None
    base_tip: Optional[CommitID] = None
    pr_contains_base: bool = False

    def content_changed(self) -> bool:
        """Local diff differs from the PR diff, ignoring index hash lines."""
        if self.pr_diff is None:
            return True
        return not diffs_equal(self.commit_diff, self.pr_diff)

    def base_moved(self) -> bool:
        return not self.pr_contains_base

    def status(self) -> SyncStatus:
        """Status of this change in isolation, before propagation."""
        if self.pr_tip is None or self.base_tip is None or self.pr_diff is None:
            return SyncStatus.UNKNOWN
        if self.content_changed():
            return SyncStatus.CHANGED
        if self.base_moved():
            return SyncStatus.RESTACK
        return SyncStatus.SYNCED

    @classmethod
    def enrich(cls, change: Change, parent: Optional[Change], trunk: Change, trunk_branch: str,
               config: JrConfig, git: GitInterface, github: GithubInterface,
               strict: bool = True) -> 'CommitInfo':
        """Gather remote facts for change.

        parent is the next change down the stack, or None when change sits
        directly on trunk (or on an ancestor of trunk), in which case the PR
        targets trunk_branch.

        With strict=False a failure to fetch the PR diff is logged and the
        diff treated as missing; otherwise it propagates.
        """
        commit_diff = git.get_commit_diff(change.commit_id)
        if git.is_ancestor(change.commit_id, trunk.commit_id):
            raise AlreadyMergedError(
                f"Commit {change.commit_id} is an ancestor of trunk; this commit is already merged."
            )

        prefix = config.repo.github_branch_prefix
        pr_branch = branch_name(change.change_id, prefix)
        pr_tip = git.get_remote_branch_tip(pr_branch)

        try:
            pr_diff = github.pr_diff(pr_branch)
        except CollaboratorError as e:
            if strict:
                raise
            logger.warning(f"Could not fetch PR diff for {pr_branch}: {e}")
            pr_diff = None

        if parent is None:
            base_branch = trunk_branch
        else:
            base_branch = branch_name(parent.change_id, prefix)
        base_tip = git.get_remote_branch_tip(base_branch)

        pr_contains_base = False
        if pr_tip is not None and base_tip is not None:
            pr_contains_base = git.is_ancestor(base_tip, pr_tip)

        info = cls(
            change=change,
            commit_diff=commit_diff,
            pr_branch=pr_branch,
            base_branch=base_branch,
            pr_tip=pr_tip,
            pr_diff=pr_diff,
            base_tip=base_tip,
            pr_contains_base=pr_contains_base,
        )
        logger.debug(
            f"{change.short_id(8)}: pr={pr_branch}@{pr_tip} base={base_branch}@{base_tip} "
            f"contains_base={pr_contains_base}"
        )
        return info


def resolve_trunk_branch(config: JrConfig, jj: JujutsuInterface, trunk: Change) -> str:
    """Remote branch at trunk, preferring the configured default branch."""
    names = jj.get_remote_branch_names(trunk.commit_id)
    if not names:
        raise TrunkNotPushedError("Trunk has no remote branch. Push trunk to remote first.")
    if config.repo.default_branch in names:
        return config.repo.default_branch
    return names[0]


def enrich_all(changes: Sequence[Change], trunk: Change, config: JrConfig,
               jj: JujutsuInterface, git: GitInterface, github: GithubInterface,
               strict: bool = True) -> List[CommitInfo]:
    """Enrich a stack (newest first), returning results in the same order."""
    if not changes:
        return []
    trunk_branch = resolve_trunk_branch(config, jj, trunk)
    parents: List[Optional[Change]] = [*changes[1:], None]

    concurrency = config.tool.concurrency
    if concurrency > 0 and len(changes) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=concurrency) as executor:
            futures: Sequence[Future[CommitInfo]] = [
                executor.submit(CommitInfo.enrich, change, parent, trunk, trunk_branch,
                                config, git, github, strict)
                for change, parent in zip(changes, parents)
            ]
            concurrent.futures.wait(futures)
            # result() re-raises the first failure in stack order
            return [future.result() for future in futures]

    return [
        CommitInfo.enrich(change, parent, trunk, trunk_branch, config, git, github, strict)
        for change, parent in zip(changes, parents)
    ]
