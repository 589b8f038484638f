"""Create, update and restack PRs for a stack of jj changes."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..commit import CommitInfo, enrich_all
from ..config.models import JrConfig
from ..stack import build_stack, compute_statuses, get_status_stack
from ..typing import (
    AlreadyMergedError, Change, CollaboratorError, CommitID, GitInterface, GithubInterface,
    JujutsuInterface, NoChangesError, PreconditionError, StaleParentError,
    SyncStatus, TopologyError,
)

logger = logging.getLogger(__name__)

RESTACK_MESSAGE = "Restack"


@dataclass
class StatusLine:
    """One row of `jr status` output."""
    change: Change
    status: SyncStatus
    pr_url: Optional[str] = None
    is_current: bool = False


class StackedReview:
    """Keeps each change's PR branch in sync with the local stack.

    Every write operation reads and checks the whole stack below the target
    before it writes anything, then writes at most one commit, pushes one
    branch and makes one PR call.
    """
    def __init__(self, config: JrConfig, jj: JujutsuInterface, git: GitInterface,
                 github: GithubInterface):
        self.config = config
        self.jj = jj
        self.git = git
        self.github = github

    def _check_not_merged(self, change: Change, trunk: Change) -> None:
        if self.git.is_ancestor(change.commit_id, trunk.commit_id):
            raise AlreadyMergedError(
                f"Commit {change.commit_id} is an ancestor of trunk; this commit is already merged."
            )

    def _check_ancestors(self, ancestors: Sequence[CommitInfo], action: str) -> None:
        """Require every ancestor (newest first) to be synced, reporting the lowest offender."""
        statuses = compute_statuses(ancestors)
        for info, status in reversed(list(zip(ancestors, statuses))):
            if status is SyncStatus.SYNCED:
                continue
            logger.debug(f"Ancestor {info.change.short_id(8)} is {status.name}")
            if status is SyncStatus.UNKNOWN:
                raise StaleParentError(
                    "Parent commit has no PR branch. Create parent PR first (bottom-up)."
                )
            if status is SyncStatus.CHANGED:
                raise StaleParentError(
                    f"Cannot {action}: parent PR {info.pr_branch} is out of date. "
                    "Update parent PRs first (starting from the bottom of the stack)."
                )
            raise StaleParentError(
                f"Cannot {action}: parent PR needs restacking. Its base branch has been "
                "updated. Run 'jr restack' on the parent first."
            )

    def _load(self, change: Change, action: str) -> CommitInfo:
        """Enrich the stack ending at change and gate on its ancestors."""
        trunk = self.jj.get_trunk()
        self._check_not_merged(change, trunk)
        stack = build_stack(self.jj, self.git, change.commit_id, trunk)
        if not stack or stack[0].change_id != change.change_id:
            raise TopologyError(
                f"Branch topology invalid: {change.short_id(8)} is not the top of its stack"
            )
        infos = enrich_all(stack, trunk, self.config, self.jj, self.git, self.github, strict=True)
        self._check_ancestors(infos[1:], action)
        return infos[0]

    def _require_open_pr(self, info: CommitInfo) -> Tuple[CommitID, CommitID]:
        """PR tip and base tip of an existing, open PR."""
        if info.pr_tip is None:
            raise PreconditionError(
                f"PR branch {info.pr_branch} does not exist. Use 'jr create' to create a new PR."
            )
        if not self.github.pr_is_open(info.pr_branch):
            raise PreconditionError(
                f"No open PR found for PR branch {info.pr_branch}. "
                "The PR may have been closed or merged."
            )
        if info.base_tip is None:
            raise PreconditionError(f"Base branch {info.base_branch} does not exist")
        return info.pr_tip, info.base_tip

    def _publish(self, info: CommitInfo, parents: List[CommitID], message: str) -> CommitID:
        tree = self.git.get_tree(info.change.commit_id)
        commit = self.git.create_commit(tree, parents, message)
        logger.info(f"Created commit {commit} for {info.pr_branch}")
        self.git.push_commit_to_branch(commit, info.pr_branch)
        return commit

    def create(self, revision: str = "@") -> str:
        """Open a PR for revision on top of its base branch. Returns the PR URL."""
        change = self.jj.get_change(revision)
        if not change.message.title:
            raise PreconditionError(
                "Cannot create PR: commit has empty description. "
                "Add a description with 'jj describe'."
            )
        info = self._load(change, "create PR")

        if info.pr_tip is not None:
            if self.git.get_tree(info.pr_tip) == self.git.get_tree(change.commit_id):
                raise PreconditionError(
                    f"PR branch {info.pr_branch} already exists and is up to date."
                )
            raise PreconditionError(
                f"PR branch {info.pr_branch} already exists with different content. "
                "Use 'jr update -m \"message\"' to update it."
            )
        if info.base_tip is None:
            raise PreconditionError(f"Base branch {info.base_branch} does not exist")

        self._publish(info, [info.base_tip], change.full_message())
        return self.github.pr_create(
            info.pr_branch, info.base_branch,
            change.message.title, change.message.body or "",
        )

    def update(self, revision: str, message: str) -> str:
        """Push the local content of revision to its PR as a new commit. Returns the PR URL."""
        if not message.strip():
            raise PreconditionError("Update message must not be empty")
        info = self._load(self.jj.get_change(revision), "update PR")
        pr_tip, base_tip = self._require_open_pr(info)

        content_changed = info.content_changed()
        base_moved = info.base_moved()
        if not content_changed:
            if base_moved:
                raise NoChangesError(
                    "No changes detected in this commit; only its base moved. "
                    "Use 'jr restack' instead."
                )
            raise NoChangesError("No changes detected")

        parents = [pr_tip, base_tip] if base_moved else [pr_tip]
        self._publish(info, parents, message)
        return self.github.pr_edit(info.pr_branch, info.base_branch)

    def restack(self, revision: str = "@") -> str:
        """Merge the moved base into an unchanged PR. Returns the PR URL."""
        info = self._load(self.jj.get_change(revision), "restack PR")
        pr_tip, base_tip = self._require_open_pr(info)

        if info.content_changed():
            raise PreconditionError(
                "Cannot restack: commit has local changes.\n"
                "Use 'jr update -m \"<message>\"' to update with your changes."
            )
        if not info.base_moved():
            raise NoChangesError("Base hasn't changed; no need to restack")

        self._publish(info, [pr_tip, base_tip], RESTACK_MESSAGE)
        return self.github.pr_edit(info.pr_branch, info.base_branch)

    def _status_url(self, info: CommitInfo) -> Optional[str]:
        try:
            return self.github.pr_url(info.pr_branch)
        except CollaboratorError as e:
            logger.warning(f"Could not look up PR for {info.pr_branch}: {e}")
            return None

    def status(self, revision: str = "@") -> List[StatusLine]:
        """Status of every change in the stack around revision, newest first."""
        trunk = self.jj.get_trunk()
        stack = get_status_stack(self.jj, self.git, revision, trunk)
        if not stack:
            return []
        current = self.jj.get_change(revision).change_id
        infos = enrich_all(stack, trunk, self.config, self.jj, self.git, self.github, strict=False)
        statuses = compute_statuses(infos)
        return [
            StatusLine(
                change=info.change,
                status=status,
                pr_url=self._status_url(info),
                is_current=info.change.change_id == current,
            )
            for info, status in zip(infos, statuses)
        ]
