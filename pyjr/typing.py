"""Common types used across the codebase."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, NewType

# NewTypes for the identifiers flowing between jj, git and GitHub
ChangeID = NewType('ChangeID', str)
CommitID = NewType('CommitID', str)
TreeID = NewType('TreeID', str)


@dataclass
class CommitMessage:
    """Commit description split into a title line and an optional body."""
    title: Optional[str] = None
    body: Optional[str] = None

    @classmethod
    def parse(cls, description: str) -> 'CommitMessage':
        """Split a raw description: first line is the title, the rest the body."""
        lines = description.splitlines()
        title = lines[0].strip() if lines else ""
        body = "\n".join(lines[1:]).strip()
        return cls(title=title or None, body=body or None)

    def full(self) -> str:
        """Title and body joined by a blank line."""
        parts = [p for p in (self.title, self.body) if p]
        return "\n\n".join(parts)


@dataclass
class Change:
    """A local jj change as seen at the start of an invocation."""
    change_id: ChangeID
    commit_id: CommitID
    message: CommitMessage = field(default_factory=CommitMessage)
    parent_change_ids: List[ChangeID] = field(default_factory=list)

    def full_message(self) -> str:
        return self.message.full()

    def short_id(self, length: int = 4) -> str:
        return self.change_id[:length]

    def __str__(self) -> str:
        return f"{self.short_id(8)} {self.message.title or '(no description)'}"


class SyncStatus(Enum):
    """Synchronization state of one change relative to its PR and base."""
    UNKNOWN = "?"
    CHANGED = "✗"
    RESTACK = "↻"
    SYNCED = "✓"

    @property
    def symbol(self) -> str:
        return self.value


# Exceptions

class JrError(Exception):
    """Base class for every error pyjr reports to the user."""


class TopologyError(JrError):
    """The local stack is not a linear chain rooted on trunk."""


class PreconditionError(JrError):
    """The requested operation does not apply to the current state."""


class AlreadyMergedError(PreconditionError):
    """The target change is already an ancestor of trunk."""


class TrunkNotPushedError(PreconditionError):
    """No remote branch points at the trunk commit."""


class StaleParentError(JrError):
    """An ancestor in the stack is not synced with its PR."""


class NoChangesError(JrError):
    """There is nothing to push."""


class CollaboratorError(JrError):
    """A call to jj, git or GitHub failed."""


# Collaborator interfaces

class JujutsuInterface(Protocol):
    """Read-only view of the jj repository."""

    def get_change(self, revision: str) -> Change:
        ...

    def get_trunk(self) -> Change:
        ...

    def get_stack_ancestors(self, revision: str) -> List[Change]:
        """Ancestors of revision that are not ancestors of trunk, newest first."""
        ...

    def get_stack_heads(self, revision: str) -> List[Change]:
        """Heads of the descendants of revision that are not ancestors of trunk."""
        ...

    def get_remote_branch_names(self, commit_id: CommitID) -> List[str]:
        """Names of remote branches pointing at commit_id, without the remote prefix."""
        ...


class GitInterface(Protocol):
    """Git object operations used to build and publish PR branches."""

    def get_tree(self, commit_id: CommitID) -> TreeID:
        ...

    def get_remote_branch_tip(self, branch: str) -> Optional[CommitID]:
        """Commit at the remote branch, None if the branch does not exist."""
        ...

    def create_commit(self, tree: TreeID, parents: List[CommitID], message: str) -> CommitID:
        ...

    def push_commit_to_branch(self, commit_id: CommitID, branch: str) -> None:
        ...

    def is_ancestor(self, ancestor: CommitID, descendant: CommitID) -> bool:
        ...

    def get_commit_diff(self, commit_id: CommitID) -> str:
        ...

    def find_branches_with_prefix(self, prefix: str) -> List[str]:
        ...


class GithubInterface(Protocol):
    """Pull request operations keyed by head branch name."""

    def find_branches_with_prefix(self, prefix: str) -> List[str]:
        ...

    def pr_is_open(self, branch: str) -> bool:
        ...

    def pr_url(self, branch: str) -> Optional[str]:
        ...

    def pr_create(self, branch: str, base: str, title: str, body: str) -> str:
        """Open a PR and return its URL."""
        ...

    def pr_edit(self, branch: str, base: str) -> str:
        """Retarget the PR to base and return its URL."""
        ...

    def pr_diff(self, branch: str) -> Optional[str]:
        """Unified diff of the PR, None if there is no PR for branch."""
        ...
