"""Jujutsu (jj) interfaces and implementation."""

import os
import logging
import subprocess
from typing import List, Optional

from ..typing import Change, ChangeID, CollaboratorError, CommitID, CommitMessage
from ..config.models import JrConfig

# Get module logger
logger = logging.getLogger(__name__)

FIELD_COUNT = 4

# Description goes last because it is the only field that can contain newlines
CHANGE_TEMPLATE = (
    'commit_id ++ "\\0" ++ change_id ++ "\\0" ++ '
    'parents.map(|p| p.change_id()).join(",") ++ "\\0" ++ '
    'description ++ "\\0"'
)

REMOTE_BOOKMARKS_TEMPLATE = (
    'remote_bookmarks.map(|b| b.name() ++ "@" ++ b.remote()).join("\\n")'
)


def stack_ancestors_revset(revision: str) -> str:
    return f"ancestors({revision}) ~ ancestors(trunk())"


def stack_heads_revset(revision: str) -> str:
    return f"heads(descendants({revision}) ~ ancestors(trunk()))"


def parse_changes(output: str) -> List[Change]:
    """Parse the output of `jj log -T CHANGE_TEMPLATE`, preserving order."""
    fields = output.split("\0")
    # Every record ends with a separator, so the last element is the remainder
    remainder = fields.pop()
    if remainder.strip():
        raise CollaboratorError(f"Unexpected jj output: trailing {remainder!r}")
    if len(fields) % FIELD_COUNT != 0:
        raise CollaboratorError(
            f"Unexpected jj output format: {len(fields)} fields is not a multiple of {FIELD_COUNT}"
        )

    changes: List[Change] = []
    for i in range(0, len(fields), FIELD_COUNT):
        commit_id, change_id, parents, description = fields[i:i + FIELD_COUNT]
        changes.append(Change(
            change_id=ChangeID(change_id.strip()),
            commit_id=CommitID(commit_id.strip()),
            message=CommitMessage.parse(description),
            parent_change_ids=[ChangeID(p) for p in parents.split(",") if p],
        ))
    return changes


class RealJujutsu:
    """jj implementation that shells out to the jj CLI."""
    def __init__(self, config: JrConfig, path: Optional[str] = None):
        self.config = config
        self.path = path or os.getcwd()

    def run_cmd(self, *args: str) -> str:
        logger.info(f"> jj {' '.join(args)}")
        try:
            result = subprocess.run(
                ["jj", "--color=never", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise CollaboratorError("jj executable not found on PATH") from e
        except subprocess.CalledProcessError as e:
            raise CollaboratorError(f"jj command failed: {e.stderr.strip()}") from e
        return result.stdout

    def log(self, revset: str) -> List[Change]:
        return parse_changes(self.run_cmd("log", "-r", revset, "--no-graph", "-T", CHANGE_TEMPLATE))

    def get_change(self, revision: str) -> Change:
        changes = self.log(revision)
        if len(changes) != 1:
            raise CollaboratorError(
                f"Revision {revision} resolved to {len(changes)} changes, expected exactly one"
            )
        return changes[0]

    def get_trunk(self) -> Change:
        return self.get_change("trunk()")

    def get_stack_ancestors(self, revision: str) -> List[Change]:
        return self.log(stack_ancestors_revset(revision))

    def get_stack_heads(self, revision: str) -> List[Change]:
        return self.log(stack_heads_revset(revision))

    def get_remote_branch_names(self, commit_id: CommitID) -> List[str]:
        """Bookmarks on the configured remote that point at commit_id."""
        output = self.run_cmd(
            "log", "-r", commit_id, "--no-graph", "-T", REMOTE_BOOKMARKS_TEMPLATE
        )
        remote = self.config.repo.github_remote
        names: List[str] = []
        for line in output.splitlines():
            name, _, bookmark_remote = line.strip().rpartition("@")
            if name and bookmark_remote == remote:
                names.append(name)
        return names
