"""Local stack discovery and status propagation."""

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..typing import Change, GitInterface, JujutsuInterface, SyncStatus, TopologyError

if TYPE_CHECKING:
    from ..commit import CommitInfo

logger = logging.getLogger(__name__)


def validate_stack(jj: JujutsuInterface, git: GitInterface,
                   changes: Sequence[Change], trunk: Change) -> None:
    """Check that changes (newest first) form a single chain rooted on trunk."""
    for i, change in enumerate(changes):
        if len(change.parent_change_ids) != 1:
            raise TopologyError(
                f"Branch topology invalid: change {change.short_id(8)} has "
                f"{len(change.parent_change_ids)} parents; only linear stacks are supported"
            )
        parent_id = change.parent_change_ids[0]
        if i + 1 < len(changes):
            expected = changes[i + 1].change_id
            if parent_id != expected:
                raise TopologyError(
                    f"Branch topology invalid: parent of {change.short_id(8)} is "
                    f"{parent_id[:8]}, expected {expected[:8]}"
                )
            continue

        # Bottom of the stack must sit on trunk or one of its ancestors
        if parent_id == trunk.change_id:
            continue
        parent = jj.get_change(parent_id)
        if not git.is_ancestor(parent.commit_id, trunk.commit_id):
            raise TopologyError(
                f"Branch topology invalid: bottom change {change.short_id(8)} "
                f"is not based on trunk"
            )


def build_stack(jj: JujutsuInterface, git: GitInterface, revision: str,
                trunk: Optional[Change] = None) -> List[Change]:
    """Changes from revision down to trunk, newest first.

    Empty when revision is already an ancestor of trunk.
    """
    if trunk is None:
        trunk = jj.get_trunk()
    changes = jj.get_stack_ancestors(revision)
    logger.debug(f"Stack for {revision}: {[str(c) for c in changes]}")
    validate_stack(jj, git, changes, trunk)
    return changes


def get_status_stack(jj: JujutsuInterface, git: GitInterface, revision: str = "@",
                     trunk: Optional[Change] = None) -> List[Change]:
    """Stack shown by `jr status`: from the single head above revision down to trunk."""
    heads = jj.get_stack_heads(revision)
    if not heads:
        return []
    if len(heads) == 1:
        return build_stack(jj, git, heads[0].commit_id, trunk)
    logger.warning(
        f"Multiple stack heads detected. Showing stack from {revision} to trunk."
    )
    return build_stack(jj, git, revision, trunk)


def propagate_statuses(statuses: Sequence[SyncStatus]) -> List[SyncStatus]:
    """Cascade restacks upward through a stack.

    Input and output are newest first. Walking from the bottom, any change
    that is not synced forces every synced change above it to RESTACK.
    """
    result = list(statuses)
    needs_restack_below = False
    for i in reversed(range(len(result))):
        if result[i] is SyncStatus.SYNCED:
            if needs_restack_below:
                result[i] = SyncStatus.RESTACK
        else:
            needs_restack_below = True
    return result


def compute_statuses(infos: Sequence['CommitInfo']) -> List[SyncStatus]:
    """Final status of every enriched change, newest first."""
    return propagate_statuses([info.status() for info in infos])
