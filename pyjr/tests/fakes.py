"""In-memory jj, git and GitHub doubles sharing one simulated repository."""

import hashlib
import itertools
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from pyjr.typing import (
    Change, ChangeID, CollaboratorError, CommitID, CommitMessage, TreeID,
)

Files = Dict[str, str]

LOCAL_HASH_LENGTH = 7
GITHUB_HASH_LENGTH = 10


def content_hash(text: Optional[str], length: int) -> str:
    if text is None:
        return "0" * length
    return hashlib.sha1(text.encode()).hexdigest()[:length]


def render_diff(old: Files, new: Files, hash_length: int) -> str:
    """Unified diff between two trees of single-line files."""
    out: List[str] = []
    for path in sorted(set(old) | set(new)):
        before, after = old.get(path), new.get(path)
        if before == after:
            continue
        out.append(f"diff --git a/{path} b/{path}")
        out.append(
            f"index {content_hash(before, hash_length)}..{content_hash(after, hash_length)} 100644"
        )
        out.append(f"--- {'a/' + path if before is not None else '/dev/null'}")
        out.append(f"+++ {'b/' + path if after is not None else '/dev/null'}")
        out.append(f"@@ -{1 if before is not None else 0} +{1 if after is not None else 0} @@")
        if before is not None:
            out.append(f"-{before}")
        if after is not None:
            out.append(f"+{after}")
    return "\n".join(out) + "\n" if out else ""


@dataclass
class FakeCommit:
    commit_id: CommitID
    tree: TreeID
    parents: List[CommitID]
    message: str
    seq: int


@dataclass
class FakeChange:
    change_id: ChangeID
    parents: List[ChangeID]
    delta: Files
    description: str
    commit_id: CommitID = CommitID("")


@dataclass
class FakePullRequest:
    number: int
    head: str
    base: str
    title: str
    body: str
    draft: bool = True
    state: str = "open"

    @property
    def url(self) -> str:
        return f"https://github.com/owner/repo/pull/{self.number}"


@dataclass
class FakeWorld:
    """Commits, trees, jj changes and remote branches of one colocated repository."""
    trees: Dict[TreeID, Files] = field(default_factory=dict)
    commits: Dict[CommitID, FakeCommit] = field(default_factory=dict)
    changes: Dict[ChangeID, FakeChange] = field(default_factory=dict)
    remote: Dict[str, CommitID] = field(default_factory=dict)
    trunk: ChangeID = ChangeID("")
    working_copy: ChangeID = ChangeID("")
    _seq: "itertools.count[int]" = field(default_factory=itertools.count)

    # Trees and commits

    def store_tree(self, files: Files) -> TreeID:
        digest = hashlib.sha1(repr(sorted(files.items())).encode()).hexdigest()
        tree = TreeID(digest)
        self.trees[tree] = dict(files)
        return tree

    def new_commit(self, tree: TreeID, parents: List[CommitID], message: str) -> CommitID:
        seq = next(self._seq)
        digest = hashlib.sha1(f"{tree}{parents}{message}{seq}".encode()).hexdigest()
        commit_id = CommitID(digest)
        self.commits[commit_id] = FakeCommit(commit_id, tree, list(parents), message, seq)
        return commit_id

    def files(self, commit_id: CommitID) -> Files:
        return self.trees[self.commits[commit_id].tree]

    def ancestors(self, commit_id: CommitID) -> Set[CommitID]:
        """commit_id and every commit reachable from it."""
        seen: Set[CommitID] = set()
        todo = [commit_id]
        while todo:
            current = todo.pop()
            if current in seen:
                continue
            seen.add(current)
            todo.extend(self.commits[current].parents)
        return seen

    def merge_base(self, a: CommitID, b: CommitID) -> Optional[CommitID]:
        common = self.ancestors(a) & self.ancestors(b)
        best = [
            c for c in common
            if not any(c != d and c in self.ancestors(d) for d in common)
        ]
        if not best:
            return None
        return max(best, key=lambda c: self.commits[c].seq)

    # jj changes

    def add_trunk(self, change_id: str, files: Files, branch: str = "main") -> ChangeID:
        """Create the trunk change and push it to branch."""
        cid = ChangeID(change_id)
        self.changes[cid] = FakeChange(cid, [], dict(files), "Initial commit")
        self._rewrite(cid)
        self.trunk = cid
        self.working_copy = cid
        self.remote[branch] = self.changes[cid].commit_id
        return cid

    def add_change(self, change_id: str, parents: Iterable[str], delta: Files,
                   description: str) -> ChangeID:
        cid = ChangeID(change_id)
        self.changes[cid] = FakeChange(cid, [ChangeID(p) for p in parents], dict(delta), description)
        self._rewrite(cid)
        self.working_copy = cid
        return cid

    def edit(self, change_id: str, delta: Files) -> None:
        """Amend a change's own files, rebasing its descendants like jj does."""
        change = self.changes[ChangeID(change_id)]
        change.delta.update(delta)
        self._rewrite(change.change_id)

    def describe(self, change_id: str, description: str) -> None:
        change = self.changes[ChangeID(change_id)]
        change.description = description
        self._rewrite(change.change_id)

    def children(self, change_id: ChangeID) -> List[ChangeID]:
        return [c.change_id for c in self.changes.values() if change_id in c.parents]

    def _rewrite(self, change_id: ChangeID) -> None:
        change = self.changes[change_id]
        parent_commits = [self.changes[p].commit_id for p in change.parents]
        files: Files = dict(self.files(parent_commits[0])) if parent_commits else {}
        files.update(change.delta)
        tree = self.store_tree(files)
        change.commit_id = self.new_commit(tree, parent_commits, change.description)
        for child in self.children(change_id):
            self._rewrite(child)

    def trunk_ancestor_changes(self) -> Set[ChangeID]:
        trunk_commits = self.ancestors(self.changes[self.trunk].commit_id)
        return {c.change_id for c in self.changes.values() if c.commit_id in trunk_commits}

    def merge_into_trunk(self, change_id: str) -> None:
        """Make change the new trunk, as if its PR had been merged."""
        cid = ChangeID(change_id)
        self.trunk = cid
        self.remote["main"] = self.changes[cid].commit_id

    def to_change(self, change_id: ChangeID) -> Change:
        change = self.changes[change_id]
        return Change(
            change_id=change.change_id,
            commit_id=change.commit_id,
            message=CommitMessage.parse(change.description),
            parent_change_ids=list(change.parents),
        )


class FakeJujutsu:
    def __init__(self, world: FakeWorld):
        self.world = world

    def _resolve(self, revision: str) -> ChangeID:
        world = self.world
        if revision == "@":
            return world.working_copy
        if revision == "trunk()":
            return world.trunk
        for change in world.changes.values():
            if revision in (change.change_id, change.commit_id) or change.change_id.startswith(revision):
                return change.change_id
        raise CollaboratorError(f"Revision `{revision}` doesn't exist")

    def get_change(self, revision: str) -> Change:
        return self.world.to_change(self._resolve(revision))

    def get_trunk(self) -> Change:
        return self.world.to_change(self.world.trunk)

    def get_stack_ancestors(self, revision: str) -> List[Change]:
        excluded = self.world.trunk_ancestor_changes()
        result: List[Change] = []
        todo = [self._resolve(revision)]
        seen: Set[ChangeID] = set()
        while todo:
            current = todo.pop(0)
            if current in seen or current in excluded:
                continue
            seen.add(current)
            result.append(self.world.to_change(current))
            todo.extend(self.world.changes[current].parents)
        return result

    def get_stack_heads(self, revision: str) -> List[Change]:
        excluded = self.world.trunk_ancestor_changes()
        descendants: List[ChangeID] = []
        todo = [self._resolve(revision)]
        while todo:
            current = todo.pop(0)
            if current in descendants:
                continue
            descendants.append(current)
            todo.extend(self.world.children(current))
        candidates = [d for d in descendants if d not in excluded]
        heads = [
            d for d in candidates
            if not any(child in candidates for child in self.world.children(d))
        ]
        return [self.world.to_change(h) for h in heads]

    def get_remote_branch_names(self, commit_id: CommitID) -> List[str]:
        return sorted(b for b, c in self.world.remote.items() if c == commit_id)


class FakeGit:
    def __init__(self, world: FakeWorld):
        self.world = world
        self.created: List[CommitID] = []
        self.pushes: List[str] = []

    def get_tree(self, commit_id: CommitID) -> TreeID:
        return self.world.commits[commit_id].tree

    def get_remote_branch_tip(self, branch: str) -> Optional[CommitID]:
        return self.world.remote.get(branch)

    def create_commit(self, tree: TreeID, parents: List[CommitID], message: str) -> CommitID:
        commit_id = self.world.new_commit(tree, parents, message)
        self.created.append(commit_id)
        return commit_id

    def push_commit_to_branch(self, commit_id: CommitID, branch: str) -> None:
        self.world.remote[branch] = commit_id
        self.pushes.append(branch)

    def is_ancestor(self, ancestor: CommitID, descendant: CommitID) -> bool:
        return ancestor in self.world.ancestors(descendant)

    def get_commit_diff(self, commit_id: CommitID) -> str:
        commit = self.world.commits[commit_id]
        old = self.world.files(commit.parents[0]) if commit.parents else {}
        return render_diff(old, self.world.trees[commit.tree], LOCAL_HASH_LENGTH)

    def find_branches_with_prefix(self, prefix: str) -> List[str]:
        return sorted(b for b in self.world.remote if b.startswith(prefix))


class FakeGithub:
    def __init__(self, world: FakeWorld):
        self.world = world
        self.pulls: Dict[str, FakePullRequest] = {}
        self.calls: List[str] = []
        self.fail_diff = False
        self._numbers = itertools.count(1)

    def find_branches_with_prefix(self, prefix: str) -> List[str]:
        return sorted(b for b in self.world.remote if b.startswith(prefix))

    def pr_is_open(self, branch: str) -> bool:
        pr = self.pulls.get(branch)
        return pr is not None and pr.state == "open"

    def pr_url(self, branch: str) -> Optional[str]:
        pr = self.pulls.get(branch)
        return pr.url if pr is not None else None

    def pr_create(self, branch: str, base: str, title: str, body: str) -> str:
        if branch not in self.world.remote or base not in self.world.remote:
            raise CollaboratorError(f"Validation failed: head {branch} or base {base} missing")
        self.calls.append(f"create {branch} -> {base}")
        pr = FakePullRequest(next(self._numbers), branch, base, title, body)
        self.pulls[branch] = pr
        return pr.url

    def pr_edit(self, branch: str, base: str) -> str:
        self.calls.append(f"edit {branch} -> {base}")
        pr = self.pulls[branch]
        pr.base = base
        return pr.url

    def pr_diff(self, branch: str) -> Optional[str]:
        pr = self.pulls.get(branch)
        if pr is None:
            return None
        if self.fail_diff:
            raise CollaboratorError(f"Failed to fetch diff of PR #{pr.number}: 502 Bad Gateway")
        head = self.world.remote[pr.head]
        base = self.world.remote[pr.base]
        merge_base = self.world.merge_base(base, head)
        old = self.world.files(merge_base) if merge_base else {}
        return render_diff(old, self.world.files(head), GITHUB_HASH_LENGTH)
