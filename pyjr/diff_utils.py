"""Diff canonicalization."""

import re

# Object hash header; its abbreviation length depends on who rendered the diff
INDEX_LINE_RE = re.compile(r'^index [0-9a-f]+\.\.[0-9a-f]+( [0-9]+)?$')


def normalize_diff(diff: str) -> str:
    """Strip `index <a>..<b> [mode]` header lines so diffs compare by content.

    Every other line is kept verbatim. Lines are re-joined with '\\n', so a
    trailing newline does not survive normalization.
    """
    return "\n".join(
        line for line in diff.splitlines() if not INDEX_LINE_RE.match(line)
    )


def diffs_equal(a: str, b: str) -> bool:
    return normalize_diff(a) == normalize_diff(b)
