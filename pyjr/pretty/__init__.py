"""Pretty formatting utilities for CLI output."""

import sys
from typing import IO, Iterable, List, Optional

from ..review import StatusLine

SHORT_ID_LENGTH = 4


def status_line(line: StatusLine) -> List[str]:
    """`<symbol> <short id> <title>`, then the PR URL indented when there is one."""
    title = line.change.message.title or "(no description)"
    marker = " @" if line.is_current else ""
    out = [f"{line.status.symbol} {line.change.short_id(SHORT_ID_LENGTH)} {title}{marker}"]
    if line.pr_url:
        out.append(f"  {line.pr_url}")
    return out


def format_status(lines: Iterable[StatusLine]) -> str:
    rendered: List[str] = []
    for line in lines:
        rendered.extend(status_line(line))
    return "\n".join(rendered)


def print_status(lines: Iterable[StatusLine], file: Optional[IO[str]] = None) -> None:
    """Print status lines to file (default stdout)."""
    if file is None:
        file = sys.stdout
    text = format_status(lines)
    if text:
        print(text, file=file)
