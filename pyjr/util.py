# Number of change id characters used in PR branch names
CHANGE_ID_LENGTH = 8


def branch_name(change_id: str, prefix: str) -> str:
    """Remote branch name for a change: prefix plus the first 8 id characters."""
    return f"{prefix}{change_id[:CHANGE_ID_LENGTH]}"
