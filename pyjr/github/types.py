"""Types for GitHub API responses."""

from typing import Any, Dict, Optional, Protocol, Tuple
from pydantic import BaseModel

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"


class PullRequestInfo(BaseModel):
    """The subset of a pull request pyjr reads."""
    number: int
    state: str
    html_url: str
    head: str
    base: str
    draft: bool = False

    @property
    def is_open(self) -> bool:
        return self.state == "open"


class PyGithubRequesterInternal(Protocol):
    """Protocol for PyGithub's internal requester object."""
    def requestJsonAndCheck(
        self,
        verb: str,
        url: str,
        parameters: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        input: Optional[Any] = None
    ) -> Tuple[Dict[str, Any], Any]:
        """Returns (headers, data)."""
        ...


def parse_diff_response(data: Any) -> str:
    """Extract the diff text from a requester response.

    The requester hands back non-JSON bodies as {"data": text}, and None for
    an empty body.
    """
    if data is None:
        return ""
    if isinstance(data, dict) and isinstance(data.get("data"), str):
        return data["data"]
    if isinstance(data, str):
        return data
    raise ValueError(f"Unexpected diff response: {type(data).__name__}")
