"""Pydantic models for config types."""

import os
from typing import Optional
from pydantic import BaseModel, Field


def default_branch_prefix() -> str:
    """`$USER/`, or `dev/` when USER is not set."""
    user = os.environ.get("USER")
    return f"{user}/" if user else "dev/"


class RepoConfig(BaseModel):
    """Repository configuration."""
    github_remote: str = "origin"
    github_branch_prefix: str = Field(default_factory=default_branch_prefix)
    default_branch: str = "main"
    github_repo_owner: Optional[str] = None
    github_repo_name: Optional[str] = None
    draft: bool = True

    class Config:
        """Pydantic config."""
        extra = "allow"  # Allow extra fields

class UserConfig(BaseModel):
    """User configuration."""
    github_token: Optional[str] = None

    class Config:
        """Pydantic config."""
        extra = "allow"

class ToolConfig(BaseModel):
    """Tool configuration."""
    # Worker threads used to enrich the stack; 0 runs sequentially
    concurrency: int = 8

    class Config:
        """Pydantic config."""
        extra = "allow"

class JrConfig(BaseModel):
    """Full pyjr configuration."""
    repo: RepoConfig = Field(default_factory=RepoConfig)
    user: UserConfig = Field(default_factory=UserConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)

    class Config:
        """Pydantic config."""
        extra = "allow"
