"""Config parser logic."""

import os
import re
import shlex
from typing import Dict, Optional, Protocol, Tuple, Any
import logging
import yaml

from ...typing import CollaboratorError

# Get module logger
logger = logging.getLogger(__name__)

RepoConfig = Dict[str, Any]  # Use Any since yaml can return various types
Config = Dict[str, RepoConfig]

CONFIG_FILE = '.jr.yaml'

# git config key -> (section, field)
GIT_CONFIG_KEYS: Dict[str, Tuple[str, str]] = {
    'jr.githubBranchPrefix': ('repo', 'github_branch_prefix'),
    'jr.defaultBranch': ('repo', 'default_branch'),
    'jr.githubToken': ('user', 'github_token'),
}

GITHUB_REMOTE_RE = re.compile(
    r'github\.com[:/](?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$'
)


class GitCommandRunner(Protocol):
    def run_cmd(self, command: str) -> str:
        ...


def parse_github_remote(url: str) -> Optional[Tuple[str, str]]:
    """Extract (owner, name) from an SSH or HTTPS GitHub remote URL."""
    match = GITHUB_REMOTE_RE.search(url.strip())
    if not match:
        return None
    return match.group('owner'), match.group('name')


def read_git_config(git_cmd: GitCommandRunner, key: str) -> Optional[str]:
    """Value of a git config key, None when unset."""
    try:
        value = git_cmd.run_cmd(f"config --get {key}").strip()
    except CollaboratorError:
        # `git config --get` exits 1 for missing keys
        return None
    return value or None


def save_git_config(git_cmd: GitCommandRunner, values: Dict[str, str]) -> None:
    """Store jr.* keys in the repository's git config."""
    for key, value in values.items():
        if key not in GIT_CONFIG_KEYS:
            raise ValueError(f"Unknown config key: {key}")
        git_cmd.run_cmd(f"config {key} {shlex.quote(value)}")


def parse_config(git_cmd: GitCommandRunner) -> Config:
    """Parse config from defaults, .jr.yaml, git config and the remote URL."""
    config: Config = {
        'repo': {},
        'user': {},
        'tool': {
            'pyjr': {}
        }
    }

    # .jr.yaml lives at the repository root
    try:
        root = git_cmd.run_cmd("rev-parse --show-toplevel").strip()
    except CollaboratorError:
        root = os.getcwd()
    try:
        with open(os.path.join(root, CONFIG_FILE), 'r') as f:
            logger.debug(f"Found {CONFIG_FILE}, loading...")
            file_config = yaml.safe_load(f)
            logger.debug(f"Config from {CONFIG_FILE}: {file_config}")
            if file_config:
                for section in ('repo', 'user'):
                    if isinstance(file_config.get(section), dict):
                        config[section].update(file_config[section])
                if isinstance(file_config.get('tool'), dict):
                    config['tool']['pyjr'].update(file_config['tool'])
    except FileNotFoundError:
        logger.debug(f"No {CONFIG_FILE} found, using defaults")

    # Keys written by `jr init` take precedence over the file
    for key, (section, name) in GIT_CONFIG_KEYS.items():
        value = read_git_config(git_cmd, key)
        if value is not None:
            config[section][name] = value

    if not config['repo'].get('github_repo_owner') or not config['repo'].get('github_repo_name'):
        remote = config['repo'].get('github_remote', 'origin')
        try:
            remote_url = git_cmd.run_cmd(f"remote get-url {remote}")
        except CollaboratorError as e:
            logger.warning(f"Failed to read URL of remote {remote}: {e}")
            return config
        parsed = parse_github_remote(remote_url)
        if parsed is None:
            logger.warning(f"Remote {remote} is not a GitHub URL: {remote_url}")
            return config
        owner, name = parsed
        if not config['repo'].get('github_repo_owner'):
            config['repo']['github_repo_owner'] = owner
        if not config['repo'].get('github_repo_name'):
            config['repo']['github_repo_name'] = name

    return config
