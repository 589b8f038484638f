"""Config module."""

from typing import Dict, Any
from .models import RepoConfig, UserConfig, JrConfig, ToolConfig

class Config(JrConfig):
    """Config object holding repository, user and tool config.

    Built from the nested dict produced by the config parser.
    """
    def __init__(self, config: Dict[str, Dict[str, Any]]):
        """Initialize with parsed config dict."""
        tool_section = config.get('tool', {})
        super().__init__(
            repo=RepoConfig.model_validate(config.get('repo', {})),
            user=UserConfig.model_validate(config.get('user', {})),
            tool=ToolConfig.model_validate(tool_section.get('pyjr', {})),
        )

def default_config() -> Config:
    """Get default config without reading git or .jr.yaml."""
    return Config({
        'repo': {},
        'user': {},
        'tool': {'pyjr': {}},
    })
