"""Shared utilities for pyjr tests."""
from pyjr.config import Config

PREFIX = "test/"

# jj change ids; the first 8 characters become the PR branch suffix
TRUNK = "zzzzzzzzmainmainmainmainmainmain"
ALPHA = "alphaaaakkkkkkkkkkkkkkkkkkkkkkkk"
BETA = "betaaaaallllllllllllllllllllllll"
GAMMA = "gammaaaammmmmmmmmmmmmmmmmmmmmmmm"

ALPHA_BRANCH = PREFIX + ALPHA[:8]
BETA_BRANCH = PREFIX + BETA[:8]
GAMMA_BRANCH = PREFIX + GAMMA[:8]


def make_config(concurrency: int = 0) -> Config:
    """Config for the in-memory repository owned by owner/repo."""
    return Config({
        'repo': {
            'github_branch_prefix': PREFIX,
            'github_repo_owner': 'owner',
            'github_repo_name': 'repo',
        },
        'tool': {'pyjr': {'concurrency': concurrency}},
    })
