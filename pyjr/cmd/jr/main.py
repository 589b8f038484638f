"""CLI entry point."""

import os
import sys
import click
import logging
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar
from click import Context

from ... import setup_logging
from ...config import Config
from ...config.config_parser import parse_config, save_git_config
from ...git import RealGit
from ...github import GitHubClient, find_github_token
from ...jujutsu import RealJujutsu
from ...pretty import print_status
from ...review import StackedReview
from ...typing import CollaboratorError, JrError, NoChangesError

# Get module logger
logger = logging.getLogger(__name__)

T = TypeVar('T')

# Exit code when an operation had nothing to push
EXIT_NO_CHANGES = 2


class AliasedGroup(click.Group):
    """Command group with support for aliases."""

    def __init__(self, name: Optional[str] = None, commands: Optional[Dict[str, click.Command]] = None, **attrs: Any) -> None:
        """Initialize with aliases map."""
        super().__init__(name, commands, **attrs)
        self.aliases: Dict[str, str] = {}

    def add_alias(self, alias: str, command: str) -> None:
        """Add an alias for a command."""
        self.aliases[alias] = command

    def get_command(self, ctx: Context, cmd_name: str) -> Optional[click.Command]:
        """Get a command by name, supporting aliases."""
        if cmd_name in self.aliases:
            cmd_name = self.aliases[cmd_name]
        return super().get_command(ctx, cmd_name)


def directory_option(f: Callable[..., T]) -> Callable[..., T]:
    return click.option('-C', '--directory', type=click.Path(exists=True, file_okay=False, dir_okay=True),
                        help='Run as if jr was started in DIRECTORY instead of the current working directory')(f)

def verbose_option(f: Callable[..., T]) -> Callable[..., T]:
    return click.option('-v', '--verbose', count=True,
                        help="Increase verbosity (can be used multiple times for more verbosity)")(f)

def revision_option(f: Callable[..., T]) -> Callable[..., T]:
    return click.option('-r', '--revision', default="@", show_default=True,
                        help="The jj revision to operate on")(f)


def setup_git(directory: Optional[str] = None) -> Tuple[Config, RealGit]:
    """Setup git command and config."""
    if directory:
        os.chdir(directory)
    bootstrap = RealGit(Config({}))
    config = Config(parse_config(bootstrap))
    return config, RealGit(config)


def setup_review(directory: Optional[str] = None) -> StackedReview:
    """Build the review engine with real jj, git and GitHub collaborators."""
    config, git_cmd = setup_git(directory)

    from ...github.adapters import PyGithubAdapter
    from github import Auth, Github

    token = find_github_token(config)
    if not token:
        raise CollaboratorError(
            "No GitHub token found. Try one of:\n"
            "1. Run 'jr init' or set git config jr.githubToken\n"
            "2. Set GITHUB_TOKEN env var\n"
            "3. Log in with 'gh auth login'"
        )
    github = GitHubClient(config, PyGithubAdapter(Github(auth=Auth.Token(token))))
    return StackedReview(config, RealJujutsu(config), git_cmd, github)


def run(action: Callable[[], T]) -> T:
    """Run a command body, turning pyjr errors into one log line and an exit code."""
    try:
        return action()
    except NoChangesError as e:
        logger.error(f"{e}")
        sys.exit(EXIT_NO_CHANGES)
    except JrError as e:
        logger.error(f"{e}")
        sys.exit(1)


@click.group(cls=AliasedGroup, invoke_without_command=True)
@click.pass_context
def cli(ctx: Context) -> None:
    """jr - Stacked pull requests for Jujutsu changes on GitHub."""
    ctx.ensure_object(dict)
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)

@cli.command(name="init", help="Configure jr for this repository")
@directory_option
@verbose_option
def init(directory: Optional[str], verbose: int) -> None:
    """Init command."""
    setup_logging(verbose)

    def action() -> None:
        config, git_cmd = setup_git(directory)
        prefix = click.prompt("GitHub branch prefix", default=config.repo.github_branch_prefix)
        default_branch = click.prompt("Default branch", default=config.repo.default_branch)
        save_git_config(git_cmd, {
            'jr.githubBranchPrefix': prefix,
            'jr.defaultBranch': default_branch,
        })
        click.echo("Configuration saved to .git/config")

    run(action)

@cli.command(name="status", help="Show sync status of every change in the current stack")
@directory_option
@verbose_option
@revision_option
def status(directory: Optional[str] = None, verbose: int = 0, revision: str = "@") -> None:
    """Status command."""
    setup_logging(verbose)
    lines = run(lambda: setup_review(directory).status(revision))
    print_status(lines)

@cli.command(name="create", help="Create a PR for a change whose parents already have PRs")
@directory_option
@verbose_option
@revision_option
def create(directory: Optional[str], verbose: int, revision: str) -> None:
    """Create command."""
    setup_logging(verbose)
    url = run(lambda: setup_review(directory).create(revision))
    click.echo(f"Created PR: {url}")

@cli.command(name="update", help="Push local changes of a change to its existing PR")
@directory_option
@verbose_option
@revision_option
@click.option('-m', '--message', required=True, help="Message of the commit added to the PR branch")
def update(directory: Optional[str], verbose: int, revision: str, message: str) -> None:
    """Update command."""
    setup_logging(verbose)
    url = run(lambda: setup_review(directory).update(revision, message))
    click.echo(f"Updated PR: {url}")

@cli.command(name="restack", help="Merge a moved base branch into an unchanged PR")
@directory_option
@verbose_option
@revision_option
def restack(directory: Optional[str], verbose: int, revision: str) -> None:
    """Restack command."""
    setup_logging(verbose)
    url = run(lambda: setup_review(directory).restack(revision))
    click.echo(f"Updated PR: {url}")


def main() -> None:
    """Main entry point."""
    cli.add_alias('st', 'status')
    cli.add_alias('up', 'update')
    cli(obj={})

if __name__ == "__main__":
    main()
