import click
from typing import Optional, Tuple

from ..app import AppContext
from ..errors import HandledError
from ..models import BackportRequest
from .. import selection


def resolve_commits(app: AppContext, sha: Optional[str], pr: Optional[int], all: bool, username: str):
    project = app.project
    if sha is not None:
        return [
            selection.get_commit_by_sha(
                app.github, app.reporter, project.owner, project.repo_name, sha
            )
        ]
    if pr is not None:
        return [
            selection.get_commit_by_pull_number(
                app.github, app.reporter, project.owner, project.repo_name, pr
            )
        ]

    author = None if (all or project.all) else username
    return selection.get_commits_by_prompt(
        app.github,
        app.prompter,
        app.reporter,
        project.owner,
        project.repo_name,
        author,
        project.multiple_commits,
    )


def resolve_branches(app: AppContext, branches: Tuple[str, ...]):
    if branches:
        return list(branches)
    project = app.project
    return selection.get_branches_by_prompt(
        app.prompter, project.branches, project.multiple_branches
    )


@click.command()
@click.pass_obj
@click.option("--sha", "sha", type=str, help="Commit to backport.")
@click.option("--pr", "pr", type=int, help="Merged pull request to backport.")
@click.option(
    "-b",
    "--branch",
    "branches",
    multiple=True,
    help="Branch to backport to. Can be given multiple times.",
)
@click.option(
    "-l",
    "--label",
    "labels",
    multiple=True,
    help="Label to add to the pull requests, in addition to the configured ones.",
)
@click.option(
    "--all",
    "all",
    is_flag=True,
    default=False,
    help="List commits by all authors, not only your own.",
)
@click.option(
    "--username",
    "username",
    type=str,
    envvar="BACKPORT_USERNAME",
    help="GitHub username whose fork receives the feature branches.",
)
def run(
    app: AppContext,
    sha: Optional[str],
    pr: Optional[int],
    branches: Tuple[str, ...],
    labels: Tuple[str, ...],
    all: bool,
    username: Optional[str],
):
    """Backport commits to one or more branches and open a pull request per branch.

    \b
    Examples:
        backporter run                       # choose commits and branches interactively
        backporter run --pr 1234 -b 6.x -b 6.3
        backporter run --sha 5a9c2e1 -b 6.x -l backport
    """
    if sha is not None and pr is not None:
        raise click.UsageError("--sha and --pr cannot be used together.")

    project = app.project
    username = app.get_username(username)

    commits = resolve_commits(app, sha, pr, all, username)
    target_branches = resolve_branches(app, branches)

    request = BackportRequest(
        owner=project.owner,
        repo_name=project.repo_name,
        commits=tuple(commits),
        target_branches=tuple(target_branches),
        username=username,
        labels=frozenset(project.labels) | frozenset(labels),
    )

    selection.maybe_setup_repo(
        app.mirror, app.reporter, request.owner, request.repo_name, username
    )

    pull_requests = app.create_engine().backport_to_branches(request)
    if not pull_requests:
        raise HandledError("No pull requests were created.")
