"""Preparing a backport: the local mirror and the commits and branches to use."""

from typing import List, Optional, Sequence
import logging

from .errors import HandledError
from .github_client import GithubClient
from .models import BranchChoice, Commit
from .prompts import Prompter
from .utils.git_utils import RepoMirror
from .utils.output import OperationReporter

log = logging.getLogger(__name__)

CLONE_TEXT = "Cloning repository (only first time)"


def maybe_setup_repo(
    mirror: RepoMirror,
    reporter: OperationReporter,
    owner: str,
    repo_name: str,
    username: str,
):
    """Make sure a local mirror of owner/repo_name exists.

    A clone that fails half way is deleted so the next run starts over.
    """
    mirror.verify_authentication()

    if mirror.local_mirror_exists(owner, repo_name):
        return

    op = reporter.start(f"0% {CLONE_TEXT}")
    try:
        mirror.ensure_local_mirror_exists(
            owner,
            repo_name,
            username,
            on_progress=lambda percent: op.update(f"{percent}% {CLONE_TEXT}"),
        )
    except BaseException:
        op.stop()
        mirror.delete_local_mirror(owner, repo_name)
        raise
    op.succeed(CLONE_TEXT)


def get_commit_by_sha(
    github_client: GithubClient,
    reporter: OperationReporter,
    owner: str,
    repo_name: str,
    sha: str,
) -> Commit:
    op = reporter.start()
    try:
        commit = github_client.find_commit_by_sha(owner, repo_name, sha)
    finally:
        op.stop()
    reporter.selected("Select commit", commit.message)
    return commit


def get_commit_by_pull_number(
    github_client: GithubClient,
    reporter: OperationReporter,
    owner: str,
    repo_name: str,
    pull_number: int,
) -> Commit:
    op = reporter.start()
    try:
        commit = github_client.find_commit_by_merged_pull_request(
            owner, repo_name, pull_number
        )
    finally:
        op.stop()
    reporter.selected("Select commit", commit.message)
    return commit


def get_commits_by_prompt(
    github_client: GithubClient,
    prompter: Prompter,
    reporter: OperationReporter,
    owner: str,
    repo_name: str,
    author: Optional[str],
    multiple_commits: bool,
) -> List[Commit]:
    with reporter.operation("Loading commits...") as op:
        commits = github_client.list_commits_by_author(owner, repo_name, author)
        if not commits:
            raise HandledError(
                "There are no commits by you in this repository"
                if author
                else "There are no commits in this repository"
            )
        op.stop()

    return prompter.choose_commits(commits, multiple_commits)


def get_branches_by_prompt(
    prompter: Prompter,
    branches: Sequence[BranchChoice],
    multiple_branches: bool = False,
) -> List[str]:
    if not branches:
        raise HandledError(
            "No branches to backport to. Add them to 'branches' in the project "
            "config or pass --branch."
        )
    return prompter.choose_branches(branches, multiple_branches)
