"""The backport engine.

For every target branch, in order:

    1. reset the local mirror and check out a fresh feature branch
    2. cherry-pick each commit, waiting for the operator on conflicts
    3. push the feature branch to the operator's fork
    4. open a pull request (and label it)

Branches are processed one at a time because they all share the single
working tree of the local mirror.
"""

from enum import Enum
from typing import List, Optional
import logging

import click

from .errors import AbortedError, ConflictError, HandledError
from .github_client import GithubClient
from .models import BackportRequest, Commit, PullRequestRef
from .prompts import Prompter
from .utils import naming
from .utils.git_utils import RepoMirror
from .utils.output import (
    OperationReporter,
    echo_handled_error,
    echo_unexpected_error,
)

log = logging.getLogger(__name__)


class PickState(str, Enum):
    PICKING = "picking"
    CLEAN = "clean"
    CONFLICTED = "conflicted"
    AWAITING_CONFIRMATION = "awaiting confirmation"
    RESOLVED = "resolved"
    ABORTED = "aborted"


class ConflictResolutionLoop:
    """Cherry-picks one commit and drives the operator through conflicts.

    States:
        PICKING -> CLEAN | CONFLICTED
        CONFLICTED -> AWAITING_CONFIRMATION
        AWAITING_CONFIRMATION -> RESOLVED | ABORTED | AWAITING_CONFIRMATION

    The confirmation is asked again, without cherry-picking again, for as
    long as the working tree is dirty. Only a ConflictError from the
    cherry-pick enters the loop; any other error propagates unchanged.
    """

    def __init__(
        self,
        mirror: RepoMirror,
        prompter: Prompter,
        reporter: OperationReporter,
    ):
        self.mirror = mirror
        self.prompter = prompter
        self.reporter = reporter

    def run(self, owner: str, repo_name: str, commit: Commit) -> PickState:
        """Apply commit to the checked out branch.

        Returns:
            PickState.CLEAN or PickState.RESOLVED.

        Raises:
            AbortedError: If the operator declined to resolve the conflict.
        """
        state = PickState.PICKING
        conflict: Optional[ConflictError] = None
        prompts = 0

        while True:
            log.debug(f"{naming.short_sha(commit.sha)}: {state.value}")

            if state is PickState.PICKING:
                op = self.reporter.start(
                    f"Cherry-picking commit {naming.short_reference(commit)}"
                )
                try:
                    self.mirror.cherry_pick(owner, repo_name, commit.sha)
                except ConflictError as e:
                    op.fail(
                        f"Cherry-picking failed. Please resolve conflicts in: {e.repo_path}"
                    )
                    conflict = e
                    state = PickState.CONFLICTED
                except BaseException:
                    op.fail()
                    raise
                else:
                    op.succeed()
                    state = PickState.CLEAN

            elif state is PickState.CONFLICTED:
                log.debug(f"Conflict output: {conflict.stderr}")
                state = PickState.AWAITING_CONFIRMATION

            elif state is PickState.AWAITING_CONFIRMATION:
                prompts += 1
                if not self.prompter.confirm_conflict_resolved():
                    state = PickState.ABORTED
                elif self.mirror.is_working_tree_dirty(owner, repo_name):
                    click.echo(
                        "There are still uncommitted changes. "
                        "Commit them to continue the cherry-pick."
                    )
                else:
                    state = PickState.RESOLVED

            elif state is PickState.ABORTED:
                raise AbortedError()

            else:
                log.debug(f"{naming.short_sha(commit.sha)} applied after {prompts} prompt(s)")
                return state


class BackportEngine:
    def __init__(
        self,
        mirror: RepoMirror,
        github_client: GithubClient,
        prompter: Prompter,
        reporter: OperationReporter,
    ):
        self.mirror = mirror
        self.github = github_client
        self.reporter = reporter
        self.conflict_loop = ConflictResolutionLoop(mirror, prompter, reporter)

    def backport_to_branches(self, request: BackportRequest) -> List[PullRequestRef]:
        """Backport the request's commits to every target branch, in order.

        A HandledError stops only the branch it was raised for. Any other
        error is reported and re-raised, skipping the remaining branches.
        Branches pushed and pull requests opened before that stay in place.

        Returns:
            The pull requests that were created.
        """
        pull_requests = []
        for base_branch in request.target_branches:
            try:
                pull_request = self.backport_to_branch(request, base_branch)
            except Exception as e:
                handle_error(e)
                continue

            click.echo(f"View pull request: {pull_request.html_url}\n")
            pull_requests.append(pull_request)

        return pull_requests

    def backport_to_branch(
        self, request: BackportRequest, base_branch: str
    ) -> PullRequestRef:
        owner, repo_name = request.owner, request.repo_name
        commits = request.commits
        feature_branch = naming.feature_branch_name(base_branch, commits)

        refs = ", ".join(naming.short_reference(c) for c in commits)
        click.echo(f"Backporting {refs} to {base_branch}")

        with self.reporter.operation("Pulling latest changes"):
            self.mirror.reset_to_upstream(owner, repo_name)
            self.mirror.create_and_checkout_branch(
                owner, repo_name, base_branch, feature_branch
            )

        for commit in commits:
            self.conflict_loop.run(owner, repo_name, commit)

        with self.reporter.operation(
            f"Pushing branch {request.username}:{feature_branch}"
        ):
            self.mirror.push_branch(owner, repo_name, request.username, feature_branch)

        with self.reporter.operation("Creating pull request"):
            payload = naming.pull_request_payload(
                base_branch, commits, request.username
            )
            pull_request = self.github.create_pull_request(owner, repo_name, payload)
            if request.labels:
                self.github.add_labels(
                    owner, repo_name, pull_request.number, sorted(request.labels)
                )

        return pull_request


def handle_error(e: BaseException):
    """Report e; re-raise it unless it is an operator-facing failure."""
    if isinstance(e, HandledError):
        echo_handled_error(e.message)
        return

    echo_unexpected_error(e)
    raise e
