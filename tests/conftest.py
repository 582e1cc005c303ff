import io
from unittest.mock import Mock

import pytest
from rich.console import Console

from backporter.github_client import GithubClient
from backporter.models import BackportRequest, Commit, PullRequestRef
from backporter.prompts import Prompter
from backporter.utils.git_utils import RepoMirror
from backporter.utils.output import OperationReporter


@pytest.fixture
def commit_with_pr():
    return Commit(
        sha="abc1234567890abcdef1234567890abcdef12345",
        message="Fix bug (#10)",
        pull_number=10,
    )


@pytest.fixture
def commit_without_pr():
    return Commit(sha="deadbeefcafe0123456789abcdef0123456789ab", message="Tweak docs")


@pytest.fixture
def console_output():
    return io.StringIO()


@pytest.fixture
def reporter(console_output):
    return OperationReporter(
        Console(file=console_output, force_terminal=False, width=200)
    )


@pytest.fixture
def mirror():
    mirror = Mock(spec=RepoMirror)
    mirror.is_working_tree_dirty.return_value = False
    return mirror


@pytest.fixture
def github_client():
    client = Mock(spec=GithubClient)
    client.create_pull_request.return_value = PullRequestRef(
        html_url="https://github.com/elastic/kibana/pull/99", number=99
    )
    return client


@pytest.fixture
def prompter():
    prompter = Mock(spec=Prompter)
    prompter.confirm_conflict_resolved.return_value = True
    return prompter


@pytest.fixture
def make_request(commit_with_pr):
    def factory(commits=None, branches=("7.x",), labels=()):
        return BackportRequest(
            owner="elastic",
            repo_name="kibana",
            commits=tuple(commits or [commit_with_pr]),
            target_branches=tuple(branches),
            username="sqren",
            labels=frozenset(labels),
        )

    return factory
