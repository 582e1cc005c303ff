"""GitHub API access for backporter.

GithubClient is built once per run with the operator's access token and is
the only object holding it. PyGithub exceptions are translated at this
boundary: lookups that fail because the commit or PR does not exist (or is
not merged) raise HandledError, everything else raises ApiError carrying
the endpoint and GitHub's error body.
"""

from contextlib import contextmanager
from itertools import islice
from typing import Iterator, List, Optional, Sequence
import logging

import github
from github import Auth
from github.GithubException import GithubException

from .errors import ApiError, HandledError
from .models import Commit, PullRequestPayload, PullRequestRef, commit_message_first_line

log = logging.getLogger(__name__)

COMMITS_PER_PAGE = 20
COMMITS_PER_PAGE_BY_AUTHOR = 5

# GitHub answers 422 for malformed or ambiguous shas
NOT_FOUND_STATUSES = (404, 422)


@contextmanager
def api_call(url: str) -> Iterator[None]:
    log.debug(f"GitHub API: {url}")
    try:
        yield
    except GithubException as e:
        raise ApiError(url, status=e.status, data=e.data) from e


class GithubClient:
    def __init__(
        self,
        access_token: Optional[str],
        default_branch: str = "master",
        gh: Optional[github.Github] = None,
    ):
        if gh is None:
            auth = Auth.Token(access_token) if access_token else None
            gh = github.Github(auth=auth)
        self.gh = gh
        self.default_branch = default_branch

    def _repo(self, owner: str, repo_name: str):
        return self.gh.get_repo(f"{owner}/{repo_name}", lazy=True)

    def list_commits_by_author(
        self, owner: str, repo_name: str, author: Optional[str]
    ) -> List[Commit]:
        """Return the most recent commits, optionally only those by author.

        Each commit is paired with the pull request it was merged in, if any.
        """
        kwargs = {}
        limit = COMMITS_PER_PAGE
        if author:
            kwargs["author"] = author
            limit = COMMITS_PER_PAGE_BY_AUTHOR

        url = f"/repos/{owner}/{repo_name}/commits"
        with api_call(url):
            gh_commits = list(islice(self._repo(owner, repo_name).get_commits(**kwargs), limit))

        return [
            Commit(
                sha=gh_commit.sha,
                message=commit_message_first_line(gh_commit.commit.message),
                pull_number=self.find_pull_number_by_sha(owner, repo_name, gh_commit.sha),
            )
            for gh_commit in gh_commits
        ]

    def find_commit_by_sha(self, owner: str, repo_name: str, sha: str) -> Commit:
        url = f"/repos/{owner}/{repo_name}/commits/{sha}"
        try:
            with api_call(url):
                gh_commit = self._repo(owner, repo_name).get_commit(sha)
        except ApiError as e:
            if e.status in NOT_FOUND_STATUSES:
                raise HandledError(f"No commit found for SHA: {sha}") from e
            raise

        return Commit(
            sha=gh_commit.sha,
            message=commit_message_first_line(gh_commit.commit.message),
            pull_number=self.find_pull_number_by_sha(owner, repo_name, gh_commit.sha),
        )

    def find_commit_by_merged_pull_request(
        self, owner: str, repo_name: str, pull_number: int
    ) -> Commit:
        url = f"/repos/{owner}/{repo_name}/pulls/{pull_number}"
        try:
            with api_call(url):
                pull = self._repo(owner, repo_name).get_pull(pull_number)
        except ApiError as e:
            if e.status == 404:
                raise HandledError(f"Pull request #{pull_number} does not exist") from e
            raise

        if not pull.merged:
            raise HandledError(
                f"Pull request #{pull_number} has not been merged to {self.default_branch}"
            )

        return Commit(
            sha=pull.merge_commit_sha,
            message=commit_message_first_line(pull.title),
            pull_number=pull_number,
        )

    def find_pull_number_by_sha(
        self, owner: str, repo_name: str, sha: str
    ) -> Optional[int]:
        query = f"repo:{owner}/{repo_name} {sha} base:{self.default_branch}"
        with api_call(f"/search/issues?q={query}"):
            issue = next(iter(self.gh.search_issues(query)), None)
        return issue.number if issue is not None else None

    def create_pull_request(
        self, owner: str, repo_name: str, payload: PullRequestPayload
    ) -> PullRequestRef:
        with api_call(f"/repos/{owner}/{repo_name}/pulls"):
            pull = self._repo(owner, repo_name).create_pull(**payload.to_dict())
        return PullRequestRef(html_url=pull.html_url, number=pull.number)

    def add_labels(
        self, owner: str, repo_name: str, pull_number: int, labels: Sequence[str]
    ):
        with api_call(f"/repos/{owner}/{repo_name}/issues/{pull_number}/labels"):
            self._repo(owner, repo_name).get_issue(pull_number).add_to_labels(*labels)
