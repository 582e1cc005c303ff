"""Names, titles and bodies derived from commit metadata.

All functions here are pure: the same inputs always give byte-identical
outputs. feature_branch_name() in particular is called both when checking
out the local branch and when building the PR "head" field.
"""

from typing import Sequence

from ..models import Commit, PullRequestPayload

SHORT_SHA_LENGTH = 7
MAX_REFS_LENGTH = 200
MAX_TITLE_MESSAGES_LENGTH = 200


def short_sha(sha: str) -> str:
    return sha[:SHORT_SHA_LENGTH]


def short_reference(commit: Commit) -> str:
    """"#<pull number>" if known, otherwise the short sha."""
    if commit.pull_number:
        return f"#{commit.pull_number}"
    return short_sha(commit.sha)


def short_slug(commit: Commit) -> str:
    """Ref-safe reference used in branch names ("pr-12", "commit-abc1234")."""
    if commit.pull_number:
        return f"pr-{commit.pull_number}"
    return f"commit-{short_sha(commit.sha)}"


def feature_branch_name(base_branch: str, commits: Sequence[Commit]) -> str:
    refs = "_".join(short_slug(commit) for commit in commits)[:MAX_REFS_LENGTH]
    return f"backport/{base_branch}/{refs}"


def pull_request_title(base_branch: str, commits: Sequence[Commit]) -> str:
    messages = " | ".join(commit.message for commit in commits)
    return f"[{base_branch}] {messages[:MAX_TITLE_MESSAGES_LENGTH]}"


def commit_summary(commit: Commit) -> str:
    """The commit message followed by its short reference in parentheses."""
    ref = short_reference(commit)
    # The message may already contain "(#42)"; drop it so it is not repeated
    message = commit.message.replace(f"({ref})", "").strip()
    return f"{message} ({ref})"


def pull_request_commit_line(commit: Commit) -> str:
    return f" - {commit_summary(commit)}"


def pull_request_body(base_branch: str, commits: Sequence[Commit]) -> str:
    lines = [pull_request_commit_line(commit) for commit in commits]
    return f"Backports the following commits to {base_branch}:\n" + "\n".join(lines)


def pull_request_payload(
    base_branch: str, commits: Sequence[Commit], username: str
) -> PullRequestPayload:
    return PullRequestPayload(
        title=pull_request_title(base_branch, commits),
        body=pull_request_body(base_branch, commits),
        head=f"{username}:{feature_branch_name(base_branch, commits)}",
        base=base_branch,
    )
