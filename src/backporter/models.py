"""Data models for backporter.

These are plain, immutable dataclasses shared between the backport engine
and its collaborators (git mirror, GitHub client, prompts):

    Commit              - a commit selected for backporting
    BackportRequest     - everything needed to run one backport invocation
    PullRequestPayload  - the fields sent to GitHub when opening a PR
    PullRequestRef      - what GitHub returns for a created PR
    BranchChoice        - a target branch offered in the branch prompt
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, FrozenSet


def commit_message_first_line(message: str) -> str:
    """Return the first line of a commit message, trimmed."""
    return message.split("\n")[0].strip()


@dataclass(frozen=True)
class Commit:
    """A commit to backport.

    Attributes:
        sha: Full commit hash.
        message: First line of the commit message, trimmed.
        pull_number: Number of the pull request the commit was merged in,
            or None when it could not be determined.
    """

    sha: str
    message: str
    pull_number: Optional[int] = None


@dataclass(frozen=True)
class BranchChoice:
    name: str
    checked: bool = False

    @classmethod
    def from_config(cls, item) -> "BranchChoice":
        """Build from a branch list entry: "6.x" or {"name": "6.x", "checked": true}.

        Raises:
            ValueError: If the entry has no name, or the name is not a string.
                Unquoted YAML such as 7.10 is read as the float 7.1.
        """
        checked = False
        if isinstance(item, dict):
            if "name" not in item:
                raise ValueError(f"Branch entry {item!r} has no 'name'")
            checked = bool(item.get("checked", False))
            item = item["name"]

        if not isinstance(item, str):
            raise ValueError(
                f"Branch name {item!r} is not a string. "
                "Quote numeric branch names in the config file, e.g. '7.10'"
            )
        return cls(name=item, checked=checked)


@dataclass(frozen=True)
class BackportRequest:
    """A single backport invocation.

    Attributes:
        owner: Owner of the upstream repository.
        repo_name: Name of the upstream repository.
        commits: Commits to cherry-pick, in the order they are applied.
        target_branches: Branches to backport to, processed in order.
        username: GitHub user whose fork receives the feature branches.
        labels: Labels attached to every created pull request.
    """

    owner: str
    repo_name: str
    commits: Tuple[Commit, ...]
    target_branches: Tuple[str, ...]
    username: str
    labels: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.commits:
            raise ValueError("A backport request needs at least one commit")
        if not self.target_branches:
            raise ValueError("A backport request needs at least one target branch")
        # Deduplicate branches while keeping their order
        object.__setattr__(
            self, "target_branches", tuple(dict.fromkeys(self.target_branches))
        )
        object.__setattr__(self, "commits", tuple(self.commits))
        object.__setattr__(self, "labels", frozenset(self.labels))


@dataclass(frozen=True)
class PullRequestPayload:
    title: str
    body: str
    head: str
    base: str

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "body": self.body,
            "head": self.head,
            "base": self.base,
        }


@dataclass(frozen=True)
class PullRequestRef:
    html_url: str
    number: int
