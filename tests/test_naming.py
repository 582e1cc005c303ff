"""Tests for branch names, PR titles and PR bodies derived from commits."""

from backporter.models import Commit
from backporter.utils import naming


class TestShortReference:
    def test_pull_number(self, commit_with_pr):
        assert naming.short_reference(commit_with_pr) == "#10"

    def test_falls_back_to_short_sha(self, commit_without_pr):
        assert naming.short_reference(commit_without_pr) == "deadbee"

    def test_slug_with_pull_number(self, commit_with_pr):
        assert naming.short_slug(commit_with_pr) == "pr-10"

    def test_slug_without_pull_number(self, commit_without_pr):
        assert naming.short_slug(commit_without_pr) == "commit-deadbee"


class TestFeatureBranchName:
    def test_single_commit(self, commit_with_pr):
        assert naming.feature_branch_name("7.x", [commit_with_pr]) == "backport/7.x/pr-10"

    def test_multiple_commits_joined_in_order(self, commit_with_pr, commit_without_pr):
        name = naming.feature_branch_name("6.3", [commit_without_pr, commit_with_pr])
        assert name == "backport/6.3/commit-deadbee_pr-10"

    def test_reference_list_truncated(self):
        commits = [
            Commit(sha=f"{i:040x}", message=f"Change {i}", pull_number=10000 + i)
            for i in range(50)
        ]
        name = naming.feature_branch_name("7.x", commits)
        prefix = "backport/7.x/"
        assert name.startswith(prefix)
        assert len(name[len(prefix):]) == 200

    def test_deterministic(self, commit_with_pr, commit_without_pr):
        commits = [commit_with_pr, commit_without_pr]
        assert naming.feature_branch_name("7.x", commits) == naming.feature_branch_name(
            "7.x", list(commits)
        )


class TestPullRequest:
    def test_title(self, commit_with_pr):
        assert naming.pull_request_title("7.x", [commit_with_pr]) == "[7.x] Fix bug (#10)"

    def test_title_joins_and_truncates_messages(self):
        commits = [
            Commit(sha="a" * 40, message="x" * 150),
            Commit(sha="b" * 40, message="y" * 150),
        ]
        title = naming.pull_request_title("7.x", commits)
        assert title == "[7.x] " + ("x" * 150 + " | " + "y" * 150)[:200]

    def test_body_does_not_repeat_reference(self, commit_with_pr):
        body = naming.pull_request_body("7.x", [commit_with_pr])
        assert body == "Backports the following commits to 7.x:\n - Fix bug (#10)"
        assert body.count("(#10)") == 1

    def test_body_appends_reference(self, commit_with_pr, commit_without_pr):
        body = naming.pull_request_body("7.x", [commit_without_pr, commit_with_pr])
        assert body.splitlines() == [
            "Backports the following commits to 7.x:",
            " - Tweak docs (deadbee)",
            " - Fix bug (#10)",
        ]

    def test_body_keeps_other_references(self):
        commit = Commit(sha="c" * 40, message="Revert (#7) partially", pull_number=42)
        assert naming.pull_request_commit_line(commit) == " - Revert (#7) partially (#42)"

    def test_payload(self, commit_with_pr):
        payload = naming.pull_request_payload("7.x", [commit_with_pr], "sqren")
        assert payload.head == "sqren:backport/7.x/pr-10"
        assert payload.base == "7.x"
        assert payload.title == "[7.x] Fix bug (#10)"
        assert " - Fix bug (#10)" in payload.body
