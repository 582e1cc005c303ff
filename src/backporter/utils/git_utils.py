"""Local repository mirror used for cherry-picking.

Each upstream repository is cloned once into
<repositories_dir>/<owner>/<repo_name> and reused for every backport. The
mirror has two remotes: "origin" (the upstream) and one named after the
operator, pointing at their fork, which feature branches are pushed to.

GitPython's GitCommandError never leaves this module: failures are
translated to CommandError, and to ConflictError when the cherry-pick
command stops on conflicts.
"""

from pathlib import Path
from typing import Callable, Optional
import logging
import shutil
import subprocess

from git import Repo, RemoteProgress
from git.exc import GitCommandError

from ..errors import CommandError, ConflictError, HandledError

log = logging.getLogger(__name__)

# git cherry-pick exits with 1 when it stops on conflicts, 128 on fatal errors
CHERRY_PICK_CONFLICT_STATUS = 1


class CloneProgress(RemoteProgress):
    """Forwards the "Receiving objects" percentage of a clone."""

    def __init__(self, on_progress: Callable[[int], None]):
        super().__init__()
        self._on_progress = on_progress

    def update(self, op_code, cur_count, max_count=None, message=""):
        if op_code & self.RECEIVING and max_count:
            self._on_progress(int(float(cur_count) / float(max_count) * 100))


class RepoMirror:
    def __init__(
        self,
        repositories_dir: Path,
        host: str = "github.com",
        default_branch: str = "master",
    ):
        self.repositories_dir = Path(repositories_dir)
        self.host = host
        self.default_branch = default_branch

    def repo_path(self, owner: str, repo_name: str) -> Path:
        return self.repositories_dir / owner / repo_name

    def remote_url(self, owner: str, repo_name: str) -> str:
        return f"git@{self.host}:{owner}/{repo_name}.git"

    def _repo(self, owner: str, repo_name: str) -> Repo:
        return Repo(self.repo_path(owner, repo_name))

    def _git(self, owner: str, repo_name: str, command: str, *args) -> str:
        repo = self._repo(owner, repo_name)
        log.debug(f"git {command} {' '.join(args)} ({repo.working_tree_dir})")
        try:
            return getattr(repo.git, command.replace("-", "_"))(*args)
        except GitCommandError as e:
            raise CommandError(e.command, status=e.status, stderr=e.stderr) from e

    def local_mirror_exists(self, owner: str, repo_name: str) -> bool:
        return (self.repo_path(owner, repo_name) / ".git").is_dir()

    def delete_local_mirror(self, owner: str, repo_name: str):
        path = self.repo_path(owner, repo_name)
        if path.exists():
            log.debug(f"Removing local mirror {path}")
            shutil.rmtree(path)

    def ensure_local_mirror_exists(
        self,
        owner: str,
        repo_name: str,
        username: str,
        on_progress: Optional[Callable[[int], None]] = None,
    ):
        """Clone the upstream repository and add the operator's fork as a remote.

        Does nothing if the mirror already exists.

        Args:
            owner: Owner of the upstream repository.
            repo_name: Name of the upstream repository.
            username: Operator's GitHub username; also the fork remote's name.
            on_progress: Called with the clone progress in percent.
        """
        if self.local_mirror_exists(owner, repo_name):
            return

        path = self.repo_path(owner, repo_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        progress = CloneProgress(on_progress) if on_progress else None

        log.debug(f"Cloning {self.remote_url(owner, repo_name)} into {path}")
        try:
            repo = Repo.clone_from(
                self.remote_url(owner, repo_name), str(path), progress=progress
            )
            repo.create_remote(username, self.remote_url(username, repo_name))
        except GitCommandError as e:
            raise CommandError(e.command, status=e.status, stderr=e.stderr) from e

    def reset_to_upstream(self, owner: str, repo_name: str):
        self._git(owner, repo_name, "reset", "--hard")
        self._git(owner, repo_name, "checkout", self.default_branch)
        self._git(owner, repo_name, "pull", "origin", self.default_branch)

    def create_and_checkout_branch(
        self, owner: str, repo_name: str, base_branch: str, new_branch_name: str
    ):
        self._git(owner, repo_name, "fetch", "origin", base_branch)
        self._git(
            owner,
            repo_name,
            "checkout",
            "-B",
            new_branch_name,
            f"origin/{base_branch}",
            "--no-track",
        )

    def cherry_pick(self, owner: str, repo_name: str, sha: str):
        """Cherry-pick a commit onto the current branch.

        Raises:
            ConflictError: If the cherry-pick stopped with unresolved conflicts.
            CommandError: If the cherry-pick failed for any other reason.
        """
        repo = self._repo(owner, repo_name)
        log.debug(f"git cherry-pick {sha} ({repo.working_tree_dir})")
        try:
            repo.git.cherry_pick(sha)
        except GitCommandError as e:
            if e.status == CHERRY_PICK_CONFLICT_STATUS:
                raise ConflictError(
                    sha,
                    str(self.repo_path(owner, repo_name)),
                    command=e.command,
                    status=e.status,
                    stderr=e.stderr,
                ) from e
            raise CommandError(e.command, status=e.status, stderr=e.stderr) from e

    def is_working_tree_dirty(self, owner: str, repo_name: str) -> bool:
        """True while the index or working tree differ from HEAD.

        Untracked files are ignored, unmerged paths count as dirty.
        """
        return self._repo(owner, repo_name).is_dirty(untracked_files=False)

    def push_branch(
        self, owner: str, repo_name: str, username: str, branch_name: str
    ):
        self._git(
            owner, repo_name, "push", username, f"{branch_name}:{branch_name}", "--force"
        )

    def verify_authentication(self):
        """Check that SSH authentication with the git host works.

        Raises:
            HandledError: If ssh is missing or the host rejects the key.
        """
        try:
            result = subprocess.run(
                ["ssh", "-oBatchMode=yes", "-T", f"git@{self.host}"],
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise HandledError(f"Could not run ssh to verify authentication: {e}")

        # GitHub closes the session with status 1 after greeting the user
        output = result.stdout + result.stderr
        if "successfully authenticated" not in output:
            log.debug(f"ssh -T git@{self.host} returned {result.returncode}: {output}")
            raise HandledError(
                f"Permission denied when connecting to git@{self.host}. "
                "Please add your SSH key to your account: "
                "https://help.github.com/articles/adding-a-new-ssh-key-to-your-github-account/"
            )

