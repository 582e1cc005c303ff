from typing import Optional

from .config import BackportConfig, ProjectConfig, gh_auth_token, load_config
from .engine import BackportEngine
from .errors import HandledError
from .github_client import GithubClient
from .prompts import Prompter
from .utils.git_utils import RepoMirror
from .utils.output import OperationReporter


class AppContext:
    """Collaborators shared by every command.

    The configuration is loaded by the CLI group; the GitHub client, and
    with it the access token, is created on first use and never changes
    afterwards.
    """

    def __init__(self, config: Optional[BackportConfig] = None):
        self.config: BackportConfig = config or BackportConfig()
        self.reporter = OperationReporter()
        self.prompter = Prompter()
        self._mirror: Optional[RepoMirror] = None
        self._github: Optional[GithubClient] = None

    def load_config(self, config_path: Optional[str] = None):
        self.config = load_config(config_path)
        self._mirror = None
        self._github = None

    @property
    def project(self) -> ProjectConfig:
        return self.config.require_project()

    @property
    def mirror(self) -> RepoMirror:
        if self._mirror is None:
            self._mirror = RepoMirror(
                self.config.global_config.repositories_path,
                default_branch=self.project.default_branch,
            )
        return self._mirror

    @property
    def github(self) -> GithubClient:
        if self._github is None:
            token = self.config.global_config.access_token or gh_auth_token()
            if token is None:
                raise HandledError(
                    "GitHub token not found. Set access_token in the global config, "
                    "or GITHUB_TOKEN or GH_TOKEN."
                )
            self._github = GithubClient(
                token, default_branch=self.project.default_branch
            )
        return self._github

    def get_username(self, username: Optional[str] = None) -> str:
        username = username or self.config.global_config.username
        if not username:
            raise HandledError(
                "GitHub username not set. Pass --username or set username in the global config."
            )
        return username

    def create_engine(self) -> BackportEngine:
        return BackportEngine(self.mirror, self.github, self.prompter, self.reporter)
