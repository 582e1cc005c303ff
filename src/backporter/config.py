"""Configuration file support for backporter.

Two YAML files are read:

The global config (~/.backport/config.yaml) holds per-user settings:

    username: sqren
    access_token: ghp_...
    repositories_dir: ~/.backport/repositories

The project config (.backportrc.yaml, in the current directory) describes
the repository being backported from and where to:

    upstream: elastic/kibana
    branches:
      - 6.x
      - name: '6.3'
        checked: true
      - '5.6'
    labels:
      - backport
    all: false
    multiple_commits: false
    multiple_branches: true
    default_branch: master

Branch names that look like numbers must be quoted, otherwise YAML reads
7.10 as the float 7.1.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Tuple
import logging
import os
import subprocess
import yaml

from .errors import HandledError
from .models import BranchChoice

log = logging.getLogger(__name__)


GLOBAL_CONFIG_PATH = "~/.backport/config.yaml"
DEFAULT_CONFIG_PATH = ".backportrc.yaml"
DEFAULT_REPOSITORIES_DIR = "~/.backport/repositories"
DEFAULT_BRANCH = "master"


@dataclass
class GlobalConfig:
    """Per-user configuration.

    Attributes:
        username: GitHub username; feature branches are pushed to this user's fork.
        access_token: GitHub access token. Optional, see gh_auth_token().
        repositories_dir: Directory holding the local repository mirrors.
    """

    username: Optional[str] = None
    access_token: Optional[str] = None
    repositories_dir: str = DEFAULT_REPOSITORIES_DIR

    @classmethod
    def from_dict(cls, data: dict) -> "GlobalConfig":
        return cls(
            username=data.get("username"),
            access_token=data.get("access_token"),
            repositories_dir=data.get("repositories_dir", cls.repositories_dir),
        )

    @property
    def repositories_path(self) -> Path:
        return Path(self.repositories_dir).expanduser()


@dataclass
class ProjectConfig:
    """Per-repository configuration.

    Attributes:
        upstream: Upstream repository as "owner/repo".
        branches: Branches offered as backport targets.
        labels: Labels added to every created pull request.
        all: List commits by every author, not only the current user.
        multiple_commits: Allow selecting more than one commit.
        multiple_branches: Allow selecting more than one target branch.
        default_branch: Mainline branch the mirror is reset to and commits
            are merged into.
    """

    upstream: str
    branches: List[BranchChoice] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    all: bool = False
    multiple_commits: bool = False
    multiple_branches: bool = True
    default_branch: str = DEFAULT_BRANCH

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectConfig":
        upstream = data.get("upstream")
        if not upstream or "/" not in str(upstream):
            raise ValueError(
                f"'upstream' must be set to 'owner/repo', got: {upstream!r}"
            )

        return cls(
            upstream=str(upstream),
            branches=[BranchChoice.from_config(b) for b in data.get("branches") or []],
            labels=[str(label) for label in data.get("labels") or []],
            all=data.get("all", cls.all),
            multiple_commits=data.get("multiple_commits", cls.multiple_commits),
            multiple_branches=data.get("multiple_branches", cls.multiple_branches),
            default_branch=str(data.get("default_branch") or cls.default_branch),
        )

    @property
    def owner(self) -> str:
        return self.split_upstream()[0]

    @property
    def repo_name(self) -> str:
        return self.split_upstream()[1]

    def split_upstream(self) -> Tuple[str, str]:
        owner, repo_name = self.upstream.split("/", 1)
        return owner, repo_name


@dataclass
class BackportConfig:
    """Combined configuration for one backporter invocation.

    Attributes:
        global_config: Per-user settings.
        project: Per-repository settings, or None if no project file was found.
    """

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    project: Optional[ProjectConfig] = None
    def require_project(self) -> ProjectConfig:
        if self.project is None:
            raise HandledError(
                f"No project configuration found. Create {DEFAULT_CONFIG_PATH} "
                "with at least an 'upstream' entry (e.g. 'upstream: elastic/kibana')."
            )
        return self.project


def gh_auth_token() -> Optional[str]:
    token = os.getenv("GITHUB_TOKEN")
    if token is not None:
        return token
    token = os.getenv("GH_TOKEN")
    if token is not None:
        return token

    try:
        token = subprocess.check_output(["gh", "auth", "token"], text=True).strip()
    except (OSError, subprocess.CalledProcessError):
        token = None

    return token or None


def _read_yaml(path: Path) -> Optional[dict]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    # Handle empty file or file with only comments
    if data is None:
        return None

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a YAML mapping (dictionary)")

    return data


def load_global_config(config_path: Optional[str] = None) -> GlobalConfig:
    path = Path(config_path or GLOBAL_CONFIG_PATH).expanduser()
    if not path.exists():
        log.debug(f"Global config {path} not found, using defaults")
        return GlobalConfig()

    data = _read_yaml(path)
    return GlobalConfig.from_dict(data) if data else GlobalConfig()


def load_config(
    config_path: Optional[str] = None,
    global_config_path: Optional[str] = None,
) -> BackportConfig:
    """Load the global and project configuration.

    If config_path is explicitly provided and the file doesn't exist, raises an error.
    If config_path is None and the default .backportrc.yaml doesn't exist, the
    returned config has no project section.

    Args:
        config_path: Path to the project config file, or None to use the default path.
        global_config_path: Path to the global config file, or None for the default.

    Returns:
        BackportConfig instance with loaded or default values.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but file doesn't exist.
        yaml.YAMLError: If a config file contains invalid YAML.
        ValueError: If a config file contains invalid values.
    """
    global_config = load_global_config(global_config_path)

    explicit_path = config_path is not None
    path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_PATH)

    if not path.exists():
        if explicit_path:
            raise FileNotFoundError(f"Config file not found: {path}")
        return BackportConfig(global_config=global_config)

    data = _read_yaml(path)
    if data is None:
        return BackportConfig(global_config=global_config)

    return BackportConfig(
        global_config=global_config,
        project=ProjectConfig.from_dict(data),
    )
