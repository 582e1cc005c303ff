import pytest
import yaml

from backporter.config import (
    GlobalConfig,
    ProjectConfig,
    gh_auth_token,
    load_config,
)
from backporter.errors import HandledError
from backporter.models import BranchChoice


@pytest.fixture
def global_config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("username: sqren\naccess_token: secret\n")
    return path


class TestLoadConfig:
    def test_project_config(self, tmp_path, global_config_file):
        path = tmp_path / ".backportrc.yaml"
        path.write_text(
            "upstream: elastic/kibana\n"
            "branches:\n"
            "  - 6.x\n"
            "  - name: '6.3'\n"
            "    checked: true\n"
            "labels: [backport]\n"
            "multiple_commits: true\n"
        )

        config = load_config(str(path), str(global_config_file))

        project = config.require_project()
        assert project.owner == "elastic"
        assert project.repo_name == "kibana"
        assert project.branches == [BranchChoice("6.x"), BranchChoice("6.3", checked=True)]
        assert project.labels == ["backport"]
        assert project.multiple_commits is True
        assert project.multiple_branches is True
        assert project.all is False
        assert config.global_config.username == "sqren"
        assert config.global_config.access_token == "secret"

    def test_explicit_missing_file(self, tmp_path, global_config_file):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"), str(global_config_file))

    def test_default_missing_file(self, tmp_path, monkeypatch, global_config_file):
        monkeypatch.chdir(tmp_path)
        config = load_config(None, str(global_config_file))

        assert config.project is None
        with pytest.raises(HandledError, match=".backportrc.yaml"):
            config.require_project()

    def test_empty_file(self, tmp_path, global_config_file):
        path = tmp_path / ".backportrc.yaml"
        path.write_text("# nothing here\n")
        assert load_config(str(path), str(global_config_file)).project is None

    def test_not_a_mapping(self, tmp_path, global_config_file):
        path = tmp_path / ".backportrc.yaml"
        path.write_text("- elastic/kibana\n")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_config(str(path), str(global_config_file))

    def test_invalid_yaml(self, tmp_path, global_config_file):
        path = tmp_path / ".backportrc.yaml"
        path.write_text("upstream: [elastic\n")
        with pytest.raises(yaml.YAMLError):
            load_config(str(path), str(global_config_file))

    def test_missing_global_config(self, tmp_path):
        path = tmp_path / ".backportrc.yaml"
        path.write_text("upstream: elastic/kibana\n")

        config = load_config(str(path), str(tmp_path / "nope.yaml"))

        assert config.global_config == GlobalConfig()


class TestProjectConfig:
    def test_upstream_required(self):
        with pytest.raises(ValueError, match="upstream"):
            ProjectConfig.from_dict({"branches": ["6.x"]})

    def test_upstream_needs_owner(self):
        with pytest.raises(ValueError, match="owner/repo"):
            ProjectConfig.from_dict({"upstream": "kibana"})


class TestGhAuthToken:
    def test_github_token(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "token-1")
        monkeypatch.setenv("GH_TOKEN", "token-2")
        assert gh_auth_token() == "token-1"

    def test_gh_token(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GH_TOKEN", "token-2")
        assert gh_auth_token() == "token-2"

    def test_gh_cli_missing(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GH_TOKEN", raising=False)

        def missing(*args, **kwargs):
            raise FileNotFoundError("gh")

        monkeypatch.setattr("backporter.config.subprocess.check_output", missing)
        assert gh_auth_token() is None


class TestBranchChoices:
    def test_numeric_branch_must_be_quoted(self, tmp_path, global_config_file):
        path = tmp_path / ".backportrc.yaml"
        path.write_text("upstream: elastic/kibana\nbranches: [6.x, 7.10, 5.6]\n")

        with pytest.raises(ValueError, match="Quote numeric branch names"):
            load_config(str(path), str(global_config_file))

    def test_numeric_name_entry_must_be_quoted(self):
        with pytest.raises(ValueError, match="7.1"):
            ProjectConfig.from_dict(
                {"upstream": "elastic/kibana", "branches": [{"name": 7.10}]}
            )

    def test_quoted_numeric_branches(self, tmp_path, global_config_file):
        path = tmp_path / ".backportrc.yaml"
        path.write_text("upstream: elastic/kibana\nbranches: [6.x, '7.10', \"5.6\"]\n")

        project = load_config(str(path), str(global_config_file)).require_project()

        assert [b.name for b in project.branches] == ["6.x", "7.10", "5.6"]

    def test_entry_without_name(self):
        with pytest.raises(ValueError, match="has no 'name'"):
            ProjectConfig.from_dict(
                {"upstream": "elastic/kibana", "branches": [{"checked": True}]}
            )

    def test_empty_branches_and_labels(self, tmp_path, global_config_file):
        path = tmp_path / ".backportrc.yaml"
        path.write_text("upstream: elastic/kibana\nbranches:\nlabels:\n")

        project = load_config(str(path), str(global_config_file)).require_project()

        assert project.branches == []
        assert project.labels == []


class TestDefaultBranch:
    def test_defaults_to_master(self):
        project = ProjectConfig.from_dict({"upstream": "elastic/kibana"})
        assert project.default_branch == "master"

    def test_configured(self):
        project = ProjectConfig.from_dict(
            {"upstream": "elastic/kibana", "default_branch": "main"}
        )
        assert project.default_branch == "main"
