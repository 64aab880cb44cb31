"""Tests for local Git repository inspection."""

import subprocess
from pathlib import Path

import pytest

from ghux.core.models.platform import PlatformKind
from ghux.git.inspector import GitRepoInspector


def _git(repo_path: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=repo_path, capture_output=True, check=True)


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a temporary Git repository with one commit."""
    repo_path = tmp_path / "test-repo"
    repo_path.mkdir()

    _git(repo_path, "init")
    _git(repo_path, "config", "user.email", "test@test.com")
    _git(repo_path, "config", "user.name", "Test")
    _git(repo_path, "checkout", "-b", "develop")

    (repo_path / "README.md").write_text("# Test Repo\n")
    _git(repo_path, "add", ".")
    _git(repo_path, "commit", "-m", "Initial commit")
    return repo_path


@pytest.mark.unit
class TestGitRepoInspector:
    """Tests for GitRepoInspector."""

    def test_is_git_repo(self, git_repo: Path) -> None:
        assert GitRepoInspector(git_repo).is_git_repo() is True

    def test_is_not_git_repo(self, tmp_path: Path) -> None:
        assert GitRepoInspector(tmp_path).is_git_repo() is False

    def test_current_branch(self, git_repo: Path) -> None:
        assert GitRepoInspector(git_repo).get_current_branch() == "develop"

    def test_detached_head(self, git_repo: Path) -> None:
        _git(git_repo, "checkout", "--detach")
        assert GitRepoInspector(git_repo).get_current_branch() == "main"

    def test_branch_without_commits(self, tmp_path: Path) -> None:
        _git(tmp_path, "init")
        _git(tmp_path, "checkout", "-b", "feature/empty")
        assert GitRepoInspector(tmp_path).get_current_branch() == "feature/empty"

    def test_current_branch_outside_repo(self, tmp_path: Path) -> None:
        assert GitRepoInspector(tmp_path).get_current_branch() == "main"

    def test_no_remote(self, git_repo: Path) -> None:
        inspector = GitRepoInspector(git_repo)
        assert inspector.get_remote_url() is None
        assert inspector.detect_platform().kind == PlatformKind.GITHUB

    def test_detect_gitlab_remote(self, git_repo: Path) -> None:
        _git(git_repo, "remote", "add", "origin", "git@gitlab.example.com:group/proj.git")
        inspector = GitRepoInspector(git_repo)
        assert inspector.get_remote_url() == "git@gitlab.example.com:group/proj.git"
        config = inspector.detect_platform()
        assert config.kind == PlatformKind.GITLAB
        assert config.domain == "gitlab.example.com"

    def test_other_remote_name(self, git_repo: Path) -> None:
        _git(git_repo, "remote", "add", "upstream", "https://bitbucket.org/team/repo.git")
        config = GitRepoInspector(git_repo).detect_platform("upstream")
        assert config.kind == PlatformKind.BITBUCKET
        assert config.domain is None
