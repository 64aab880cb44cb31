"""Local Git repository inspection through the git CLI."""

import subprocess
from pathlib import Path

import structlog

from ghux.core.models.platform import PlatformConfig
from ghux.core.models.reference import DEFAULT_REF
from ghux.platforms.registry import DEFAULT_REGISTRY, PlatformRegistry

logger = structlog.get_logger(__name__)


class GitRepoInspector:
    """Reads the remote and branch of a local checkout for ``ghux detect``."""

    def __init__(self, repo_path: str | Path = ".", registry: PlatformRegistry = DEFAULT_REGISTRY) -> None:
        self._repo_path = Path(repo_path).resolve()
        self._registry = registry

    def _git(self, *args: str) -> str | None:
        """Return the stripped output of a git command, or ``None`` if it fails."""
        try:
            completed = subprocess.run(
                ["git", "-C", str(self._repo_path), *args],
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError:
            logger.debug("git executable not found")
            return None
        except subprocess.CalledProcessError as exc:
            logger.debug("git command failed", args=args, stderr=exc.stderr.strip())
            return None
        return completed.stdout.strip() or None

    def is_git_repo(self) -> bool:
        return self._git("rev-parse", "--is-inside-work-tree") == "true"

    def get_remote_url(self, remote: str = "origin") -> str | None:
        return self._git("remote", "get-url", remote)

    def get_current_branch(self) -> str:
        """Return the checked-out branch; detached or unreadable HEADs give ``main``."""
        return self._git("symbolic-ref", "--quiet", "--short", "HEAD") or DEFAULT_REF

    def detect_platform(self, remote: str = "origin") -> PlatformConfig:
        """Detect the hosting platform from a remote URL."""
        url = self.get_remote_url(remote)
        if url is None:
            logger.debug("No remote configured, defaulting to GitHub", remote=remote)
        return self._registry.detect_from_remote_url(url)
