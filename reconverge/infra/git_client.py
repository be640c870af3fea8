"""
Git client infrastructure for reconverge.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

from pathlib import Path
from typing import Optional
import logging

from .command_runner import CommandRunner, ExternalCommandError

logger = logging.getLogger(__name__)


class GitClient:
    """
    Abstraction over git commands.

    Mutating operations raise ExternalCommandError on failure; queries
    return None instead.

    Example:
        client = GitClient()
        client.clone("https://github.com/owner/repo.git", "/tmp/repo")
        print(client.current_branch("/tmp/repo"))
    """

    def __init__(self, runner: Optional[CommandRunner] = None, executable: str = "git"):
        """
        Initialize GitClient.

        Args:
            runner: CommandRunner used for every git invocation
            executable: git binary name or path
        """
        self.runner = runner or CommandRunner()
        self.executable = executable

    def _git(self, *args: str, cwd: Optional[str] = None, check: bool = True):
        return self.runner.run([self.executable, *args], cwd=cwd, check=check)

    def _query(self, *args: str, cwd: str) -> Optional[str]:
        try:
            result = self._git(*args, cwd=cwd, check=False)
        except ExternalCommandError:
            return None
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
        return None

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git repository."""
        git_dir = Path(path) / ".git"
        return git_dir.exists()

    def clone(self, url: str, target: str) -> None:
        """Clone ``url`` into ``target`` (which may exist but must be empty)."""
        self._git("clone", url, str(target))

    def fetch_all(self, path: str) -> None:
        """Fetch all remotes."""
        self._git("fetch", "--all", cwd=str(path))

    def current_branch(self, path: str) -> Optional[str]:
        """Get current branch name."""
        return self._query("rev-parse", "--abbrev-ref", "HEAD", cwd=str(path))

    def upstream_ref(self, path: str, remote: str = "origin") -> Optional[str]:
        """
        Get the upstream tracking ref of the current branch.

        Falls back to ``<remote>/<branch>`` when no upstream is configured.
        """
        upstream = self._query(
            "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}", cwd=str(path)
        )
        if upstream:
            return upstream
        branch = self.current_branch(path)
        if branch and branch != "HEAD":
            return f"{remote}/{branch}"
        return None

    def reset_hard(self, path: str, ref: str) -> None:
        """Discard local changes and move the current branch to ``ref``."""
        self._git("reset", "--hard", ref, cwd=str(path))

    def pull(self, path: str) -> None:
        """Fast-forward pull from the upstream."""
        self._git("pull", "--ff-only", cwd=str(path))

    def remote_url(self, path: str, remote: str = "origin") -> Optional[str]:
        """
        Get remote URL.

        Args:
            path: Path to git repository
            remote: Remote name (default: "origin")

        Returns:
            Remote URL or None if not found
        """
        return self._query("config", "--get", f"remote.{remote}.url", cwd=str(path))
