"""
Package manager backends for reconverge.

Thin wrappers that turn install requests into argument vectors for apt,
snap and pipx. apt and snap calls are privileged; pipx installs into the
invoking user's environment.
"""

import shlex
from pathlib import Path
from typing import Optional, Sequence
import logging

from .command_runner import CommandRunner, CommandResult

logger = logging.getLogger(__name__)


class AptBackend:
    """System package manager (apt-get / dpkg / add-apt-repository)."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def _run(self, argv: Sequence[str]) -> CommandResult:
        return self.runner.run(argv, privileged=True)

    def update(self) -> CommandResult:
        return self._run(["apt-get", "update"])

    def install(self, packages: Sequence[str]) -> Optional[CommandResult]:
        """Install or upgrade all ``packages`` in a single transaction."""
        if not packages:
            return None
        return self._run(["apt-get", "install", "-y", *packages])

    def install_file(self, path: Path) -> CommandResult:
        """Install a local .deb; apt needs a path, not a bare file name."""
        return self._run(["apt-get", "install", "-y", str(Path(path).resolve())])

    def add_architecture(self, arch: str) -> CommandResult:
        return self._run(["dpkg", "--add-architecture", arch])

    def add_repository(self, repository: str) -> CommandResult:
        return self._run(["add-apt-repository", "-y", repository])

    def autoremove(self) -> CommandResult:
        return self._run(["apt-get", "autoremove", "-y"])


class SnapBackend:
    """Sandboxed package manager (snapd)."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def install(self, name: str, options: Optional[str] = None) -> CommandResult:
        """Install ``name``; ``options`` is passed through as extra flags."""
        extra = shlex.split(options) if options else []
        return self.runner.run(["snap", "install", name, *extra], privileged=True)


class PipxBackend:
    """Language-tool package manager (pipx)."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def ensurepath(self) -> CommandResult:
        return self.runner.run(["pipx", "ensurepath"])

    def install(self, spec: str) -> CommandResult:
        return self.runner.run(["pipx", "install", spec])
