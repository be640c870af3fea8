"""
Command execution infrastructure for reconverge.

Every external tool invocation goes through CommandRunner, making it:
- Easy to replace with a recording fake in tests
- Consistent in logging and error reporting
- Explicit about which calls need elevated privilege

Commands are argument vectors. The only shell entry point is
``run_shell``, used for post-sync commands declared in the repository
manifest, whose author is trusted.
"""

import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Result of a finished command."""
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ExternalCommandError(Exception):
    """Raised when an external tool exits non-zero or cannot be started."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr and stderr.strip() else ""
        message = f"Command failed ({returncode}): {format_argv(self.argv)}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class CommandRunner:
    """
    Runs external commands, optionally through a privilege-elevation wrapper.

    Example:
        runner = CommandRunner()
        runner.run(["apt-get", "update"], privileged=True)
    """

    def __init__(self, privilege_command: str = "sudo", timeout: Optional[int] = None):
        """
        Initialize CommandRunner.

        Args:
            privilege_command: Wrapper prepended to privileged commands
            timeout: Optional per-command timeout in seconds (None = wait forever)
        """
        self.privilege_prefix = shlex.split(privilege_command) if privilege_command else []
        self.timeout = timeout

    def privileged_argv(self, argv: Sequence[str]) -> List[str]:
        """Prefix ``argv`` with the privilege wrapper unless already root."""
        if self.privilege_prefix and os.geteuid() != 0:
            return [*self.privilege_prefix, *argv]
        return list(argv)

    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[str] = None,
        privileged: bool = False,
        check: bool = True,
    ) -> CommandResult:
        """
        Run a command given as an argument vector.

        Args:
            argv: Program and arguments
            cwd: Working directory
            privileged: Run through the privilege wrapper
            check: Raise ExternalCommandError on non-zero exit

        Returns:
            CommandResult with captured output
        """
        full_argv = self.privileged_argv(argv) if privileged else list(argv)
        return self._execute(full_argv, cwd=cwd, check=check, shell=False)

    def run_shell(self, command: str, cwd: Optional[str] = None, check: bool = True) -> CommandResult:
        """Run a free-form shell command from a trusted manifest."""
        return self._execute(command, cwd=cwd, check=check, shell=True)

    def _execute(self, command, cwd: Optional[str], check: bool, shell: bool) -> CommandResult:
        argv = [command] if shell else list(command)
        cmd_str = command if shell else format_argv(argv)
        logger.debug(f"Running command in '{cwd or os.getcwd()}': {cmd_str}")

        try:
            result = subprocess.run(
                command,
                shell=shell,
                cwd=cwd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            if check:
                raise ExternalCommandError(argv, 127, str(e)) from e
            return CommandResult(argv=argv, returncode=127, stderr=str(e))
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Command timed out: {cmd_str}")
            if check:
                raise ExternalCommandError(argv, -1, f"timed out after {self.timeout}s") from e
            return CommandResult(argv=argv, returncode=-1, stderr="timed out")

        if result.stdout and result.stdout.strip():
            logger.debug(result.stdout.strip())

        if check and result.returncode != 0:
            raise ExternalCommandError(argv, result.returncode, result.stderr or "")

        return CommandResult(
            argv=argv,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
