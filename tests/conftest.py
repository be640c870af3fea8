"""
Shared fixtures: a recording command runner and a RunContext wired to it.
"""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from reconverge.config import get_default_config
from reconverge.context import RunContext
from reconverge.infra.command_runner import CommandResult, CommandRunner, ExternalCommandError
from reconverge.infra.git_client import GitClient
from reconverge.infra.manifest_store import ManifestStore
from reconverge.infra.package_managers import AptBackend, PipxBackend, SnapBackend
from reconverge.services.capability_probe import CapabilityProbe


class RecordingRunner(CommandRunner):
    """CommandRunner that records argv vectors instead of executing them."""

    def __init__(self):
        super().__init__(privilege_command="")
        self.calls = []
        self.cwds = []
        self._failures = []
        self._outputs = []

    def fail_when(self, predicate, returncode=1, stderr="simulated failure"):
        self._failures.append((predicate, returncode, stderr))

    def respond(self, predicate, stdout):
        self._outputs.append((predicate, stdout))

    def calls_to(self, program):
        return [argv for argv in self.calls if argv and argv[0] == program]

    def _execute(self, command, cwd, check, shell):
        argv = [command] if shell else list(command)
        self.calls.append(argv)
        self.cwds.append(cwd)
        for predicate, returncode, stderr in self._failures:
            if predicate(argv):
                if check:
                    raise ExternalCommandError(argv, returncode, stderr)
                return CommandResult(argv=argv, returncode=returncode, stderr=stderr)
        stdout = ""
        for predicate, output in self._outputs:
            if predicate(argv):
                stdout = output
                break
        return CommandResult(argv=argv, returncode=0, stdout=stdout)


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def manifest_dir(tmp_path):
    path = tmp_path / "manifests"
    path.mkdir()
    return path


@pytest.fixture
def config(tmp_path, manifest_dir):
    config = get_default_config()
    config['general']['state_directory'] = str(tmp_path / "state")
    config['manifests']['directory'] = str(manifest_dir)
    config['repositories']['base_directory'] = str(tmp_path / "repos")
    config['logging']['file'] = str(tmp_path / "run.log")
    return config


@pytest.fixture
def context(config, runner):
    """RunContext whose external tools are all recorded, never executed."""
    apt = AptBackend(runner)
    return RunContext(
        config=config,
        runner=runner,
        manifests=ManifestStore.from_config(config),
        apt=apt,
        snap=SnapBackend(runner),
        pipx=PipxBackend(runner),
        git=GitClient(runner),
        github=MagicMock(),
        probe=CapabilityProbe(apt, which=lambda tool: f"/usr/bin/{tool}"),
    )


@pytest.fixture
def write_manifest(context):
    """Write a manifest file for a target kind and return its path."""
    def _write(kind, text):
        path = Path(context.manifests.path(kind))
        path.write_text(text)
        return path
    return _write


@pytest.fixture(autouse=True)
def reconverge_log_level():
    """Keep INFO records flowing regardless of how the root logger was set up."""
    logger = logging.getLogger("reconverge")
    previous = logger.level
    logger.setLevel(logging.INFO)
    yield
    logger.setLevel(previous)
