"""
Run context for reconverge.

One RunContext is built per run and handed to every service. It owns the
configuration and the handles to external systems, so tests can swap any of
them for fakes.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .config import get_default_config
from .infra.command_runner import CommandRunner
from .infra.git_client import GitClient
from .infra.github_client import GitHubClient
from .infra.manifest_store import ManifestStore
from .infra.package_managers import AptBackend, PipxBackend, SnapBackend
from .run_log import RunLog
from .services.capability_probe import CapabilityProbe


@dataclass
class RunContext:
    """Configuration plus every external capability a run may use."""
    config: Dict[str, Any]
    runner: CommandRunner
    manifests: ManifestStore
    apt: AptBackend
    snap: SnapBackend
    pipx: PipxBackend
    git: GitClient
    github: GitHubClient
    probe: CapabilityProbe
    run_log: Optional[RunLog] = None

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, runner: Optional[CommandRunner] = None) -> 'RunContext':
        """Wire real infrastructure according to ``config``."""
        config = config or get_default_config()
        runner = runner or CommandRunner(
            privilege_command=config.get('privilege', {}).get('command', 'sudo')
        )
        apt = AptBackend(runner)
        log_config = config.get('logging', {})
        level = logging.getLevelName(str(log_config.get('level', 'INFO')).upper())
        return cls(
            config=config,
            runner=runner,
            manifests=ManifestStore.from_config(config),
            apt=apt,
            snap=SnapBackend(runner),
            pipx=PipxBackend(runner),
            git=GitClient(runner),
            github=GitHubClient.from_config(config),
            probe=CapabilityProbe(apt),
            run_log=RunLog(
                log_config.get('file', '/var/log/package_setup.log'),
                runner,
                level=level if isinstance(level, int) else logging.INFO,
            ),
        )

    @property
    def log_path(self) -> Optional[Path]:
        return self.run_log.path if self.run_log else None

    @property
    def state_directory(self) -> Path:
        return Path(self.config.get('general', {}).get('state_directory', '~/.local/state/reconverge')).expanduser()

    @property
    def repositories_directory(self) -> Path:
        return Path(self.config.get('repositories', {}).get('base_directory', '~/Downloads/git-repos')).expanduser()
