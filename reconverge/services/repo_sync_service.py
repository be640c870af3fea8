"""
Repository synchronisation service for reconverge.

Converges a local working copy to its declared remote:

    absent       -> clone
    versioned    -> fetch --all, reset --hard to upstream, pull --ff-only
    unversioned  -> delete, recreate, clone

and then runs the repository's post-sync command, if one is declared. A
versioned copy whose origin is not the declared URL is treated like an
unversioned one.
Each repository is an independent unit of work.
"""

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..domain.manifest import RepositoryItem, TargetKind
from ..domain.operation import OperationDetail, OperationStatus, StageResult
from ..domain.working_copy import WorkingCopyState
from ..infra.command_runner import ExternalCommandError
from .package_service import nothing_to_do, record_invalid

if TYPE_CHECKING:
    from ..context import RunContext

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """A synchronisation step that is not an external command failed."""


def same_remote(configured: Optional[str], declared: str) -> bool:
    """True if the working copy's origin is the declared URL."""
    if not configured:
        return False
    return configured.rstrip("/") == declared.rstrip("/")


class RepositorySynchronizer:
    """
    Clones or updates every declared repository under one base directory.

    Example:
        sync = RepositorySynchronizer(context)
        detail = sync.sync(RepositoryItem(url="https://github.com/o/r.git", directory="r"))
    """

    def __init__(self, context: 'RunContext', base_directory: Optional[Path] = None):
        self.context = context
        self.git = context.git
        self.base_directory = Path(base_directory) if base_directory else context.repositories_directory

    def target_for(self, item: RepositoryItem) -> Path:
        return self.base_directory / item.directory

    def _clone(self, item: RepositoryItem, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        self.git.clone(item.url, str(target))

    def _update(self, target: Path) -> None:
        self.git.fetch_all(str(target))
        upstream = self.git.upstream_ref(str(target))
        if not upstream:
            raise SyncError(f"cannot determine upstream branch of {target}")
        self.git.reset_hard(str(target), upstream)
        self.git.pull(str(target))

    def _reclone(self, item: RepositoryItem, target: Path) -> None:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
        target.mkdir(parents=True)
        self.git.clone(item.url, str(target))

    def converge(self, item: RepositoryItem) -> str:
        """
        Bring one working copy to the declared state.

        Returns:
            The action taken: "cloned", "updated" or "recloned"

        Raises:
            ExternalCommandError, SyncError, OSError on any failed step
        """
        target = self.target_for(item)
        state = WorkingCopyState.inspect(target)
        logger.info(f"Syncing {item.url} to {target} ({state.value})")

        if state == WorkingCopyState.ABSENT:
            self._clone(item, target)
            action = "cloned"
        elif state == WorkingCopyState.VERSIONED:
            origin = self.git.remote_url(str(target))
            if same_remote(origin, item.url):
                logger.info(f"Repository already exists at {target}, updating instead of cloning...")
                self._update(target)
                action = "updated"
            else:
                logger.info(f"{target} tracks {origin or 'no origin'} instead of {item.url}, cloning fresh...")
                self._reclone(item, target)
                action = "recloned"
        else:
            logger.info(f"{target} exists but is not a git repository, removing and cloning fresh...")
            self._reclone(item, target)
            action = "recloned"

        if item.command:
            # Free-form shell from a trusted manifest
            logger.info(f"Running install command for {item.directory}")
            self.context.runner.run_shell(item.command, cwd=str(target))

        return action

    def sync(self, item: RepositoryItem) -> OperationDetail:
        """Converge one repository, converting any failure into a FAILED detail."""
        try:
            action = self.converge(item)
        except (ExternalCommandError, SyncError, OSError) as e:
            logger.error(f"Failed to sync {item.url} into {self.target_for(item)}: {e}")
            return OperationDetail(
                item=item.directory,
                kind=TargetKind.REPOSITORY.value,
                status=OperationStatus.FAILED,
                action="sync_failed",
                error=str(e),
                metadata={'url': item.url},
            )
        return OperationDetail(
            item=item.directory,
            kind=TargetKind.REPOSITORY.value,
            status=OperationStatus.SUCCESS,
            action=action,
            metadata={'url': item.url, 'path': str(self.target_for(item))},
        )

    def run(self, result: StageResult) -> StageResult:
        parsed = self.context.manifests.parse(TargetKind.REPOSITORY)
        record_invalid(parsed, result)
        if not parsed.items:
            return nothing_to_do(result, "No Git repositories to process.")

        logger.info(f"📦 Processing Git repositories from {self.context.manifests.path(TargetKind.REPOSITORY)}...")
        self.context.probe.ensure("git", "git")
        self.base_directory.mkdir(parents=True, exist_ok=True)

        for item in parsed.items:
            result.add_detail(self.sync(item))
        return result
