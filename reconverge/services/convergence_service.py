"""
Convergence driver for reconverge.

Runs every stage in a fixed order. Each stage is its own error boundary:
whatever it raises is logged and recorded on its StageResult, and the next
stage runs regardless. Preconditions are the only thing that can stop a run
before it starts.
"""

import logging
import os
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from ..domain.operation import RunReport, StageResult
from ..exit_codes import NO_MANIFESTS, PERMISSION_ERROR, PreconditionError
from .host_service import BaseCapabilityInstaller, Cleanup, PostInstallHooks
from .package_service import (
    LanguagePackageInstaller,
    SandboxPackageInstaller,
    SystemPackageInstaller,
    SystemRepositoryRegistrar,
)
from .release_service import ReleaseResolver
from .repo_sync_service import RepositorySynchronizer

if TYPE_CHECKING:
    from ..context import RunContext

logger = logging.getLogger(__name__)

STAGE_NAMES = [
    "base",
    "system_repositories",
    "system_packages",
    "sandbox_packages",
    "language_packages",
    "repositories",
    "releases",
    "hooks",
    "cleanup",
]


class ConvergenceDriver:
    """
    Drives a whole convergence run.

    Example:
        context = RunContext.from_config(load_config())
        report = ConvergenceDriver(context).run()
        if not report.success:
            for stage in report.failed_stages:
                print(stage.stage, stage.error or stage.errors)
    """

    def __init__(self, context: 'RunContext', geteuid: Optional[Callable[[], int]] = None):
        self.context = context
        self._geteuid = geteuid or os.geteuid

    def stages(self) -> List[Tuple[str, Callable[[StageResult], StageResult]]]:
        ctx = self.context
        return list(zip(STAGE_NAMES, [
            BaseCapabilityInstaller(ctx).run,
            SystemRepositoryRegistrar(ctx).run,
            SystemPackageInstaller(ctx).run,
            SandboxPackageInstaller(ctx).run,
            LanguagePackageInstaller(ctx).run,
            RepositorySynchronizer(ctx).run,
            ReleaseResolver(ctx).run,
            PostInstallHooks(ctx).run,
            Cleanup(ctx).run,
        ]))

    def check_preconditions(self) -> None:
        """
        Raises:
            PreconditionError: when running as root, or when no manifest exists
        """
        if self._geteuid() == 0:
            raise PreconditionError(
                "This script should not be run as root. Run it as a regular user; "
                "privileged steps use sudo.",
                PERMISSION_ERROR,
            )
        if not self.context.manifests.any_exists():
            raise PreconditionError(
                f"No manifest files found in {self.context.manifests.directory}",
                NO_MANIFESTS,
            )

    def run_stage(self, name: str, stage: Callable[[StageResult], StageResult]) -> StageResult:
        result = StageResult(stage=name)
        try:
            stage(result)
        except Exception as e:
            logger.error(f"Stage {name} failed: {e}")
            result.abort(str(e))
        return result

    def run(self) -> RunReport:
        """Check preconditions, then run every stage in order."""
        self.check_preconditions()

        logger.info("✅ Starting package installation setup...")
        report = RunReport()
        for name, stage in self.stages():
            report.stages.append(self.run_stage(name, stage))

        if self.context.log_path:
            logger.info(f"🎉 Setup complete! Review {self.context.log_path} for details.")
        else:
            logger.info("🎉 Setup complete!")
        return report
