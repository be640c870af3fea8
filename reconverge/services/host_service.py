"""
Host-level stages that bracket the per-kind installers: base capabilities
before anything else, post-install hooks and cleanup at the end.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List

from ..domain.manifest import TargetKind
from ..domain.operation import OperationDetail, OperationStatus, StageResult
from ..infra.command_runner import ExternalCommandError
from .package_service import nothing_to_do

if TYPE_CHECKING:
    from ..context import RunContext

logger = logging.getLogger(__name__)


class BaseCapabilityInstaller:
    """Refreshes apt metadata and installs the tools later stages rely on."""

    def __init__(self, context: 'RunContext'):
        self.context = context

    def run(self, result: StageResult) -> StageResult:
        packages = self.context.config.get('apt', {}).get('base_packages', [])
        logger.info("📦 Installing base dependencies...")
        self.context.apt.update()
        if not packages:
            return nothing_to_do(result, "No base packages configured.")
        self.context.apt.install(packages)
        for package in packages:
            result.add_detail(OperationDetail(
                item=package,
                kind="base",
                status=OperationStatus.SUCCESS,
                action="installed",
            ))
        return result


class PostInstallHooks:
    """
    Extra setup for specific declared packages.

    A hook fires when its ``when_language_package`` appears among the
    declared language-tool packages; it then installs its
    ``system_packages`` and logs its ``message``.
    """

    def __init__(self, context: 'RunContext'):
        self.context = context

    @property
    def hooks(self) -> List[Dict[str, Any]]:
        return list(self.context.config.get('hooks') or [])

    def _declared_language_packages(self) -> List[str]:
        parsed = self.context.manifests.parse(TargetKind.LANGUAGE_PACKAGE)
        return [item.name for item in parsed.items]

    def triggered(self) -> List[Dict[str, Any]]:
        declared = self._declared_language_packages()
        return [
            hook for hook in self.hooks
            if hook.get('when_language_package')
            and any(hook['when_language_package'] in name for name in declared)
        ]

    def run(self, result: StageResult) -> StageResult:
        logger.info("Performing additional setup tasks...")
        hooks = self.triggered()
        if not hooks:
            return nothing_to_do(result, "No post-install hooks apply.")

        for hook in hooks:
            name = hook.get('name') or hook['when_language_package']
            logger.info(f"Setting up {name}...")
            try:
                self.context.apt.install(hook.get('system_packages') or [])
            except ExternalCommandError as e:
                logger.error(f"Hook {name} failed: {e}")
                result.add_detail(OperationDetail(
                    item=name,
                    kind="hook",
                    status=OperationStatus.FAILED,
                    action="hook_failed",
                    error=str(e),
                ))
                continue
            if hook.get('message'):
                logger.info(hook['message'])
            result.add_detail(OperationDetail(
                item=name,
                kind="hook",
                status=OperationStatus.SUCCESS,
                action="applied",
            ))
        return result


class Cleanup:
    """Removes packages that are no longer needed."""

    def __init__(self, context: 'RunContext'):
        self.context = context

    def run(self, result: StageResult) -> StageResult:
        logger.info("🧹 Cleaning up...")
        self.context.apt.autoremove()
        return result
