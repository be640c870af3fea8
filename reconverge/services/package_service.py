"""
Package installation services for reconverge.

One installer per package source kind:
- SystemRepositoryRegistrar: foreign architectures and apt sources
- SystemPackageInstaller: one batched apt transaction
- SandboxPackageInstaller: snap packages, one at a time
- LanguagePackageInstaller: pipx packages, one at a time

Each installer fills in the StageResult it is given. Per-item failures are
recorded on the result; a failure that breaks the whole stage (batched
install, missing capability) propagates to the caller.
"""

import logging
from typing import TYPE_CHECKING, List

from ..domain.manifest import PackageItem, ParsedManifest, TargetKind
from ..domain.operation import OperationDetail, OperationStatus, StageResult
from ..infra.command_runner import ExternalCommandError

if TYPE_CHECKING:
    from ..context import RunContext

logger = logging.getLogger(__name__)

PIPX_ENSUREPATH_MARKER = "pipx-ensurepath.done"


def record_invalid(parsed: ParsedManifest, result: StageResult) -> None:
    """Log and record manifest lines that failed to parse."""
    for line, reason in parsed.invalid:
        logger.error(f"Skipping invalid {parsed.kind.value} line {line!r}: {reason}")
        result.add_detail(OperationDetail(
            item=line,
            kind=parsed.kind.value,
            status=OperationStatus.FAILED,
            action="parse_failed",
            error=reason,
        ))


def nothing_to_do(result: StageResult, message: str) -> StageResult:
    logger.info(message)
    result.skipped = True
    return result


class _PackageStage:
    """Shared plumbing for installers that read one package manifest."""

    kind: TargetKind
    label: str

    def __init__(self, context: 'RunContext'):
        self.context = context

    def _load(self, result: StageResult) -> List[PackageItem]:
        parsed = self.context.manifests.parse(self.kind)
        record_invalid(parsed, result)
        return list(parsed.items)

    def _install_each(self, items: List[PackageItem], result: StageResult, install) -> None:
        """Install items one by one; a failure abandons only that item."""
        for item in items:
            try:
                install(item)
            except ExternalCommandError as e:
                logger.error(f"Failed to install {self.label} package {item.name}: {e}")
                result.add_detail(OperationDetail(
                    item=item.name,
                    kind=self.kind.value,
                    status=OperationStatus.FAILED,
                    action="install_failed",
                    error=str(e),
                ))
            else:
                result.add_detail(OperationDetail(
                    item=item.name,
                    kind=self.kind.value,
                    status=OperationStatus.SUCCESS,
                    action="installed",
                    message=item.options,
                ))


class SystemRepositoryRegistrar(_PackageStage):
    """Registers apt package sources before anything is installed from them."""

    kind = TargetKind.SYSTEM_REPOSITORY
    label = "APT repository"

    def run(self, result: StageResult) -> StageResult:
        repositories = self._load(result)
        path = self.context.manifests.path(self.kind)
        if not repositories:
            return nothing_to_do(result, "No repositories to add.")

        logger.info(f"📦 Adding APT repositories from {path}...")
        apt = self.context.apt
        for arch in self.context.config.get('apt', {}).get('foreign_architectures', []):
            apt.add_architecture(arch)

        for repo in repositories:
            logger.info(f"Adding repository: {repo.name}")
            try:
                apt.add_repository(repo.name)
            except ExternalCommandError as e:
                logger.error(f"Failed to add repository {repo.name}: {e}")
                result.add_detail(OperationDetail(
                    item=repo.name,
                    kind=self.kind.value,
                    status=OperationStatus.FAILED,
                    action="add_failed",
                    error=str(e),
                ))
            else:
                result.add_detail(OperationDetail(
                    item=repo.name,
                    kind=self.kind.value,
                    status=OperationStatus.SUCCESS,
                    action="added",
                ))

        apt.update()
        return result


class SystemPackageInstaller(_PackageStage):
    """
    Installs every declared apt package in one transaction.

    Batching lets apt resolve dependencies across the whole set; as a
    consequence a failure fails the stage, not a single package.
    """

    kind = TargetKind.SYSTEM_PACKAGE
    label = "APT"

    def run(self, result: StageResult) -> StageResult:
        packages = self._load(result)
        if not packages:
            return nothing_to_do(result, "No APT packages to install.")

        names = [p.name for p in packages]
        logger.info(f"📦 Installing {len(names)} APT packages from {self.context.manifests.path(self.kind)}...")
        self.context.apt.install(names)

        for name in names:
            result.add_detail(OperationDetail(
                item=name,
                kind=self.kind.value,
                status=OperationStatus.SUCCESS,
                action="installed",
            ))
        return result


class SandboxPackageInstaller(_PackageStage):
    """Installs snap packages individually, passing option strings through."""

    kind = TargetKind.SANDBOX_PACKAGE
    label = "SNAP"

    def run(self, result: StageResult) -> StageResult:
        packages = self._load(result)
        if not packages:
            return nothing_to_do(result, "No SNAP packages to install.")

        logger.info(f"📦 Installing SNAP packages from {self.context.manifests.path(self.kind)}...")

        def install(item: PackageItem) -> None:
            if item.options:
                logger.info(f"Installing snap package {item.name} with flags: {item.options}")
            else:
                logger.info(f"Installing snap package {item.name}")
            self.context.snap.install(item.name, item.options)

        self._install_each(packages, result, install)
        return result


class LanguagePackageInstaller(_PackageStage):
    """Installs pipx packages individually, bootstrapping pipx if needed."""

    kind = TargetKind.LANGUAGE_PACKAGE
    label = "PIP"

    def ensure_path_registered(self) -> None:
        """Run ``pipx ensurepath`` once per machine."""
        marker = self.context.state_directory / PIPX_ENSUREPATH_MARKER
        if marker.exists():
            return
        self.context.pipx.ensurepath()
        marker.parent.mkdir(parents=True, exist_ok=True)
        marker.touch()

    def run(self, result: StageResult) -> StageResult:
        packages = self._load(result)
        if not packages:
            return nothing_to_do(result, "No PIP packages to install.")

        logger.info(f"📦 Installing PIP packages from {self.context.manifests.path(self.kind)}...")
        self.context.probe.ensure("pipx", "pipx")
        self.ensure_path_registered()

        def install(item: PackageItem) -> None:
            logger.info(f"Installing pip package: {item.name}")
            self.context.pipx.install(item.name)

        self._install_each(packages, result, install)
        return result
