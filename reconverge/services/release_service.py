"""
Release resolution service for reconverge.

For each declared release target: look up the latest GitHub release,
pick the first asset whose download URL matches the target's pattern,
download it into a private temporary directory and install it with apt.
"Latest" is resolved on every run; nothing is cached.
"""

import logging
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

from ..domain.manifest import ReleaseItem, TargetKind
from ..domain.operation import OperationDetail, OperationStatus, StageResult
from ..infra.command_runner import ExternalCommandError
from .package_service import nothing_to_do, record_invalid

if TYPE_CHECKING:
    from ..context import RunContext

logger = logging.getLogger(__name__)


def asset_filename(url: str) -> str:
    """File name to store a downloaded asset under."""
    name = Path(unquote(urlparse(url).path)).name
    return name or "asset.deb"


class ReleaseResolver:
    """
    Installs the newest release asset of each declared repository.

    Example:
        resolver = ReleaseResolver(context)
        detail = resolver.resolve_and_install(ReleaseItem("owner/tool", r".*amd64\\.deb", "Tool"))
    """

    def __init__(self, context: 'RunContext'):
        self.context = context
        self.github = context.github
        self.apt = context.apt

    def _failed(self, item: ReleaseItem, action: str, error: str, **metadata) -> OperationDetail:
        logger.error(error)
        return OperationDetail(
            item=item.label,
            kind=TargetKind.RELEASE.value,
            status=OperationStatus.FAILED,
            action=action,
            error=error,
            metadata={'repo': item.repo_id, **metadata},
        )

    def resolve_and_install(self, item: ReleaseItem) -> OperationDetail:
        """
        Resolve, download and install the latest matching asset.

        Never raises for per-target problems; the returned detail is FAILED
        instead, so sibling targets are unaffected.
        """
        logger.info(f"📦 Installing latest {item.label} release from GitHub ({item.repo_id})...")

        logger.info(f"Fetching latest release information for {item.repo_id}")
        release = self.github.get_latest_release(item.repo_id)
        if release is None:
            return self._failed(item, "fetch_failed", f"Failed to fetch release information for {item.repo_id}")

        asset = release.find_asset(item.matches)
        if asset is None:
            return self._failed(
                item, "no_matching_asset",
                f"No matching asset found for {item.repo_id} with pattern: {item.pattern}",
                version=release.version,
            )

        logger.info(f"Found version {release.version}")

        with tempfile.TemporaryDirectory(prefix="reconverge-release-") as temp_dir:
            package_path = Path(temp_dir) / asset_filename(asset.url)
            logger.info(f"Downloading {package_path.name} from {asset.url}")
            if not self.github.download(asset.url, package_path):
                return self._failed(
                    item, "download_failed", f"Failed to download {package_path.name}",
                    version=release.version,
                )

            logger.info(f"Installing {package_path.name}")
            try:
                self.apt.install_file(package_path)
            except ExternalCommandError as e:
                return self._failed(
                    item, "install_failed", f"Failed to install {package_path.name}: {e}",
                    version=release.version,
                )

        logger.info(f"Successfully installed {item.label} {release.version}")
        return OperationDetail(
            item=item.label,
            kind=TargetKind.RELEASE.value,
            status=OperationStatus.SUCCESS,
            action="installed",
            metadata={'repo': item.repo_id, 'version': release.version, 'asset': asset.name},
        )

    def run(self, result: StageResult) -> StageResult:
        parsed = self.context.manifests.parse(TargetKind.RELEASE)
        record_invalid(parsed, result)
        if not parsed.items:
            return nothing_to_do(result, "No GitHub releases to process.")

        logger.info(f"📦 Processing GitHub releases from {self.context.manifests.path(TargetKind.RELEASE)}...")
        for item in parsed.items:
            result.add_detail(self.resolve_and_install(item))
        return result
