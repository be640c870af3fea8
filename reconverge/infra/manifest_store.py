"""
Manifest file access for reconverge.

Manifests live under one directory (``~/.config`` by default), one file per
target kind. A missing file is an empty manifest, never an error.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from ..domain.manifest import (
    DEFAULT_RELEASE_PATTERN,
    ParsedManifest,
    TargetKind,
    parse_manifest,
    significant_lines,
)

logger = logging.getLogger(__name__)

DEFAULT_FILENAMES = {
    TargetKind.SYSTEM_PACKAGE: "packages.apt",
    TargetKind.SYSTEM_REPOSITORY: "repositories.apt",
    TargetKind.SANDBOX_PACKAGE: "packages.snap",
    TargetKind.LANGUAGE_PACKAGE: "packages.pip",
    TargetKind.REPOSITORY: "repositories.git",
    TargetKind.RELEASE: "releases.github",
}


class ManifestStore:
    """
    Reads manifests for each target kind.

    Example:
        store = ManifestStore(Path("~/.config"))
        for line in store.load(TargetKind.SYSTEM_PACKAGE):
            print(line)
    """

    def __init__(
        self,
        directory: Path,
        filenames: Optional[Dict[Any, str]] = None,
        default_release_pattern: str = DEFAULT_RELEASE_PATTERN,
    ):
        """
        Initialize ManifestStore.

        Args:
            directory: Directory holding the manifest files
            filenames: Per-kind file names (TargetKind or its value as key)
            default_release_pattern: Asset pattern for release lines that omit one
        """
        self.directory = Path(directory).expanduser()
        self.filenames = dict(DEFAULT_FILENAMES)
        for key, name in (filenames or {}).items():
            self.filenames[TargetKind(key)] = name
        self.default_release_pattern = default_release_pattern

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ManifestStore':
        manifests = config.get('manifests', {})
        return cls(
            Path(manifests.get('directory', '~/.config')),
            filenames=manifests.get('files'),
            default_release_pattern=config.get('releases', {}).get('default_pattern', DEFAULT_RELEASE_PATTERN),
        )

    def path(self, kind: TargetKind) -> Path:
        return self.directory / self.filenames[kind]

    def exists(self, kind: TargetKind) -> bool:
        return self.path(kind).is_file()

    def any_exists(self) -> bool:
        return any(self.exists(kind) for kind in TargetKind)

    def load(self, kind: TargetKind) -> List[str]:
        """Significant lines of the manifest for ``kind``, in file order."""
        path = self.path(kind)
        if not path.is_file():
            logger.info(f"No {kind.value} manifest found at {path}")
            return []
        with open(path, 'r', encoding='utf-8') as f:
            return significant_lines(f)

    def parse(self, kind: TargetKind) -> ParsedManifest:
        """Load and parse the manifest for ``kind``."""
        return parse_manifest(kind, self.load(kind), self.default_release_pattern)
