"""
Manifest domain objects for reconverge.

A manifest is a plain-text file with one declared item per line. Blank
lines and lines starting with ``#`` are ignored; the remaining
"significant" lines are parsed once, at load time, into typed items.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple, Union

COMMENT_MARKER = "#"
FIELD_SEPARATOR = "|"
OPTION_MARKER = "--"
VCS_SUFFIX = ".git"
DEFAULT_RELEASE_PATTERN = r".*\.deb"

_REPO_ID_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


class TargetKind(Enum):
    """Kinds of declared install targets, one manifest each."""
    SYSTEM_PACKAGE = "system_package"
    SYSTEM_REPOSITORY = "system_repository"
    SANDBOX_PACKAGE = "sandbox_package"
    LANGUAGE_PACKAGE = "language_package"
    REPOSITORY = "repository"
    RELEASE = "release"


class ManifestError(ValueError):
    """Raised when a significant line cannot be parsed for its kind."""

    def __init__(self, kind: TargetKind, line: str, reason: str):
        super().__init__(f"{kind.value}: {reason}: {line!r}")
        self.kind = kind
        self.line = line
        self.reason = reason


@dataclass(frozen=True)
class PackageItem:
    """A declared package, optionally with extra installer flags."""
    name: str
    options: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        result = {'name': self.name}
        if self.options:
            result['options'] = self.options
        return result


@dataclass(frozen=True)
class RepositoryItem:
    """A declared git repository: ``url|directory|command``."""
    url: str
    directory: str
    command: Optional[str] = None

    @property
    def label(self) -> str:
        return self.directory

    def to_dict(self) -> Dict[str, Any]:
        result = {'url': self.url, 'directory': self.directory}
        if self.command:
            result['command'] = self.command
        return result


@dataclass(frozen=True)
class ReleaseItem:
    """A declared release target: ``owner/name|pattern|label``."""
    repo_id: str
    pattern: str = DEFAULT_RELEASE_PATTERN
    label: str = ""

    @property
    def owner(self) -> str:
        return self.repo_id.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repo_id.split("/", 1)[1]

    def matches(self, url: str) -> bool:
        """True if the asset URL matches the pattern at its end."""
        return re.search(f"(?:{self.pattern})$", url) is not None

    def to_dict(self) -> Dict[str, Any]:
        return {'repo': self.repo_id, 'pattern': self.pattern, 'label': self.label}


ParsedLine = Union[PackageItem, RepositoryItem, ReleaseItem]


@dataclass
class ParsedManifest:
    """Items parsed from one manifest, plus the lines that failed to parse."""
    kind: TargetKind
    items: List[ParsedLine] = field(default_factory=list)
    invalid: List[Tuple[str, str]] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.items or self.invalid)


def is_significant(line: str) -> bool:
    """A line counts unless it is blank or a comment."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith(COMMENT_MARKER)


def significant_lines(lines) -> List[str]:
    """Filter to significant lines, stripped, preserving order and duplicates."""
    return [line.strip() for line in lines if is_significant(line)]


def default_directory(url: str) -> str:
    """Directory name for a repository URL: last path segment minus ``.git``."""
    base = url.rstrip("/").rsplit("/", 1)[-1]
    # scp-style remotes (git@host:repo.git) have no slash before the name
    base = base.rsplit(":", 1)[-1]
    if base.endswith(VCS_SUFFIX):
        base = base[:-len(VCS_SUFFIX)]
    return base


def _split_fields(line: str) -> List[str]:
    fields = [part.strip() for part in line.split(FIELD_SEPARATOR, 2)]
    return fields + [""] * (3 - len(fields))


def parse_package(line: str, split_options: bool = False) -> PackageItem:
    """Parse a package line; only sandbox packages carry an option string."""
    line = line.strip()
    if split_options and OPTION_MARKER in line:
        name, _, options = line.partition(" ")
        return PackageItem(name=name, options=options.strip() or None)
    return PackageItem(name=line)


def parse_repository(line: str) -> RepositoryItem:
    url, directory, command = _split_fields(line)
    if not url:
        raise ManifestError(TargetKind.REPOSITORY, line, "missing repository URL")
    directory = directory or default_directory(url)
    if not directory or directory in (".", "..") or "/" in directory:
        raise ManifestError(TargetKind.REPOSITORY, line, "invalid directory name")
    return RepositoryItem(url=url, directory=directory, command=command or None)


def parse_release(line: str, default_pattern: str = DEFAULT_RELEASE_PATTERN) -> ReleaseItem:
    repo_id, pattern, label = _split_fields(line)
    if not _REPO_ID_RE.match(repo_id):
        raise ManifestError(TargetKind.RELEASE, line, "repository must be owner/name")
    pattern = pattern or default_pattern
    try:
        re.compile(pattern)
    except re.error as e:
        raise ManifestError(TargetKind.RELEASE, line, f"invalid asset pattern ({e})") from e
    return ReleaseItem(repo_id=repo_id, pattern=pattern, label=label or repo_id.split("/", 1)[1])


def parse_line(kind: TargetKind, line: str, default_pattern: str = DEFAULT_RELEASE_PATTERN) -> ParsedLine:
    """Parse one significant line into the item type for ``kind``."""
    if kind == TargetKind.REPOSITORY:
        return parse_repository(line)
    if kind == TargetKind.RELEASE:
        return parse_release(line, default_pattern)
    return parse_package(line, split_options=kind == TargetKind.SANDBOX_PACKAGE)


def parse_manifest(kind: TargetKind, lines, default_pattern: str = DEFAULT_RELEASE_PATTERN) -> ParsedManifest:
    """Parse already-filtered significant lines, collecting invalid ones."""
    parsed = ParsedManifest(kind=kind)
    for line in lines:
        try:
            parsed.items.append(parse_line(kind, line, default_pattern))
        except ManifestError as e:
            parsed.invalid.append((line, e.reason))
    return parsed
