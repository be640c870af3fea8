"""
Infrastructure layer for reconverge.

Contains abstractions for external systems:
- CommandRunner: external command execution (with privilege elevation)
- AptBackend / SnapBackend / PipxBackend: package manager invocations
- GitClient: Git command execution
- GitHubClient: GitHub releases API access
- ManifestStore: manifest file access

These provide clean interfaces that can be mocked for testing.
"""

from .command_runner import CommandRunner, CommandResult, ExternalCommandError
from .package_managers import AptBackend, SnapBackend, PipxBackend
from .git_client import GitClient
from .github_client import GitHubClient, RateLimitStatus
from .manifest_store import ManifestStore

__all__ = [
    'CommandRunner',
    'CommandResult',
    'ExternalCommandError',
    'AptBackend',
    'SnapBackend',
    'PipxBackend',
    'GitClient',
    'GitHubClient',
    'RateLimitStatus',
    'ManifestStore',
]
