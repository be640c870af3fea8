"""
Service layer for reconverge.

Contains the convergence logic that drives domain objects and infrastructure:
- ConvergenceDriver: Stage ordering and per-stage failure isolation
- Package installers: apt, snap and pipx
- RepositorySynchronizer: Git working copies
- ReleaseResolver: GitHub release assets

Services receive a RunContext and record their outcome on a StageResult.
"""

from .capability_probe import CapabilityProbe
from .convergence_service import STAGE_NAMES, ConvergenceDriver
from .host_service import BaseCapabilityInstaller, Cleanup, PostInstallHooks
from .package_service import (
    LanguagePackageInstaller,
    SandboxPackageInstaller,
    SystemPackageInstaller,
    SystemRepositoryRegistrar,
)
from .release_service import ReleaseResolver
from .repo_sync_service import RepositorySynchronizer, SyncError

__all__ = [
    'CapabilityProbe',
    'ConvergenceDriver',
    'STAGE_NAMES',
    'BaseCapabilityInstaller',
    'Cleanup',
    'PostInstallHooks',
    'LanguagePackageInstaller',
    'SandboxPackageInstaller',
    'SystemPackageInstaller',
    'SystemRepositoryRegistrar',
    'ReleaseResolver',
    'RepositorySynchronizer',
    'SyncError',
]
