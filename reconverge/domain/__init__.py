"""
Domain layer for reconverge.

Contains pure domain objects with no I/O or side effects:
- TargetKind and the parsed manifest items (PackageItem, RepositoryItem, ReleaseItem)
- WorkingCopyState: observed state of a repository checkout
- Release / ReleaseAsset: latest release metadata from the hosting API
- OperationDetail / StageResult / RunReport: structured run outcome
"""

from .manifest import (
    TargetKind,
    ManifestError,
    PackageItem,
    RepositoryItem,
    ReleaseItem,
    ParsedLine,
    ParsedManifest,
)
from .operation import OperationStatus, OperationDetail, StageResult, RunReport
from .release import Release, ReleaseAsset
from .working_copy import WorkingCopyState

__all__ = [
    'TargetKind',
    'ManifestError',
    'PackageItem',
    'RepositoryItem',
    'ReleaseItem',
    'ParsedLine',
    'ParsedManifest',
    'OperationStatus',
    'OperationDetail',
    'StageResult',
    'RunReport',
    'Release',
    'ReleaseAsset',
    'WorkingCopyState',
]
