"""
reconverge - Declarative host provisioning from plain-text manifests.

reconverge reads one manifest per package source and converges the local
machine to it: apt packages and sources, snap and pipx packages, git
working copies, and .deb assets from the latest GitHub releases. Every run
reconciles from scratch; a failing stage or item never stops the rest.

Quick Start:
    from reconverge import RunContext, ConvergenceDriver, load_config

    context = RunContext.from_config(load_config())
    with context.run_log:
        report = ConvergenceDriver(context).run()

    for stage in report.failed_stages:
        print(stage.stage, stage.error or stage.errors)

Manifests (under ~/.config by default):
    packages.apt       - one apt package per line
    repositories.apt   - one apt source per line
    packages.snap      - snap package, optionally followed by --flags
    packages.pip       - one pipx package per line
    repositories.git   - url|directory|command
    releases.github    - owner/name|asset-pattern|label
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    TargetKind,
    PackageItem,
    RepositoryItem,
    ReleaseItem,
    OperationStatus,
    OperationDetail,
    StageResult,
    RunReport,
)

# Services
from .context import RunContext
from .services import ConvergenceDriver, STAGE_NAMES

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "TargetKind",
    "PackageItem",
    "RepositoryItem",
    "ReleaseItem",
    "OperationStatus",
    "OperationDetail",
    "StageResult",
    "RunReport",
    # Services
    "RunContext",
    "ConvergenceDriver",
    "STAGE_NAMES",
    # Configuration
    "load_config",
    "save_config",
]
