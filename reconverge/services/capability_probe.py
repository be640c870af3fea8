"""
Capability probe: make sure an external tool exists before first use.
"""

import shutil
import logging
from typing import Callable, Optional, Set

from ..infra.package_managers import AptBackend

logger = logging.getLogger(__name__)


class CapabilityProbe:
    """
    Installs a tool's system package when the tool is not on PATH.

    Resolved tools are remembered, so repeated ``ensure`` calls for the
    same tool are no-ops. Install failures propagate as
    ExternalCommandError to the stage that asked for the tool.
    """

    def __init__(self, apt: AptBackend, which: Optional[Callable[[str], Optional[str]]] = None):
        self.apt = apt
        self.which = which or shutil.which
        self._present: Set[str] = set()

    def is_present(self, tool: str) -> bool:
        return tool in self._present or self.which(tool) is not None

    def ensure(self, tool: str, package: Optional[str] = None) -> None:
        """Install ``package`` (defaults to ``tool``) unless ``tool`` resolves."""
        if tool in self._present:
            return
        if self.which(tool) is None:
            package = package or tool
            logger.info(f"Installing {package}...")
            self.apt.install([package])
        self._present.add(tool)
