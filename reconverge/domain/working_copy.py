"""
Observed state of a repository working copy on disk.
"""

from enum import Enum
from pathlib import Path


class WorkingCopyState(Enum):
    ABSENT = "absent"
    VERSIONED = "versioned"
    UNVERSIONED = "unversioned"

    @classmethod
    def inspect(cls, path: Path) -> 'WorkingCopyState':
        """Classify ``path`` by looking for git metadata."""
        path = Path(path)
        if not path.exists() and not path.is_symlink():
            return cls.ABSENT
        if (path / ".git").exists():
            return cls.VERSIONED
        return cls.UNVERSIONED
