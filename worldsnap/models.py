"""
Value types shared by the backup engine.

Nothing here is persisted: backup records are re-read from the backup
directory on every call.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional


KIND_FILE = 'file'
KIND_DIRECTORY = 'directory'


@dataclass(frozen=True)
class WalkEntry:
    """One node produced by a world traversal."""

    path: str
    kind: str
    size: int = 0

    @property
    def name(self) -> str:
        return os.path.basename(os.path.normpath(self.path))

    @property
    def is_dir(self) -> bool:
        return self.kind == KIND_DIRECTORY


@dataclass(frozen=True)
class BackupRecord:
    """A finished archive found in the backup directory."""

    name: str
    path: str
    mtime_ns: int
    size: int

    @property
    def modified(self) -> datetime:
        return datetime.fromtimestamp(self.mtime_ns / 1e9)

    @property
    def sort_key(self):
        # Ties on mtime fall back to the name so eviction order is stable
        return (self.mtime_ns, self.name)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'size_bytes': self.size,
            'size_mb': round(self.size / 1024 / 1024, 2),
            'modified_at': self.modified.astimezone().isoformat(),
        }


@dataclass(frozen=True)
class LogHooks:
    """
    The two logging callbacks the backup engine writes to.

    The engine only ever reports progress (info) and non-fatal rotation
    problems (warn); real failures are raised to the caller.
    """

    info: Callable[[str], None]
    warn: Callable[[str], None]

    @classmethod
    def from_logger(cls, logger) -> 'LogHooks':
        return cls(info=logger.info, warn=logger.warning)


@dataclass
class BackupResult:
    """Outcome of one successful (or skipped) backup invocation."""

    status: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    archive_path: Optional[str] = None
    worlds: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    @property
    def archive_name(self) -> Optional[str]:
        if self.archive_path is None:
            return None
        return os.path.basename(self.archive_path)

    def to_dict(self) -> dict:
        return {
            'status': self.status,
            'archive': self.archive_name,
            'archive_path': self.archive_path,
            'worlds': self.worlds,
            'deleted': self.deleted,
            'warnings': self.warnings,
            'started_at': self.started_at.astimezone().isoformat(),
            'completed_at': self.completed_at.astimezone().isoformat() if self.completed_at else None,
            'logs': self.logs,
        }
