"""
Backup executor - runs one complete backup.

Workflow:
1. Make sure the backup directory exists and is writable
2. Keep the worlds that currently exist
3. Write backup-<timestamp>.zip
4. Rotate old backups (failures only produce a warning)
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from worldsnap.models import BackupRecord, BackupResult, LogHooks
from .compression import create_archive, generate_archive_filename
from .retention import RetentionManager, RotationError
from .sources import filter_existing
from .storage import LocalStorage


STATE_PENDING = 'pending'
STATE_VALIDATING = 'validating'
STATE_FILTERING = 'filtering'
STATE_ARCHIVING = 'archiving'
STATE_ROTATING = 'rotating'
STATE_SKIPPED = 'skipped'
STATE_SUCCESS = 'success'
STATE_FAILED = 'failed'


logger = logging.getLogger(__name__)


class BackupExecutor:
    """
    Orchestrates a backup of a set of world directories.
    """

    def __init__(
        self,
        worlds: Sequence[str],
        backup_dir: Optional[str] = None,
        retention_count: int = 0,
        exclude_patterns: Optional[Sequence[str]] = None,
        hooks: Optional[LogHooks] = None
    ):
        """
        Initialize backup executor.

        Args:
            worlds: Candidate world directories, archived in this order
            backup_dir: Backup root (default: "backups")
            retention_count: Backups to keep after rotation (<= 0 keeps all)
            exclude_patterns: Base name patterns left out of the archive
            hooks: Info/warn logging callbacks (default: this module's logger)
        """
        self.worlds = list(worlds)
        self.storage = LocalStorage(backup_dir)
        self.retention_count = retention_count
        self.exclude_patterns = exclude_patterns
        self.hooks = hooks or LogHooks.from_logger(logger)
        self.state = STATE_PENDING
        self.archive_path = None
        self.logs = []

    def execute(self) -> BackupResult:
        """
        Execute the backup.

        Returns:
            BackupResult with status 'success', or 'skipped' if none of the
            worlds exist

        Raises:
            DirectoryError: If the backup directory is unusable
            ArchiveCreationError: If the archive cannot be written
        """
        result = BackupResult(status=STATE_PENDING, started_at=datetime.now())

        try:
            self.state = STATE_VALIDATING
            self.storage.ensure_usable()

            self.state = STATE_FILTERING
            existing = filter_existing(self.worlds)
            if not existing:
                self._log("No worlds found to backup, skipping")
                return self._finish(result, STATE_SKIPPED)
            result.worlds = existing

            self.state = STATE_ARCHIVING
            self.archive_path = self.storage.get_full_path(generate_archive_filename())
            self._log(f"Creating backup: {self.archive_path}")
            create_archive(self.archive_path, existing, self.exclude_patterns)
            result.archive_path = self.archive_path
            self._log("Backup created successfully")
        except Exception:
            self.state = STATE_FAILED
            raise

        self.state = STATE_ROTATING
        manager = RetentionManager(self.storage, log=self._log)
        try:
            result.deleted = manager.rotate(self.retention_count)
        except RotationError as e:
            result.deleted = e.deleted
            result.warnings.append(self._warn(f"Failed to rotate backups: {e}"))

        return self._finish(result, STATE_SUCCESS)

    def _finish(self, result: BackupResult, state: str) -> BackupResult:
        self.state = state
        result.status = state
        result.completed_at = datetime.now()
        result.logs = list(self.logs)
        return result

    def _log(self, message: str):
        """
        Add a log message with timestamp and pass it to the info hook.

        Args:
            message: Log message
        """
        self._record(message)
        self.hooks.info(message)

    def _warn(self, message: str) -> str:
        self._record(f"Warning: {message}")
        self.hooks.warn(message)
        return message

    def _record(self, message: str):
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        self.logs.append(f"[{timestamp}] {message}")


def perform_backup(
    worlds: Sequence[str],
    backup_dir: Optional[str] = None,
    retention_count: int = 0,
    exclude_patterns: Optional[Sequence[str]] = None,
    hooks: Optional[LogHooks] = None
) -> BackupResult:
    """
    Back up worlds into backup_dir and apply the retention limit.

    Returns:
        BackupResult (status 'success' or 'skipped')

    Raises:
        DirectoryError: If the backup directory is unusable
        ArchiveCreationError: If the archive cannot be written
    """
    executor = BackupExecutor(
        worlds,
        backup_dir=backup_dir,
        retention_count=retention_count,
        exclude_patterns=exclude_patterns,
        hooks=hooks
    )
    return executor.execute()


def list_backups(backup_dir: Optional[str] = None) -> List[BackupRecord]:
    """Return the backups in backup_dir, newest first."""
    records = LocalStorage(backup_dir).list_backups()
    return sorted(records, key=lambda record: record.sort_key, reverse=True)
