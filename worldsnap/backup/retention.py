"""
Retention policy enforcement for backups.

Keeps at most `limit` archives in the backup directory by deleting the
oldest ones. Only files named backup-*.zip are considered; anything else
in the directory is left alone.
"""

from typing import Callable, List, Optional

from worldsnap.models import BackupRecord
from .storage import LocalStorage, StorageError


class RotationError(Exception):
    """
    Raised when old backups cannot be listed or deleted.

    Attributes:
        deleted: Names removed before the failure
    """

    def __init__(self, message: str, deleted: Optional[List[str]] = None):
        super().__init__(message)
        self.deleted = list(deleted or [])


class RetentionManager:
    """
    Manages count-based retention for one backup directory.
    """

    def __init__(self, storage: LocalStorage, log: Optional[Callable[[str], None]] = None):
        """
        Initialize retention manager.

        Args:
            storage: Backup directory handler
            log: Called with a message for every deleted backup
        """
        self.storage = storage
        self._log = log or (lambda message: None)

    @staticmethod
    def select_expired(records: List[BackupRecord], limit: int) -> List[BackupRecord]:
        """
        Pick the records that exceed the retention limit.

        Oldest first, by modification time and then by name.

        Args:
            records: Backups currently on disk
            limit: Number of backups to keep (<= 0 keeps everything)

        Returns:
            Records to delete, in deletion order
        """
        if limit <= 0 or len(records) <= limit:
            return []

        ordered = sorted(records, key=lambda record: record.sort_key)
        return ordered[:len(ordered) - limit]

    def rotate(self, limit: int) -> List[str]:
        """
        Delete the oldest backups beyond the retention limit.

        Deletion stops at the first failure; remaining surplus backups stay
        on disk until the next rotation.

        Args:
            limit: Number of backups to keep (<= 0 disables rotation)

        Returns:
            Names of deleted backups

        Raises:
            RotationError: If listing or a deletion fails
        """
        if limit <= 0:
            return []

        try:
            records = self.storage.list_backups()
        except StorageError as e:
            raise RotationError(str(e)) from e

        deleted = []
        for record in self.select_expired(records, limit):
            self._log(f"Deleting old backup: {record.name}")
            try:
                self.storage.delete(record.name)
            except StorageError as e:
                raise RotationError(str(e), deleted=deleted) from e
            deleted.append(record.name)

        return deleted


def rotate_backups(backup_dir: str, limit: int, log: Optional[Callable[[str], None]] = None) -> List[str]:
    """
    Enforce the retention limit on a backup directory.

    Returns:
        Names of deleted backups (see RetentionManager.rotate)
    """
    manager = RetentionManager(LocalStorage(backup_dir), log=log)
    return manager.rotate(limit)
