"""
Local backup directory handling.

LocalStorage owns the backup root: it makes sure the directory exists and
is writable, lists the finished archives inside it and deletes them on
behalf of the retention manager. It never creates or renames archives.
"""

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import List

from worldsnap.models import BackupRecord


DEFAULT_BACKUP_DIR = 'backups'
BACKUP_PATTERN = 'backup-*.zip'
PROBE_FILENAME = '.write-test'


class DirectoryError(Exception):
    """Raised when the backup directory cannot be created or written to."""
    pass


class StorageError(Exception):
    """Raised when listing or deleting backups fails."""
    pass


class LocalStorage:
    """
    Handler for the local backup directory.

    Archives live directly under base_path:
    {base_path}/backup-YYYY-MM-DD_HH-MM-SS.zip
    """

    def __init__(self, base_path: str = DEFAULT_BACKUP_DIR):
        """
        Initialize local storage handler.

        Args:
            base_path: Backup root directory (defaults to "backups")
        """
        self.base_path = Path(base_path or DEFAULT_BACKUP_DIR)

    def ensure_usable(self) -> Path:
        """
        Create the backup directory if needed and confirm it is writable.

        A probe file is written and removed again. Directories created here
        are left in place even if the probe fails.

        Returns:
            The backup directory path

        Raises:
            DirectoryError: If the directory cannot be created, written to,
                or the probe file cannot be removed
        """
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryError(f"Failed to create backup directory {self.base_path}: {e}") from e

        probe = self.base_path / PROBE_FILENAME
        try:
            probe.write_bytes(b'test')
        except OSError as e:
            raise DirectoryError(f"Backup directory is not writable: {self.base_path}: {e}") from e

        try:
            probe.unlink()
        except OSError as e:
            raise DirectoryError(f"Failed to clean up test file {probe}: {e}") from e

        return self.base_path

    def list_backups(self) -> List[BackupRecord]:
        """
        List finished archives in the backup directory.

        Only direct, non-directory entries named backup-*.zip are returned,
        in directory enumeration order. Entries that disappear before they
        can be stat'ed are skipped.

        Raises:
            StorageError: If the directory cannot be read
        """
        records = []

        try:
            with os.scandir(self.base_path) as entries:
                for entry in entries:
                    if entry.is_dir(follow_symlinks=False):
                        continue
                    if not fnmatchcase(entry.name, BACKUP_PATTERN):
                        continue
                    try:
                        stat = entry.stat(follow_symlinks=False)
                    except FileNotFoundError:
                        continue

                    records.append(BackupRecord(
                        name=entry.name,
                        path=entry.path,
                        mtime_ns=stat.st_mtime_ns,
                        size=stat.st_size
                    ))
        except OSError as e:
            raise StorageError(f"Failed to read backup directory {self.base_path}: {e}") from e

        return records

    def delete(self, name: str):
        """
        Delete an archive from the backup directory.

        Args:
            name: File name of the archive (no directory part)

        Raises:
            StorageError: If deletion fails
        """
        full_path = self.base_path / name

        try:
            full_path.unlink()
        except PermissionError as e:
            raise StorageError(f"Permission denied deleting {full_path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to remove backup file {full_path}: {e}") from e

    def get_full_path(self, name: str) -> str:
        """Return the filesystem path of an archive name."""
        return str(self.base_path / name)


def ensure_usable(root: str) -> Path:
    """Create root if needed and verify it accepts writes."""
    return LocalStorage(root).ensure_usable()
