"""
Backup module for worldsnap.

This module handles the core backup functionality including:
- Backup directory validation
- World filtering and traversal
- Zip archive creation
- Count-based retention
- Execution orchestration
"""

from .executor import BackupExecutor, perform_backup, list_backups
from .sources import filter_existing, walk_world
from .compression import create_archive, ArchiveCreationError
from .storage import LocalStorage, DirectoryError, ensure_usable
from .retention import RetentionManager, RotationError, rotate_backups

__all__ = [
    'BackupExecutor',
    'perform_backup',
    'list_backups',
    'filter_existing',
    'walk_world',
    'create_archive',
    'ArchiveCreationError',
    'LocalStorage',
    'DirectoryError',
    'ensure_usable',
    'RetentionManager',
    'RotationError',
    'rotate_backups'
]
