"""
Zip archive creation for world backups.

Archives are written to "<destination>.partial" and renamed into place
only after the central directory has been written, so an interrupted
build never shows up under a backup-*.zip name.
"""

import os
import shutil
import zipfile
from datetime import datetime
from typing import Optional, Sequence

from worldsnap.models import WalkEntry
from .sources import DEFAULT_EXCLUDE_PATTERNS, is_excluded, walk_world


COPY_BUFFER_SIZE = 32 * 1024
PARTIAL_SUFFIX = '.partial'
TIMESTAMP_FORMAT = '%Y-%m-%d_%H-%M-%S'


class ArchiveCreationError(Exception):
    """Raised when archive creation fails."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to archive {path}: {cause}")


def create_archive(
    destination: str,
    worlds: Sequence[str],
    exclude_patterns: Optional[Sequence[str]] = None
) -> str:
    """
    Create a zip archive from world directories.

    Each world is walked depth-first; worlds that are no longer
    directories are skipped. A node whose base name matches an
    exclusion pattern gets no entry of its own, but the walk still goes
    into it, so the children of an excluded directory are archived.

    Args:
        destination: Final archive path
        worlds: World directories, archived in this order
        exclude_patterns: Base name patterns to skip (default: session.lock, *.tmp)

    Returns:
        The destination path

    Raises:
        ArchiveCreationError: If any file cannot be read or the archive
            cannot be written, finalized or moved into place. The partial
            file is left on disk.
    """
    if exclude_patterns is None:
        exclude_patterns = DEFAULT_EXCLUDE_PATTERNS

    destination = os.fspath(destination)
    partial_path = destination + PARTIAL_SUFFIX

    try:
        archive = zipfile.ZipFile(partial_path, 'w', zipfile.ZIP_DEFLATED, strict_timestamps=False)
    except OSError as e:
        raise ArchiveCreationError(partial_path, e) from e

    try:
        with archive:
            for world in worlds:
                # Worlds removed since they were filtered are skipped
                if not os.path.isdir(world):
                    continue
                _add_world(archive, world, exclude_patterns)
    except ArchiveCreationError:
        raise
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        # Central directory or file handle could not be written out
        raise ArchiveCreationError(partial_path, e) from e

    try:
        os.replace(partial_path, destination)
    except OSError as e:
        raise ArchiveCreationError(destination, e) from e

    return destination


def _add_world(archive: zipfile.ZipFile, world: str, exclude_patterns: Sequence[str]):
    """
    Add one world directory tree to the archive.

    Args:
        archive: Open ZipFile
        world: World directory
        exclude_patterns: Base name patterns to skip
    """
    current = world
    try:
        for entry in walk_world(world):
            current = entry.path
            if is_excluded(entry.name, exclude_patterns):
                continue
            _write_entry(archive, entry)
    except OSError as e:
        raise ArchiveCreationError(e.filename or current, e) from e
    except ValueError as e:
        # Names zip cannot encode, such as undecodable bytes on POSIX
        raise ArchiveCreationError(current, e) from e


def _write_entry(archive: zipfile.ZipFile, entry: WalkEntry):
    arcname = to_archive_name(entry.path)
    if not arcname:
        return

    if entry.is_dir:
        archive.write(entry.path, arcname, zipfile.ZIP_STORED)
        return

    zinfo = zipfile.ZipInfo.from_file(entry.path, arcname, strict_timestamps=False)
    zinfo.compress_type = zipfile.ZIP_DEFLATED
    with open(entry.path, 'rb') as src, archive.open(zinfo, 'w') as dest:
        shutil.copyfileobj(src, dest, COPY_BUFFER_SIZE)


def to_archive_name(path: str) -> str:
    """
    Turn a walked path into a zip entry name.

    Separators become forward slashes; drive letters, leading slashes and
    leading ".." segments are dropped so the name is relative to the
    archive root. Directories get their trailing slash from ZipInfo.
    """
    path = os.path.normpath(os.path.splitdrive(os.fspath(path))[1])
    parts = [part for part in path.replace(os.sep, '/').split('/') if part and part != '.']
    while parts and parts[0] == '..':
        parts.pop(0)
    return '/'.join(parts)


def generate_archive_filename(now: Optional[datetime] = None) -> str:
    """
    Generate a standardized archive filename.

    Format: backup-{YYYY-MM-DD_HH-MM-SS}.zip in local time

    Args:
        now: Timestamp to use (default: current local time)

    Returns:
        Filename (without path)
    """
    if now is None:
        now = datetime.now()
    return f"backup-{now.strftime(TIMESTAMP_FORMAT)}.zip"
