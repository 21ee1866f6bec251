"""
Backup routes - list archives and run a backup now.

Also registers the `flask backups` CLI group.
"""

import os

import click
from flask import Blueprint, current_app, jsonify

from worldsnap.backup.executor import list_backups
from worldsnap.backup.storage import DirectoryError, StorageError
from worldsnap.backup.compression import ArchiveCreationError
from worldsnap.scheduler import BackupInProgressError, run_backup


bp = Blueprint('backups', __name__, url_prefix='/api/backups')


def _configured_backups():
    backup_dir = current_app.config['BACKUP_DIR']
    # Nothing has been backed up yet
    if not os.path.isdir(backup_dir):
        return []
    return list_backups(backup_dir)


@bp.route('/', methods=['GET'])
def get_backups():
    """
    List archives in the backup directory, newest first.

    Returns:
        JSON with backup records, total count and the retention limit
    """
    try:
        records = _configured_backups()
    except StorageError as e:
        return jsonify({'error': str(e)}), 500

    return jsonify({
        'backups': [record.to_dict() for record in records],
        'total': len(records),
        'retention': current_app.config['BACKUP_RETENTION']
    })


@bp.route('/run', methods=['POST'])
def run_backup_now():
    """
    Run a backup immediately and wait for it to finish.

    Returns:
        201 with the result when an archive was written, 200 when there
        was nothing to back up, 409 if a backup is already running,
        500 on failure
    """
    try:
        result = run_backup(current_app)
    except BackupInProgressError as e:
        return jsonify({'error': str(e)}), 409
    except (DirectoryError, ArchiveCreationError) as e:
        current_app.logger.error(f"Manual backup failed: {e}")
        return jsonify({'error': str(e)}), 500

    status_code = 201 if result.archive_path else 200
    return jsonify(result.to_dict()), status_code


@bp.cli.command('run')
def run_command():
    """Run one backup with the configured worlds."""
    try:
        result = run_backup(current_app)
    except (BackupInProgressError, DirectoryError, ArchiveCreationError) as e:
        raise click.ClickException(str(e))

    if result.archive_path:
        click.echo(f"Created {result.archive_path}")
    else:
        click.echo("No worlds found to backup")
    for name in result.deleted:
        click.echo(f"Deleted {name}")
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)


@bp.cli.command('list')
def list_command():
    """List archives in the backup directory, newest first."""
    try:
        records = _configured_backups()
    except StorageError as e:
        raise click.ClickException(str(e))

    if not records:
        click.echo("No backups found")
        return
    for record in records:
        info = record.to_dict()
        click.echo(f"{record.name}  {info['size_mb']:.2f} MB  {info['modified_at']}")
