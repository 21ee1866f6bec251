"""
Dashboard routes - Overview endpoint.
"""

import os

from flask import Blueprint, current_app, jsonify

from worldsnap.backup.executor import list_backups
from worldsnap.backup.storage import StorageError
from worldsnap.scheduler import get_scheduled_jobs, is_backup_running, is_scheduler_running


bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')


@bp.route('/overview', methods=['GET'])
def get_overview():
    """
    Get dashboard overview statistics.

    Returns:
        JSON with overview stats:
        - worlds: Configured worlds and whether each one exists right now
        - backup_count / total_size_mb: Archives in the backup directory
        - last_backup: Most recent archive
        - retention: Configured retention limit
        - scheduler_status / scheduled_jobs: Scheduler state
    """
    config = current_app.config
    backup_dir = config['BACKUP_DIR']

    worlds = [
        {'path': world, 'exists': os.path.isdir(world)}
        for world in config['WORLDS']
    ]

    records = []
    if os.path.isdir(backup_dir):
        try:
            records = list_backups(backup_dir)
        except StorageError as e:
            return jsonify({'error': str(e)}), 500

    total_size_bytes = sum(record.size for record in records)

    return jsonify({
        'worlds': worlds,
        'backup_dir': backup_dir,
        'backup_count': len(records),
        'total_size_mb': round(total_size_bytes / 1024 / 1024, 2),
        'last_backup': records[0].to_dict() if records else None,
        'retention': config['BACKUP_RETENTION'],
        'backup_running': is_backup_running(),
        'scheduler_status': 'running' if is_scheduler_running() else 'stopped',
        'scheduled_jobs': get_scheduled_jobs()
    })
