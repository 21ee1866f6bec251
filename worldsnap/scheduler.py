"""
APScheduler configuration and backup serialization for worldsnap.

Manages:
- Scheduled world backups (fixed interval)
- The process-wide lock that keeps backups against the backup directory
  from overlapping, whoever starts them (scheduler, HTTP, CLI)
"""

import logging
import threading

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.pool import ThreadPoolExecutor

from worldsnap.models import BackupResult, LogHooks
from worldsnap.backup.executor import perform_backup
from worldsnap.backup.storage import DirectoryError
from worldsnap.backup.compression import ArchiveCreationError


BACKUP_JOB_ID = 'world_backup'

logger = logging.getLogger(__name__)

# Global scheduler instance and Flask app reference
scheduler = None
flask_app = None

_backup_lock = threading.Lock()


class BackupInProgressError(RuntimeError):
    """Raised when a backup is requested while another one is running."""
    pass


def run_backup(app) -> BackupResult:
    """
    Run one backup with the app's configuration.

    Only one backup runs at a time in this process; a second caller is
    refused instead of queued.

    Args:
        app: Flask app instance

    Returns:
        BackupResult from the executor

    Raises:
        BackupInProgressError: If a backup is already running
        DirectoryError: If the backup directory is unusable
        ArchiveCreationError: If the archive cannot be written
    """
    if not _backup_lock.acquire(blocking=False):
        raise BackupInProgressError("A backup is already running")

    try:
        return perform_backup(
            app.config['WORLDS'],
            backup_dir=app.config['BACKUP_DIR'],
            retention_count=app.config['BACKUP_RETENTION'],
            exclude_patterns=app.config['BACKUP_EXCLUDE_PATTERNS'],
            hooks=LogHooks.from_logger(app.logger)
        )
    finally:
        _backup_lock.release()


def is_backup_running() -> bool:
    """Check whether a backup currently holds the lock."""
    return _backup_lock.locked()


def init_scheduler(app):
    """
    Initialize and configure APScheduler.

    Args:
        app: Flask app instance
    """
    global scheduler, flask_app

    if scheduler is not None:
        return scheduler

    # Store Flask app reference for use in background threads
    flask_app = app

    jobstores = {
        'default': MemoryJobStore()
    }

    executors = {
        'default': ThreadPoolExecutor(max_workers=1)
    }

    job_defaults = {
        'coalesce': True,  # Combine multiple pending instances into one
        'max_instances': 1,  # Only one instance of a job at a time
        'misfire_grace_time': 300  # 5 minutes grace period for misfires
    }

    scheduler = BackgroundScheduler(
        jobstores=jobstores,
        executors=executors,
        job_defaults=job_defaults,
        timezone=app.config.get('SCHEDULER_TIMEZONE', 'UTC')
    )

    interval = app.config.get('BACKUP_INTERVAL_MINUTES', 0)
    if interval > 0:
        scheduler.add_job(
            func=_execute_backup_wrapper,
            trigger=IntervalTrigger(minutes=interval),
            id=BACKUP_JOB_ID,
            name=f"World Backup (every {interval} min)",
            replace_existing=True
        )

    return scheduler


def start_scheduler():
    """
    Start the APScheduler.

    Should be called after Flask app is initialized.
    """
    global scheduler

    if scheduler is None:
        raise RuntimeError("Scheduler not initialized. Call init_scheduler() first.")

    if not scheduler.running:
        scheduler.start()
        logger.info(f"APScheduler started successfully (state={scheduler.state}, running={scheduler.running})")

        for job in scheduler.get_jobs():
            next_run = job.next_run_time.isoformat() if job.next_run_time else 'N/A'
            logger.info(f"  - {job.id}: {job.name} (next run: {next_run})")
    else:
        logger.info(f"Scheduler already running (state={scheduler.state})")


def stop_scheduler():
    """Stop the APScheduler."""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown()
        logger.info("APScheduler stopped")


def _execute_backup_wrapper():
    """
    Run a scheduled backup inside the app context.

    Failures are logged here because there is no caller to return them to.
    """
    global flask_app

    with flask_app.app_context():
        try:
            result = run_backup(flask_app)
            flask_app.logger.info(f"Scheduled backup finished with status: {result.status}")
        except BackupInProgressError:
            flask_app.logger.info("Scheduled backup skipped, another backup is running")
        except (DirectoryError, ArchiveCreationError) as e:
            flask_app.logger.error(f"Scheduled backup failed: {e}")


def get_scheduled_jobs() -> list:
    """
    Get list of all scheduled jobs.

    Returns:
        List of dicts with job information
    """
    global scheduler

    if scheduler is None:
        return []

    jobs = []

    for job in scheduler.get_jobs():
        jobs.append({
            'id': job.id,
            'name': job.name,
            'next_run': job.next_run_time.isoformat() if job.next_run_time else None,
            'trigger': str(job.trigger)
        })

    return jobs


def is_scheduler_running() -> bool:
    """Check if scheduler is running."""
    return scheduler is not None and scheduler.running
