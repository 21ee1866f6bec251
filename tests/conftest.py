"""
Shared pytest fixtures for worldsnap tests.

This module provides fixtures for:
- Flask app, test client and CLI runner
- World directory trees
- Backup directories pre-filled with archives of known age
- A mocked APScheduler
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from worldsnap import create_app


@pytest.fixture(scope='function')
def app(tmp_path):
    """
    Create Flask app with test configuration.

    Worlds and backups live under tmp_path; the scheduler is off.
    """
    app = create_app('testing', overrides={
        'WORLDS': [str(tmp_path / 'world'), str(tmp_path / 'world_nether')],
        'BACKUP_DIR': str(tmp_path / 'backups'),
        'BACKUP_RETENTION': 3,
        'LOG_DIR': str(tmp_path / 'logs'),
    })

    yield app


@pytest.fixture(scope='function')
def client(app):
    """Flask test client for making HTTP requests."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """Flask CLI test runner."""
    return app.test_cli_runner()


@pytest.fixture
def world_dir(tmp_path):
    """
    Create a small world directory.

    Creates:
    - world/level.dat
    - world/session.lock (excluded from archives)
    - world/region/r.0.0.mca
    - world/region/r.0.1.mca.tmp (excluded from archives)
    """
    world = tmp_path / 'world'
    (world / 'region').mkdir(parents=True)
    (world / 'level.dat').write_bytes(b'level data')
    (world / 'session.lock').write_bytes(b'\xe2\x98\x83')
    (world / 'region' / 'r.0.0.mca').write_bytes(b'region' * 100)
    (world / 'region' / 'r.0.1.mca.tmp').write_bytes(b'half written')
    return world


@pytest.fixture
def make_backups(tmp_path):
    """
    Factory that fills a backup directory with fake archives.

    Archive i gets modification time base + i * 60 seconds, so the first
    name is the oldest.
    """
    def _make(names, backup_dir=None, base=1_700_000_000):
        backup_dir = backup_dir or tmp_path / 'backups'
        backup_dir.mkdir(parents=True, exist_ok=True)
        paths = []
        for index, name in enumerate(names):
            path = backup_dir / name
            path.write_bytes(b'PK\x05\x06' + b'\x00' * 18)
            mtime = base + index * 60
            os.utime(path, (mtime, mtime))
            paths.append(path)
        return paths

    return _make


@pytest.fixture
def in_tmp_path(tmp_path, monkeypatch):
    """Run the test with tmp_path as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(scope='function')
def mock_scheduler():
    """
    Mock APScheduler for testing scheduler functionality.
    """
    with patch('worldsnap.scheduler.BackgroundScheduler') as mock_sched:
        scheduler_instance = MagicMock()
        mock_sched.return_value = scheduler_instance

        # Mock scheduler methods
        scheduler_instance.running = False
        scheduler_instance.state = 0
        scheduler_instance.get_jobs.return_value = []

        yield scheduler_instance


@pytest.fixture
def undecodable_name():
    """
    Factory that creates a file whose name is not valid UTF-8.

    Skips the test on filesystems that refuse such names.
    """
    def _make(directory, raw_name=b'caf\xe9.dat'):
        path = os.path.join(os.fsencode(str(directory)), raw_name)
        try:
            with open(path, 'wb') as f:
                f.write(b'data')
        except OSError:
            pytest.skip("filesystem does not accept undecodable file names")
        return os.fsdecode(path)

    return _make
