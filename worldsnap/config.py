import os


BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _env_list(name, default):
    value = os.environ.get(name)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


def _env_int(name, default):
    # Unparseable values keep the default
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration"""

    # Worlds to back up, archived in this order
    WORLDS = _env_list('WORLDS', ['world', 'world_nether', 'world_the_end'])

    # Backups
    BACKUP_DIR = os.environ.get('BACKUP_DIR') or 'backups'
    BACKUP_RETENTION = _env_int('BACKUP_RETENTION', 10)
    BACKUP_EXCLUDE_PATTERNS = _env_list('BACKUP_EXCLUDE_PATTERNS', ['session.lock', '*.tmp'])

    # Scheduler (0 = no scheduled backups)
    BACKUP_INTERVAL_MINUTES = _env_int('BACKUP_INTERVAL_MINUTES', 0)
    SCHEDULER_ENABLED = _env_bool('SCHEDULER_ENABLED', True)
    SCHEDULER_TIMEZONE = 'UTC'

    # Logging
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(BASE_DIR, 'data', 'logs')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Test configuration"""
    DEBUG = False
    TESTING = True
    SCHEDULER_ENABLED = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig
}
