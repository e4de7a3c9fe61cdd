"""
Local development settings: SQLite by default, debug logging for the apps.
"""
import copy

from config.settings.base import *  # noqa: F401, F403
from config.settings.base import BASE_DIR, LOGGING as BASE_LOGGING, env

DEBUG = True
ALLOWED_HOSTS = ['*']
CORS_ALLOW_ALL_ORIGINS = True

DATABASES = {
    'default': env.db(
        'DATABASE_URL',
        default=f'sqlite:///{BASE_DIR / "db.sqlite3"}',
    )
}

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

LOGGING = copy.deepcopy(BASE_LOGGING)
LOGGING['loggers']['apps']['level'] = 'DEBUG'
