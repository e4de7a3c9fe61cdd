"""
Test settings: in-memory SQLite, local memory cache, no external services.
"""
from config.settings.base import *  # noqa: F401, F403

DEBUG = False

ALLOWED_HOSTS = ['*']

SECRET_KEY = 'test-secret-key-not-for-production'

# Set DATABASE_URL to a PostgreSQL database to run the row-lock tests.
DATABASES = {
    'default': env.db(  # noqa: F405
        'DATABASE_URL',
        default='sqlite://:memory:',
    )
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'group-buy-test-cache',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_CLASSES': [],
}

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}
