"""
Settings package. ``DJANGO_ENV=production`` selects production settings;
anything else gets development. Tests point at ``config.settings.test``.
"""
import os

if os.environ.get('DJANGO_ENV', 'development') == 'production':
    from config.settings.production import *  # noqa: F401, F403
else:
    from config.settings.development import *  # noqa: F401, F403
