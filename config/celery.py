"""
Celery configuration for the group buying backend.

Only configures Celery if CELERY_BROKER_URL is set in the environment.
Group expiry never depends on the worker; the beat tasks below only keep
stored statuses tidy.
"""
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# Only initialise Celery if a broker is configured
_broker = os.environ.get('CELERY_BROKER_URL', '')
if _broker:
    from celery import Celery
    from celery.schedules import crontab

    app = Celery('group_buy')
    app.config_from_object('django.conf:settings', namespace='CELERY')
    app.autodiscover_tasks()

    # Periodic tasks
    app.conf.beat_schedule = {
        'expire-overdue-groups': {
            'task': 'apps.groups.tasks.expire_overdue_groups',
            'schedule': crontab(minute='*/5'),
        },
        'expire-stale-invites': {
            'task': 'apps.groups.tasks.expire_stale_invites',
            'schedule': crontab(minute=0),  # Every hour
        },
    }
else:
    app = None
