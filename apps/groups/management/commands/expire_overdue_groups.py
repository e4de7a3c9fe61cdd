"""
Management command to label overdue groups and stale invites as expired.

Usage:
    python manage.py expire_overdue_groups
"""
from django.core.management.base import BaseCommand

from apps.groups.services.finalization import expire_overdue_groups, expire_stale_invites


class Command(BaseCommand):
    help = 'Mark open groups past their deadline, and pending invites past expiry, as expired'

    def handle(self, *args, **options):
        groups = expire_overdue_groups()
        invites = expire_stale_invites()
        self.stdout.write(
            self.style.SUCCESS(f'Expired {groups} group(s) and {invites} invite(s).')
        )
