"""
Management command to seed a platform admin and a demo vendor.

Usage:
    python manage.py seed_demo_user
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

DEMO_ACCOUNTS = [
    ('admin@groupbuy.app', 'admin', 'Admin', 'admin'),
    ('vendor@groupbuy.app', 'vendor', 'Vendor', 'vendor'),
]
DEMO_PASSWORD = 'GroupBuy2024Demo'


class Command(BaseCommand):
    help = 'Create demo admin and vendor users (password: GroupBuy2024Demo)'

    def handle(self, *args, **options):
        User = get_user_model()

        for email, username, first_name, role in DEMO_ACCOUNTS:
            user, created = User.objects.get_or_create(
                email=email,
                defaults={
                    'username': username,
                    'first_name': first_name,
                    'last_name': 'User',
                    'role': role,
                    'is_staff': role == User.Role.ADMIN,
                    'is_superuser': role == User.Role.ADMIN,
                    'is_active': True,
                },
            )
            # Ensure password is correct even if user already existed
            user.set_password(DEMO_PASSWORD)
            user.role = role
            user.is_active = True
            user.save()

            verb = 'Created' if created else 'Reset'
            self.stdout.write(
                self.style.SUCCESS(f'{verb} demo {role}: {email} / {DEMO_PASSWORD}')
            )
