"""
Utility functions for the Groups app.
"""
import secrets
import string


def generate_access_code(length=8):
    """
    Generate a unique, uppercase alphanumeric access code.

    Args:
        length: Length of the code (default 8).

    Returns:
        A random uppercase alphanumeric string not used by any group.
    """
    from apps.groups.models import Group

    alphabet = string.ascii_uppercase + string.digits
    while True:
        code = ''.join(secrets.choice(alphabet) for _ in range(length))
        if not Group.objects.filter(access_code=code).exists():
            return code


def generate_invite_token():
    """URL-safe token identifying an invite."""
    return secrets.token_urlsafe(24)


def format_duration(delta):
    """Render a timedelta as ``'5h 3m 12s'``."""
    total = max(int(delta.total_seconds()), 0)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f'{hours}h {minutes}m {seconds}s'
