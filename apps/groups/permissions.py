"""
Capability checks for group operations.

Each mutating operation names the capabilities it accepts and calls
``require_role`` before touching the roster or lifecycle.
"""
from rest_framework.permissions import BasePermission

from apps.groups.models import GroupMember
from common.exceptions import ActionForbidden

CREATOR = 'creator'
ADMIN = 'admin'
MEMBER = 'member'

OWNER_ROLES = frozenset({CREATOR, ADMIN})
INVITE_ROLES = frozenset({CREATOR, ADMIN, MEMBER})


def actor_roles(actor, group):
    """Set of capabilities *actor* holds on *group*."""
    roles = set()
    if actor is None or not actor.is_authenticated:
        return roles
    if actor.is_platform_admin:
        roles.add(ADMIN)
    if group.created_by_id == actor.id:
        roles.add(CREATOR)
    if GroupMember.objects.filter(group=group, user=actor).exists():
        roles.add(MEMBER)
    return roles


def require_role(actor, group, allowed, message=None):
    """Raise ``ActionForbidden`` unless *actor* holds one of *allowed* on *group*."""
    roles = actor_roles(actor, group)
    if roles & set(allowed):
        return roles
    raise ActionForbidden(message or 'Only the group creator or an admin can do this.')


def can_view_group(actor, group):
    """Public groups are visible to everyone; private ones to members and owners."""
    if not group.is_private:
        return True
    return bool(actor_roles(actor, group))


class CanViewGroup(BasePermission):
    """
    Object-level permission for group detail endpoints.
    """
    message = 'This group is private.'

    def has_object_permission(self, request, view, obj):
        return can_view_group(request.user, obj)
