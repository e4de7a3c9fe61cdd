"""
Common permission classes for the group buying platform.
"""
from rest_framework.permissions import BasePermission


class IsVendorOrAdmin(BasePermission):
    """
    Allows access only to vendors and platform administrators.
    Object-level ownership (``vendor`` field) is checked per product.
    """
    message = 'Only vendors can manage discount tiers.'

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and (request.user.is_vendor or request.user.is_platform_admin)
        )

    def has_object_permission(self, request, view, obj):
        if request.user.is_platform_admin:
            return True
        return getattr(obj, 'vendor_id', None) == request.user.id
