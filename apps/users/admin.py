"""
Admin configuration for the Users app.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from apps.users.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = [
        'email',
        'username',
        'first_name',
        'last_name',
        'role',
        'is_active',
        'created_at',
    ]
    list_filter = [
        'role',
        'is_active',
        'is_staff',
        'created_at',
    ]
    search_fields = ['email', 'username', 'first_name', 'last_name']
    ordering = ['-created_at']

    fieldsets = BaseUserAdmin.fieldsets + (
        (
            'Marketplace Profile',
            {
                'fields': (
                    'avatar',
                    'role',
                ),
            },
        ),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (
            'Profile',
            {
                'fields': (
                    'email',
                    'first_name',
                    'last_name',
                    'role',
                ),
            },
        ),
    )
