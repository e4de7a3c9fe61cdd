"""
Admin configuration for the Groups app.
"""
from django.contrib import admin

from apps.groups.models import Group, GroupMember, Invite, JoinRequest


class GroupMemberInline(admin.TabularInline):
    model = GroupMember
    extra = 0
    readonly_fields = ['joined_at']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = [
        'name', 'product', 'visibility', 'access_code', 'created_by',
        'status', 'member_count', 'member_limit', 'finalization_deadline',
    ]
    list_filter = ['status', 'visibility', 'requires_approval', 'created_at']
    search_fields = ['name', 'access_code', 'description', 'product__name']
    readonly_fields = ['access_code', 'status', 'finalized_at', 'order', 'created_at', 'updated_at']
    inlines = [GroupMemberInline]


@admin.register(GroupMember)
class GroupMemberAdmin(admin.ModelAdmin):
    list_display = ['user', 'group', 'role', 'quantity', 'joined_at']
    list_filter = ['role', 'joined_at']
    search_fields = ['user__email', 'user__first_name', 'group__name']


@admin.register(JoinRequest)
class JoinRequestAdmin(admin.ModelAdmin):
    list_display = ['user', 'group', 'status', 'requested_at', 'reviewed_by', 'reviewed_at']
    list_filter = ['status', 'requested_at']
    search_fields = ['user__email', 'group__name']
    readonly_fields = ['requested_at', 'reviewed_at', 'reviewed_by']


@admin.register(Invite)
class InviteAdmin(admin.ModelAdmin):
    list_display = ['invited_identifier', 'group', 'invited_by', 'status', 'expires_at']
    list_filter = ['status', 'expires_at']
    search_fields = ['invited_identifier', 'group__name', 'invited_by__email']
    readonly_fields = ['token', 'accepted_by', 'responded_at']
