"""
Django admin configuration for tenants app.
"""
from django.contrib import admin
from .models import Organization, Membership


class MembershipInline(admin.TabularInline):
    model = Membership
    fk_name = 'organization'
    extra = 0
    fields = ['user', 'role', 'status', 'joined_at', 'removed_at']
    readonly_fields = ['user', 'role', 'status', 'joined_at', 'removed_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    """Organizations are created on signup; the admin only inspects them."""
    list_display = ['name', 'slug', 'owner', 'created_at']
    search_fields = ['name', 'slug', 'owner__email']
    readonly_fields = ['id', 'owner', 'created_at', 'updated_at']
    inlines = [MembershipInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    """
    Read-only view of memberships.

    Changes go through the membership API so that they are audited.
    """
    list_display = ['user', 'organization', 'role', 'status', 'joined_at']
    list_filter = ['role', 'status']
    search_fields = ['user__email', 'organization__name']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
