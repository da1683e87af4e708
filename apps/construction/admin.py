"""
Django admin configuration for construction resources.

Organization and owner are read-only here as well: rows never move
between organizations.
"""
from django.contrib import admin
from .models import Site, DailyReport, Expense, Equipment, TeamMember, Document

TENANT_READONLY = ['id', 'organization', 'owner', 'created_at', 'updated_at', 'deleted_at', 'deleted_by']


@admin.register(Site)
class SiteAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'kind', 'status', 'start_date', 'created_at']
    list_filter = ['kind', 'status']
    search_fields = ['name', 'client', 'organization__name']
    readonly_fields = TENANT_READONLY


@admin.register(DailyReport)
class DailyReportAdmin(admin.ModelAdmin):
    list_display = ['date', 'site', 'organization', 'owner', 'status', 'approved_by']
    list_filter = ['status', 'weather']
    search_fields = ['site__name', 'owner__email']
    readonly_fields = TENANT_READONLY + ['approved_by', 'approved_at']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['description', 'amount', 'category', 'organization', 'status', 'spent_on']
    list_filter = ['status', 'category']
    search_fields = ['description', 'organization__name']
    readonly_fields = TENANT_READONLY + ['approved_by', 'approved_at']


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'status', 'organization', 'site']
    list_filter = ['status']
    search_fields = ['name', 'code']
    readonly_fields = TENANT_READONLY


@admin.register(TeamMember)
class TeamMemberAdmin(admin.ModelAdmin):
    list_display = ['name', 'function', 'organization', 'site', 'last_attendance_at']
    search_fields = ['name', 'email', 'phone']
    readonly_fields = TENANT_READONLY + ['last_attendance_at']


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['title', 'kind', 'organization', 'site', 'created_at']
    list_filter = ['kind']
    search_fields = ['title']
    readonly_fields = TENANT_READONLY
