from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'table_name', 'record_id', 'actor']
    list_filter = ['action', 'table_name', 'created_at']
    search_fields = ['table_name', 'actor__email']
    readonly_fields = ['table_name', 'record_id', 'action', 'before', 'after', 'actor', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
