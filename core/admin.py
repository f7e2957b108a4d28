from django.contrib import admin

from unfold.admin import ModelAdmin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(ModelAdmin):
    list_display = ('action', 'performed_by', 'target_user', 'created_at')
    list_filter = ('action',)
    search_fields = ('performed_by__email', 'target_user__email')
    readonly_fields = ('action', 'details', 'performed_by', 'target_user', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
