from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action", "actor", "booking", "payment", "created_at")
    list_filter = ("action",)
    search_fields = ("details", "actor__email")
    readonly_fields = ("actor", "action", "booking", "payment", "details", "created_at")
