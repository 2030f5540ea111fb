from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("email", "display_name", "role", "upi_id", "is_active")
    list_filter = ("role", "is_active", "is_superuser")
    search_fields = ("email", "display_name", "upi_id")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Marketplace", {"fields": ("display_name", "role", "upi_id")}),
    )
