from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("property", "tenant", "check_in", "check_out", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("property__title", "tenant__email")
    readonly_fields = ("status", "created_at", "updated_at")
