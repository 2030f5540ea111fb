from django.contrib import admin

from .models import Property


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("title", "owner", "price_per_night", "capacity", "is_active")
    list_filter = ("is_active",)
    search_fields = ("title", "address", "owner__email")
