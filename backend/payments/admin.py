from django.contrib import admin

from .models import Invoice, Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "tenant", "owner", "amount", "status", "verified_at")
    list_filter = ("status", "currency")
    search_fields = ("upi_reference", "tenant__email", "owner__email")
    # Status only moves through the verification flow.
    readonly_fields = (
        "status",
        "verified_by",
        "verified_at",
        "rejection_note",
        "refunded_by",
        "refunded_at",
        "created_at",
        "updated_at",
    )


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_no", "booking", "amount", "currency", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("invoice_no",)
    readonly_fields = ("invoice_no", "line_items", "created_at")
