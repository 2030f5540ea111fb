from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """Append-only record of who changed a booking or payment, and how."""

    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_DATES_CHANGED = "BOOKING_DATES_CHANGED"
    BOOKING_STATUS_CHANGED = "BOOKING_STATUS_CHANGED"
    PAYMENT_CREATED = "PAYMENT_CREATED"
    PAYMENT_REPRICED = "PAYMENT_REPRICED"
    PAYMENT_SUBMITTED = "PAYMENT_SUBMITTED"
    PAYMENT_VERIFIED = "PAYMENT_VERIFIED"
    PAYMENT_REJECTED = "PAYMENT_REJECTED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"
    INVOICE_GENERATED = "INVOICE_GENERATED"
    ACTIONS = [
        (BOOKING_CREATED, "Booking created"),
        (BOOKING_DATES_CHANGED, "Booking dates changed"),
        (BOOKING_STATUS_CHANGED, "Booking status changed"),
        (PAYMENT_CREATED, "Payment created"),
        (PAYMENT_REPRICED, "Payment repriced"),
        (PAYMENT_SUBMITTED, "Payment proof submitted"),
        (PAYMENT_VERIFIED, "Payment verified"),
        (PAYMENT_REJECTED, "Payment rejected"),
        (PAYMENT_REFUNDED, "Payment refunded"),
        (INVOICE_GENERATED, "Invoice generated"),
    ]

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    action = models.CharField(max_length=40, choices=ACTIONS)
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    details = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.action} by {self.actor_id or 'system'}"
