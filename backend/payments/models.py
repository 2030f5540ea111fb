from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class Payment(models.Model):
    """A manual UPI payment a tenant makes towards a booking, attested by the owner."""

    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    AWAITING_OWNER_VERIFICATION = "AWAITING_OWNER_VERIFICATION"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    REFUNDED = "REFUNDED"
    STATUSES = [
        (AWAITING_PAYMENT, "Awaiting payment"),
        (AWAITING_OWNER_VERIFICATION, "Awaiting owner verification"),
        (VERIFIED, "Verified"),
        (REJECTED, "Rejected"),
        (REFUNDED, "Refunded"),
    ]
    OPEN_STATUSES = (AWAITING_PAYMENT, AWAITING_OWNER_VERIFICATION)
    DECIDED_STATUSES = (VERIFIED, REJECTED)
    FINAL_STATUSES = (VERIFIED, REJECTED, REFUNDED)

    booking = models.ForeignKey("bookings.Booking", on_delete=models.PROTECT, related_name="payments")
    tenant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="tenant_payments",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owner_payments",
    )
    amount = models.PositiveIntegerField(validators=[MinValueValidator(1)], help_text="Amount in paise.")
    currency = models.CharField(max_length=10, default="INR")
    upi_uri = models.CharField(max_length=500, blank=True)
    upi_reference = models.CharField(max_length=50, null=True, blank=True)
    status = models.CharField(max_length=30, choices=STATUSES, default=AWAITING_PAYMENT)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="verified_payments",
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    rejection_note = models.TextField(blank=True)
    refunded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="refunded_payments",
    )
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=Q(status__in=["AWAITING_PAYMENT", "AWAITING_OWNER_VERIFICATION"]),
                name="one_open_payment_per_booking",
            ),
            models.CheckConstraint(condition=Q(amount__gt=0), name="payment_amount_positive"),
        ]

    def __str__(self):
        return f"Payment {self.pk} for booking {self.booking_id} ({self.status})"

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES

    def clean(self):
        super().clean()
        errors = {}
        decided = self.status in self.DECIDED_STATUSES
        if decided != (self.verified_by_id is not None and self.verified_at is not None):
            errors["verified_by"] = "Verifier and time are recorded exactly when a payment is verified or rejected."
        if (self.status == self.REJECTED) != bool((self.rejection_note or "").strip()):
            errors["rejection_note"] = "A rejection note is required exactly when a payment is rejected."
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class Invoice(models.Model):
    PAID = "PAID"
    VOID = "VOID"
    STATUSES = [
        (PAID, "Paid"),
        (VOID, "Void"),
    ]

    invoice_no = models.CharField(max_length=40, unique=True)
    payment = models.OneToOneField("Payment", on_delete=models.PROTECT, related_name="invoice")
    booking = models.ForeignKey("bookings.Booking", on_delete=models.PROTECT, related_name="invoices")
    tenant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="tenant_invoices",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owner_invoices",
    )
    amount = models.PositiveIntegerField(help_text="Amount in paise.")
    currency = models.CharField(max_length=10, default="INR")
    status = models.CharField(max_length=10, choices=STATUSES, default=PAID)
    line_items = models.JSONField(default=list, blank=True)
    details = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.invoice_no
