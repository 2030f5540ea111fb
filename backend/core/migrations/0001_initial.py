from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("bookings", "0001_initial"),
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("BOOKING_CREATED", "Booking created"),
                            ("BOOKING_DATES_CHANGED", "Booking dates changed"),
                            ("BOOKING_STATUS_CHANGED", "Booking status changed"),
                            ("PAYMENT_CREATED", "Payment created"),
                            ("PAYMENT_REPRICED", "Payment repriced"),
                            ("PAYMENT_SUBMITTED", "Payment proof submitted"),
                            ("PAYMENT_VERIFIED", "Payment verified"),
                            ("PAYMENT_REJECTED", "Payment rejected"),
                            ("PAYMENT_REFUNDED", "Payment refunded"),
                            ("INVOICE_GENERATED", "Invoice generated"),
                        ],
                        max_length=40,
                    ),
                ),
                ("details", models.CharField(blank=True, max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "booking",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_entries",
                        to="bookings.booking",
                    ),
                ),
                (
                    "payment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_entries",
                        to="payments.payment",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
