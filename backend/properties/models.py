from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Property(models.Model):
    """A rentable listing. Read-only from the booking and payment lifecycle."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="properties",
    )
    title = models.CharField(max_length=200)
    address = models.CharField(max_length=300, blank=True)
    price_per_night = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Nightly rate in paise.",
    )
    currency = models.CharField(max_length=10, default="INR")
    capacity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title", "id"]
        verbose_name_plural = "properties"

    def __str__(self):
        return self.title
