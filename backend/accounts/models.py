from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    TENANT = "TENANT"
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    ROLES = [
        (TENANT, "Tenant"),
        (OWNER, "Owner"),
        (ADMIN, "Administrator"),
    ]

    display_name = models.CharField(max_length=120, blank=True)
    role = models.CharField(max_length=12, choices=ROLES, default=TENANT)
    upi_id = models.CharField(max_length=100, blank=True)

    @property
    def is_admin(self) -> bool:
        return self.is_superuser or self.role == self.ADMIN
