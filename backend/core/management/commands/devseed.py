from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from accounts.models import User
from accounts.principal import Principal
from bookings.models import Booking
from bookings.services.bookings import create_booking
from core.models import AuditLog
from payments.models import Invoice, Payment
from payments.services.payments import create_payment, submit_payment_proof
from properties.models import Property


SEED_PASSWORD = "StayWell123!"
SUPERUSER_EMAIL = "admin@staywell.test"
SUPERUSER_PASSWORD = "AdminStayWell123!"


class Command(BaseCommand):
    help = "Populate the local development database with sample data."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Refusing to seed data while DEBUG is False.")

        with transaction.atomic():
            self.stdout.write(self.style.MIGRATE_HEADING("Creating users"))
            owner = self._ensure_user(
                email="owner@staywell.test",
                first_name="Olivia",
                last_name="Owner",
                role=User.OWNER,
                upi_id="olivia@okaxis",
            )
            tenant = self._ensure_user(
                email="tenant@staywell.test",
                first_name="Tara",
                last_name="Tenant",
                role=User.TENANT,
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Ensuring admin superuser"))
            self._ensure_superuser()

            self.stdout.write(self.style.MIGRATE_HEADING("Creating properties"))
            villa = self._ensure_property(owner, "Cliffside Villa, Goa", price_per_night=1500000, capacity=6)
            self._ensure_property(owner, "Lakeview Cottage, Udaipur", price_per_night=650000, capacity=3)

            self.stdout.write(self.style.MIGRATE_HEADING("Resetting bookings & payments"))
            AuditLog.objects.all().delete()
            Invoice.objects.all().delete()
            Payment.objects.all().delete()
            Booking.objects.all().delete()

            self.stdout.write(self.style.MIGRATE_HEADING("Creating a booking awaiting verification"))
            today = timezone.localdate()
            principal = Principal.from_user(tenant)
            booking = create_booking(
                principal=principal,
                property_id=villa.pk,
                check_in=today + timedelta(days=14),
                check_out=today + timedelta(days=21),
            )
            payment = create_payment(principal=principal, booking_id=booking.pk)
            submit_payment_proof(principal=principal, payment_id=payment.pk, upi_reference="UTR4200917735")

        self.stdout.write(self.style.SUCCESS("Development seed data created."))
        self.stdout.write(self.style.NOTICE(f"Sample login accounts use password: {SEED_PASSWORD}"))
        self.stdout.write(self.style.NOTICE(f"Admin superuser {SUPERUSER_EMAIL} password: {SUPERUSER_PASSWORD}"))

    def _ensure_user(self, email: str, first_name: str, last_name: str, role: str, upi_id: str = "") -> User:
        user, created = User.objects.get_or_create(
            email=email,
            defaults={
                "username": email,
                "first_name": first_name,
                "last_name": last_name,
                "display_name": f"{first_name} {last_name}",
                "role": role,
                "upi_id": upi_id,
            },
        )
        if created:
            user.set_password(SEED_PASSWORD)
            user.save()
        elif user.role != role or user.upi_id != upi_id:
            user.role = role
            user.upi_id = upi_id
            user.save(update_fields=["role", "upi_id"])
        return user

    def _ensure_property(self, owner: User, title: str, *, price_per_night: int, capacity: int) -> Property:
        prop, _ = Property.objects.update_or_create(
            owner=owner,
            title=title,
            defaults={
                "price_per_night": price_per_night,
                "capacity": capacity,
                "currency": settings.PAYMENT_CURRENCY,
                "is_active": True,
            },
        )
        return prop

    def _ensure_superuser(self) -> User:
        user, created = User.objects.get_or_create(
            email=SUPERUSER_EMAIL,
            defaults={
                "username": SUPERUSER_EMAIL,
                "first_name": "Site",
                "last_name": "Admin",
                "display_name": "Site Admin",
                "role": User.ADMIN,
                "is_staff": True,
                "is_superuser": True,
            },
        )
        if created:
            user.set_password(SUPERUSER_PASSWORD)
            user.save()
        return user
