from django.core.management.base import BaseCommand

from payments.services.consistency import find_inconsistencies, reconcile_booking


class Command(BaseCommand):
    help = "Confirm pending bookings that already have a verified payment."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List mismatched bookings without changing them.",
        )

    def handle(self, *args, **options):
        mismatched = list(find_inconsistencies())
        if not mismatched:
            self.stdout.write(self.style.SUCCESS("Bookings and payments agree."))
            return

        if options["dry_run"]:
            for booking in mismatched:
                self.stdout.write(f"Booking {booking.pk} is PENDING with a verified payment")
            return

        reconciled = 0
        for booking in mismatched:
            if reconcile_booking(booking):
                reconciled += 1
                self.stdout.write(self.style.WARNING(f"Booking {booking.pk} confirmed"))
            else:
                self.stdout.write(f"Booking {booking.pk} left unchanged")

        self.stdout.write(self.style.SUCCESS(f"Reconciled {reconciled} booking(s)."))
