from datetime import date

from django.core.management.base import BaseCommand, CommandError

from bookings.services.bookings import complete_past_bookings


class Command(BaseCommand):
    help = "Mark confirmed bookings whose check-out date has passed as completed."

    def add_arguments(self, parser):
        parser.add_argument(
            "--today",
            help="Treat this ISO date (YYYY-MM-DD) as today instead of the current date.",
        )

    def handle(self, *args, **options):
        today = None
        if options.get("today"):
            try:
                today = date.fromisoformat(options["today"])
            except ValueError as exc:
                raise CommandError(f"Invalid --today value: {exc}")

        completed = complete_past_bookings(today=today)
        self.stdout.write(self.style.SUCCESS(f"Completed {completed} booking(s)."))
