"""
Run the reservation timeout sweep once, or keep running it on an interval.

    python manage.py check_reservation_timeouts
    python manage.py check_reservation_timeouts --interval 60
"""
import time
from django.core.management.base import BaseCommand, CommandError
from backend.reservations.services import check_reservation_timeouts


class Command(BaseCommand):
    help = 'Move PENDING reservations past the response timeout to NO_RESPONSE'

    def add_arguments(self, parser):
        parser.add_argument(
            '--interval',
            type=int,
            default=0,
            help='Repeat the sweep every N seconds until interrupted (default: run once)',
        )

    def handle(self, *args, **options):
        interval = options.get('interval') or 0
        if interval < 0:
            raise CommandError('--interval must be a positive number of seconds')

        if not interval:
            self._sweep()
            return

        self.stdout.write(f"Sweeping reservation timeouts every {interval}s (Ctrl+C to stop)")
        try:
            while True:
                self._sweep()
                time.sleep(interval)
        except KeyboardInterrupt:
            self.stdout.write("Stopped")

    def _sweep(self):
        updated_ids = check_reservation_timeouts()
        if updated_ids:
            self.stdout.write(self.style.SUCCESS(
                f"Processed {len(updated_ids)} timed-out reservations: {', '.join(str(i) for i in updated_ids)}"
            ))
        else:
            self.stdout.write("Processed 0 timed-out reservations")
