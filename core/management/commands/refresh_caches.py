from django.core.management.base import BaseCommand
from django.utils import timezone

from core.services import dashboard
from core.services.invalidation import broadcast

RESOURCES = ['dashboard', 'patients', 'appointments', 'doctors', 'rooms', 'wards', 'bills']


class Command(BaseCommand):
    help = "Warm the dashboard cache and broadcast an invalidation to connected browsers."

    def add_arguments(self, parser):
        parser.add_argument('--no-broadcast', action='store_true', help="Only warm the cache.")

    def handle(self, *args, **options):
        now = timezone.now()
        warmed = dashboard.warm()
        self.stdout.write(f"dashboard: {warmed['stats']}")
        if not options['no_broadcast']:
            broadcast(RESOURCES)
            self.stdout.write(f"broadcast invalidate for {', '.join(RESOURCES)}")
        self.stdout.write(self.style.SUCCESS(f"Refreshed caches at {now}"))
