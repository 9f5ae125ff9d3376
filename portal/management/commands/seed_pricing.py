from django.core.management.base import BaseCommand

from portal.services.defaults import default_pricing
from portal.services.pricing_cache import invalidate_pricing_cache
from portal.services.pricing_store import get_pricing_store


class Command(BaseCommand):
    help = "Write the built-in pricing catalog to the pricing document."

    def add_arguments(self, parser):
        parser.add_argument('--force', action='store_true', help='Overwrite an existing pricing document.')

    def handle(self, *args, **options):
        store = get_pricing_store()
        if store.path.exists() and not options['force']:
            self.stdout.write(self.style.WARNING(f"{store.path} already exists; use --force to overwrite"))
            return
        saved = store.save(default_pricing())
        invalidate_pricing_cache()
        self.stdout.write(self.style.SUCCESS(f"Seeded {len(saved)} services into {store.path}"))
