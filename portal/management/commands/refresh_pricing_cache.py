from django.core.management.base import BaseCommand

from portal.services.customer import transform_to_customer_service, transform_to_public_services
from portal.services.pricing_cache import (
    broadcast_pricing_update,
    cached_payload,
    invalidate_pricing_cache,
)
from portal.services.pricing_store import get_pricing_store
from portal.services.slugs import slugify_name


class Command(BaseCommand):
    help = "Rebuild the cached customer pricing projections and broadcast a refresh event."

    def handle(self, *args, **options):
        store = get_pricing_store()
        forest = store.load()
        invalidate_pricing_cache()
        keys_refreshed = []

        cached_payload('public', lambda: transform_to_public_services(forest))
        keys_refreshed.append('public')

        for item in forest:
            if item.get('type') != 'service':
                continue
            name = f'service:{slugify_name(item.get("name") or "")}'
            cached_payload(name, lambda item=item: transform_to_customer_service(item))
            keys_refreshed.append(name)

        broadcast_pricing_update(version=store.version(), services=len(forest), keys=keys_refreshed)
        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(keys_refreshed)} pricing keys"))
