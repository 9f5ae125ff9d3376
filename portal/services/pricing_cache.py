"""
Caching and change notification for pricing projections.

Customer projections are cached under keys that embed a generation
number.  Saving the forest moves the generation forward, which orphans
every cached projection at once without having to know their keys.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

logger = logging.getLogger(__name__)

GENERATION_KEY = 'pricing:generation'
UPDATES_GROUP = 'updates'


def current_generation() -> int:
    gen = cache.get(GENERATION_KEY)
    if gen is None:
        cache.add(GENERATION_KEY, time.time_ns(), None)
        gen = cache.get(GENERATION_KEY) or 0
    return gen


def cache_key(name: str) -> str:
    return f'pricing:g={current_generation()}:{name}'


def cached_payload(name: str, build: Callable[[], Optional[Any]]) -> Optional[Any]:
    """Return the cached payload for ``name``, building it on a miss.

    ``None`` results are not cached so a later save can fill the gap.
    """
    ck = cache_key(name)
    cached = cache.get(ck)
    if cached is not None:
        return cached
    payload = build()
    if payload is not None:
        cache.set(ck, payload, settings.PRICING_CACHE_TTL)
    return payload


def invalidate_pricing_cache() -> None:
    cache.set(GENERATION_KEY, time.time_ns(), None)


def broadcast_pricing_update(*, version: Optional[str], services: int, keys=()) -> None:
    """Tell connected dashboards that the catalog changed."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    now = timezone.now()
    event = {
        'type': 'pricing.updated',
        'version': version,
        'services': services,
        'ts': now.isoformat(),
        'keys': list(keys)[:50],
    }
    try:
        async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)
    except Exception:
        # The document is already persisted at this point.
        logger.warning('Could not broadcast pricing update', exc_info=True)
