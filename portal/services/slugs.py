"""Map URL slugs back to service roots of the pricing forest."""
from __future__ import annotations

import re
from typing import List, Optional

from portal.services.pricing_tree import PricingItem

_WHITESPACE = re.compile(r'\s+')


def slugify_name(name: str) -> str:
    """``"Home Care Service"`` -> ``"home-care-service"``."""
    return _WHITESPACE.sub('-', (name or '').lower())


def slug_to_name(slug: str) -> str:
    """``"fie-ne-fie"`` -> ``"Fie Ne Fie"``."""
    return ' '.join(word[:1].upper() + word[1:] for word in (slug or '').split('-'))


def find_service_by_slug(items: List[PricingItem], slug: str) -> Optional[PricingItem]:
    """First top-level service whose name matches ``slug``.

    A service matches when its name equals the title-cased slug
    (case-insensitively) or when its own slug equals the requested one.
    The catalog is small, so this is a plain scan.
    """
    search_name = slug_to_name(slug).lower()
    wanted = (slug or '').lower()
    for item in items:
        if item.get('type') != 'service':
            continue
        name = item.get('name') or ''
        if name.lower() == search_name or slugify_name(name) == wanted:
            return item
    return None
