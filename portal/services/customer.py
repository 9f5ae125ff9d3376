"""
Customer-facing projections of the pricing forest.

Administrators edit a three-level tree (service -> feature -> add-on).
Customers never see that shape directly: each service is reshaped into
a ``CustomerService`` that wraps its features in one synthetic plan and
carries summary counts, and the public catalog lists services with
``level``/``isOptional`` annotations instead of prices.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from portal.services.pricing_tree import PricingItem, normalize_type, sort_key, sorted_children
from portal.services.slugs import slugify_name

HOURS_PER_DAY = 24
DAYS_PER_MONTH = 30
DEFAULT_CATEGORY = 'home_care'


def _price(item: PricingItem) -> float:
    value = item.get('basePrice')
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return 0


def _recurring(item: PricingItem) -> bool:
    value = item.get('isRecurring')
    return True if value is None else bool(value)


def _with_description(payload: Dict[str, Any], item: PricingItem) -> Dict[str, Any]:
    # Absent descriptions stay absent rather than becoming "".
    if item.get('description') is not None:
        payload['description'] = item['description']
    return payload


def plan_pricing(daily: float) -> Dict[str, float]:
    return {
        'daily': daily,
        'monthly': daily * DAYS_PER_MONTH,
        'hourly': daily / HOURS_PER_DAY,
    }


def _customer_addon(item: PricingItem) -> Dict[str, Any]:
    return _with_description({
        'id': item.get('id'),
        'name': item.get('name'),
        'price': _price(item),
        'isRequired': bool(item.get('isRequired')),
        'isRecurring': _recurring(item),
        'sortOrder': sort_key(item),
    }, item)


def transform_to_customer_service(service: PricingItem) -> Dict[str, Any]:
    """Reshape one admin ``service`` node into a ``CustomerService``."""
    features: List[Dict[str, Any]] = []
    total_features = 0
    total_addons = 0
    base_price = _price(service)

    for feature in service.get('children') or []:
        if normalize_type(feature.get('type')) != 'feature':
            continue
        addons = []
        for addon in feature.get('children') or []:
            if addon.get('type') == 'addon':
                addons.append(_customer_addon(addon))
                total_addons += 1
        features.append(_with_description({
            'id': feature.get('id'),
            'name': feature.get('name'),
            'basePrice': _price(feature),
            'isRequired': bool(feature.get('isRequired')),
            'isRecurring': _recurring(feature),
            'addons': addons,
            'sortOrder': sort_key(feature),
        }, feature))
        total_features += 1

    features.sort(key=lambda f: f['sortOrder'])

    # One plan per service keeps older multi-plan clients working.
    plan = _with_description({
        'id': f'{service.get("id")}_plan',
        'name': f'{service.get("name")} Service',
        'basePrice': base_price,
        'isRequired': True,
        'isRecurring': _recurring(service),
        'features': features,
        'sortOrder': 1,
        'pricing': plan_pricing(base_price),
    }, service)

    return _with_description({
        'id': service.get('id'),
        'name': service.get('name'),
        'slug': slugify_name(service.get('name') or ''),
        'basePrice': base_price,
        'plans': [plan],
        'category': service.get('category') or DEFAULT_CATEGORY,
        'isPopular': bool(service.get('isPopular', False)),
        'metadata': {
            'totalPlans': 1,
            'totalFeatures': total_features,
            'totalAddons': total_addons,
            'startingPrice': base_price,
        },
    }, service)


def _public_item(item: PricingItem, level: int) -> Dict[str, Any]:
    return _with_description({
        'id': item.get('id'),
        'name': item.get('name'),
        'level': level,
        'isOptional': not item.get('isRequired'),
        'children': [_public_item(child, level + 1) for child in sorted_children(item)],
    }, item)


def transform_to_public_services(items: Iterable[PricingItem]) -> List[Dict[str, Any]]:
    """Services of the forest in catalog order, without prices."""
    services = sorted((i for i in items if i.get('type') == 'service'), key=sort_key)
    return [
        _with_description({
            'id': service.get('id'),
            'name': service.get('name'),
            'slug': slugify_name(service.get('name') or ''),
            'items': [_public_item(child, 1) for child in sorted_children(service)],
        }, service)
        for service in services
    ]


def find_public_service(services: List[Dict[str, Any]], *, service_id: Optional[str] = None,
                        name: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Look a public service up by id, exact name, then partial name."""
    wanted = (name or '').lower()
    for service in services:
        if service_id and service['id'] == service_id:
            return service
    if wanted:
        for service in services:
            if service['name'].lower() == wanted:
                return service
        for service in services:
            if wanted in service['name'].lower():
                return service
    return None


def quote(service: PricingItem, selected_ids: Iterable[str]) -> Dict[str, Any]:
    """Price a customer's selection for one service.

    The service base price covers everything required.  A selected
    optional feature or add-on adds its own price, but only while every
    ancestor below the service is itself required or selected.
    """
    selected = set(selected_ids or ())
    lines: List[Dict[str, Any]] = []
    total = _price(service)
    stack = [(child, True) for child in reversed(sorted_children(service))]
    while stack:
        node, ancestors_active = stack.pop()
        required = bool(node.get('isRequired'))
        chosen = node.get('id') in selected
        active = ancestors_active and (required or chosen)
        if active and chosen and not required:
            price = _price(node)
            total += price
            lines.append({'id': node.get('id'), 'name': node.get('name'), 'price': price})
        stack.extend((child, active) for child in reversed(sorted_children(node)))
    return {
        'serviceId': service.get('id'),
        'basePrice': _price(service),
        'items': lines,
        'total': total,
        'pricing': plan_pricing(total),
    }


def calculate_total_price(service: PricingItem, selected_ids: Iterable[str]) -> float:
    return quote(service, selected_ids)['total']
