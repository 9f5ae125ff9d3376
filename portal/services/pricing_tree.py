"""
Helpers for the pricing forest.

A forest is a list of ``service`` nodes; each node is a plain dict in
the camelCase shape the front-end edits (``id``, ``name``, ``type``,
``basePrice``, ``children`` ...).  Everything here walks the tree with an
explicit stack so deep catalogs never hit the recursion limit.
"""
from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from portal.exceptions import NotFoundError, ValidationError

PricingItem = Dict[str, Any]

ITEM_TYPES = ('service', 'feature', 'addon')
# The four-level admin variant groups features under a "plan"; it is
# stored as a plain feature.
TYPE_ALIASES = {'plan': 'feature'}
ALLOWED_CHILDREN = {
    'service': {'feature'},
    'feature': {'addon'},
    'addon': set(),
}
EDITABLE_FIELDS = ('name', 'description', 'basePrice', 'isRequired', 'isRecurring', 'sortOrder', 'colorTheme')


def now_iso() -> str:
    return timezone.now().isoformat(timespec='microseconds')


def new_item_id(prefix: str = 'item') -> str:
    return f'{prefix}_{uuid.uuid4().hex}'


def normalize_type(value: Any) -> Any:
    return TYPE_ALIASES.get(value, value)


def iter_items(items: List[PricingItem]) -> Iterator[Tuple[PricingItem, Optional[PricingItem]]]:
    """Yield ``(node, parent)`` pairs depth-first, parents before children."""
    stack: List[Tuple[PricingItem, Optional[PricingItem]]] = [(item, None) for item in reversed(items)]
    while stack:
        node, parent = stack.pop()
        yield node, parent
        children = node.get('children') or []
        stack.extend((child, node) for child in reversed(children))


def flatten_items(items: List[PricingItem]) -> List[PricingItem]:
    return [node for node, _ in iter_items(items)]


def find_item_by_id(items: List[PricingItem], item_id: str) -> Optional[PricingItem]:
    for node, _ in iter_items(items):
        if node.get('id') == item_id:
            return node
    return None


def _locate(items: List[PricingItem], item_id: str) -> Tuple[PricingItem, Optional[PricingItem], List[PricingItem]]:
    """Return the node, its parent and the sibling list that holds it."""
    for node, parent in iter_items(items):
        if node.get('id') == item_id:
            siblings = items if parent is None else parent['children']
            return node, parent, siblings
    raise NotFoundError(f'Pricing item {item_id} not found')


def sort_key(item: PricingItem) -> int:
    value = item.get('sortOrder')
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def sorted_children(item: PricingItem) -> List[PricingItem]:
    """Children in display order; ``sorted`` is stable so ties keep insertion order."""
    return sorted(item.get('children') or [], key=sort_key)


def _next_sort_order(siblings: List[PricingItem]) -> int:
    return max((sort_key(s) for s in siblings), default=-1) + 1


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Aware datetime for an ISO-8601 string, ``None`` if it is not one."""
    if not isinstance(value, str):
        return None
    try:
        parsed = parse_datetime(value)
    except ValueError:
        return None
    if parsed is not None and timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def validate_forest(items: Any) -> None:
    """Check the shape of a forest submitted for a bulk save.

    Raises :class:`~portal.exceptions.ValidationError` with a message
    naming the offending node.
    """
    if not isinstance(items, list):
        raise ValidationError('Invalid data format')
    seen: set = set()
    stack: List[Tuple[Any, Optional[str]]] = [(item, None) for item in reversed(items)]
    while stack:
        node, parent_type = stack.pop()
        if not isinstance(node, dict):
            raise ValidationError('Invalid data format: pricing items must be objects')
        item_id = node.get('id')
        if not isinstance(item_id, str) or not item_id:
            raise ValidationError('Invalid data format: every pricing item needs an id')
        if item_id in seen:
            raise ValidationError(f'Duplicate pricing item id {item_id}')
        seen.add(item_id)
        if not isinstance(node.get('name'), str):
            raise ValidationError(f'Pricing item {item_id} needs a name')
        item_type = normalize_type(node.get('type'))
        if item_type not in ITEM_TYPES:
            raise ValidationError(f'Pricing item {item_id} has unknown type {node.get("type")!r}')
        if parent_type is None and item_type != 'service':
            raise ValidationError(f'Top-level pricing item {item_id} must be a service')
        if parent_type is not None and item_type not in ALLOWED_CHILDREN[parent_type]:
            raise ValidationError(f'A {item_type} cannot be nested under a {parent_type} ({item_id})')
        price = node.get('basePrice')
        if price is not None and (not _is_number(price) or price < 0):
            raise ValidationError(f'Pricing item {item_id} has an invalid basePrice')
        for flag in ('isRequired', 'isRecurring'):
            if node.get(flag) is not None and not isinstance(node[flag], bool):
                raise ValidationError(f'Pricing item {item_id} has a non-boolean {flag}')
        order = node.get('sortOrder')
        if order is not None and (not isinstance(order, int) or isinstance(order, bool)):
            raise ValidationError(f'Pricing item {item_id} has a non-integer sortOrder')
        created = node.get('createdAt')
        if created not in (None, '') and _parse_timestamp(created) is None:
            raise ValidationError(f'Pricing item {item_id} has an invalid createdAt')
        children = node.get('children')
        if children is None:
            continue
        if not isinstance(children, list):
            raise ValidationError(f'Pricing item {item_id} has malformed children')
        stack.extend((child, item_type) for child in reversed(children))


def stamp_timestamps(items: List[PricingItem], now: Optional[str] = None) -> List[PricingItem]:
    """Stamp every node for a save.

    ``updatedAt`` is refreshed everywhere, ``createdAt`` is only filled
    in when missing and never left later than ``updatedAt``.  Children
    get their ``parentId`` re-pointed at the node that holds them, a
    null ``children`` becomes ``[]`` and legacy ``plan`` types become
    ``feature``.
    """
    now = now or now_iso()
    now_dt = _parse_timestamp(now)
    for node, parent in iter_items(items):
        node['type'] = normalize_type(node.get('type'))
        node['children'] = node.get('children') or []
        node['parentId'] = parent['id'] if parent is not None else None
        created = _parse_timestamp(node.get('createdAt'))
        if created is None or (now_dt is not None and created > now_dt):
            node['createdAt'] = now
        node['updatedAt'] = now
    return items


def insert_item(items: List[PricingItem], item: PricingItem, parent_id: Optional[str] = None) -> PricingItem:
    """Append ``item`` to the children of ``parent_id`` (or to the roots)."""
    item_type = normalize_type(item.get('type'))
    if parent_id is None:
        if item_type != 'service':
            raise ValidationError('Only services can be created at the top level')
        siblings = items
    else:
        parent = find_item_by_id(items, parent_id)
        if parent is None:
            raise NotFoundError(f'Parent pricing item {parent_id} not found')
        parent_type = normalize_type(parent.get('type'))
        if item_type not in ALLOWED_CHILDREN.get(parent_type, set()):
            raise ValidationError(f'A {item_type} cannot be nested under a {parent_type}')
        if parent.get('children') is None:
            parent['children'] = []
        siblings = parent['children']
    item['type'] = item_type
    item.setdefault('id', new_item_id(item_type))
    item.setdefault('children', [])
    item['parentId'] = parent_id
    if item.get('sortOrder') is None:
        item['sortOrder'] = _next_sort_order(siblings)
    siblings.append(item)
    return item


def update_item(items: List[PricingItem], item_id: str, changes: Dict[str, Any]) -> PricingItem:
    node, _, _ = _locate(items, item_id)
    for field in EDITABLE_FIELDS:
        if field in changes:
            node[field] = changes[field]
    return node


def remove_item(items: List[PricingItem], item_id: str) -> PricingItem:
    """Detach a node together with its whole subtree."""
    node, _, siblings = _locate(items, item_id)
    del siblings[next(i for i, s in enumerate(siblings) if s is node)]
    return node


def clone_item(items: List[PricingItem], item_id: str) -> PricingItem:
    """Deep-copy a node under the same parent.

    Every node of the copy gets a fresh id and loses its timestamps so
    the next save stamps it as new.  The copy is appended after the
    existing siblings.
    """
    source, parent_node, siblings = _locate(items, item_id)
    clone = copy.deepcopy(source)
    clone['name'] = f'{source.get("name", "")} (Copy)'
    owner_id = parent_node['id'] if parent_node is not None else None
    for node, parent in iter_items([clone]):
        node['id'] = new_item_id(f'{node.get("id")}_clone')
        node['parentId'] = parent['id'] if parent is not None else owner_id
        node.pop('createdAt', None)
        node.pop('updatedAt', None)
    clone['sortOrder'] = _next_sort_order(siblings)
    siblings.append(clone)
    return clone
