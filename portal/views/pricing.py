"""
Admin pricing endpoints.

The admin UI loads the whole forest, edits it locally and posts it back
in one piece.  The single-item endpoints serve create, edit, delete and
clone actions; each loads the forest, applies one change and saves the
forest whole, so every write goes through the same validation and
timestamp stamping.

Writes honour optimistic concurrency when the client sends the version
it read (``version`` in the body or an ``If-Match`` header); without it
the last writer wins.
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import NotFoundError, PersistenceError
from portal.permissions import IsAdminRole
from portal.serializers.pricing import PricingItemSerializer, PricingSaveSerializer
from portal.services import pricing_tree
from portal.services.audit import log_action
from portal.services.pricing_cache import broadcast_pricing_update, invalidate_pricing_cache
from portal.services.pricing_store import get_pricing_store

logger = logging.getLogger(__name__)


def _requested_version(request, body_version=None):
    if body_version:
        return body_version
    header = (request.headers.get('If-Match') or '').strip()
    if not header or header == '*':
        return None
    if header.startswith('W/'):
        header = header[2:]
    return header.strip('"') or None


def _versioned(payload: dict, version, status_code=status.HTTP_200_OK) -> Response:
    resp = Response({**payload, 'version': version}, status=status_code)
    if version:
        resp['ETag'] = f'"{version}"'
    return resp


def _commit(request, store, forest, *, expected_version, action, object_id=None, detail=None):
    """Persist ``forest`` and fan the change out to caches, sockets and the audit log."""
    saved = store.save(forest, expected_version=expected_version)
    version = store.version()
    invalidate_pricing_cache()
    broadcast_pricing_update(version=version, services=len(saved))
    log_action(user=request.user, action=action, object_type='pricing', object_id=object_id,
               detail={'services': len(saved), 'version': version, **(detail or {})})
    return saved, version


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def pricing_forest(request):
    """Read or replace the whole pricing forest."""
    store = get_pricing_store()
    if request.method == 'GET':
        try:
            version = store.version()
        except PersistenceError:
            logger.warning('Could not fingerprint pricing document %s', store.path, exc_info=True)
            version = None
        return _versioned({'success': True, 'data': store.load()}, version)

    s = PricingSaveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = s.validated_data['data']
    expected = _requested_version(request, s.validated_data.get('version'))
    saved, version = _commit(request, store, data, expected_version=expected, action='pricing_save')
    return _versioned({
        'success': True,
        'message': f'Pricing data saved successfully ({len(saved)} services)',
        'data': saved,
    }, version)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def pricing_item_create(request):
    """Create one node under ``parentId``, or a new service when it is absent."""
    s = PricingItemSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    item = {k: v for k, v in s.validated_data.items() if v is not None}
    parent_id = item.pop('parentId', None)

    store = get_pricing_store()
    expected = _requested_version(request) or store.version()
    forest = store.load()
    created = pricing_tree.insert_item(forest, item, parent_id)
    saved, version = _commit(request, store, forest, expected_version=expected,
                             action='pricing_item_create', object_id=created['id'],
                             detail={'type': created['type'], 'parentId': parent_id})
    return _versioned({
        'success': True,
        'message': f'{created["type"].capitalize()} "{created["name"]}" created',
        'item': pricing_tree.find_item_by_id(saved, created['id']),
        'data': saved,
    }, version, status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def pricing_item_detail(request, item_id: str):
    store = get_pricing_store()
    if request.method == 'GET':
        item = pricing_tree.find_item_by_id(store.load(), item_id)
        if item is None:
            raise NotFoundError(f'Pricing item {item_id} not found')
        return Response({'success': True, 'item': item})

    expected = _requested_version(request) or store.version()
    forest = store.load()

    if request.method == 'DELETE':
        removed = pricing_tree.remove_item(forest, item_id)
        saved, version = _commit(request, store, forest, expected_version=expected,
                                 action='pricing_item_delete', object_id=item_id,
                                 detail={'type': removed.get('type'), 'name': removed.get('name')})
        return _versioned({
            'success': True,
            'message': f'"{removed.get("name")}" deleted',
            'data': saved,
        }, version)

    s = PricingItemSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    pricing_tree.update_item(forest, item_id, s.validated_data)
    saved, version = _commit(request, store, forest, expected_version=expected,
                             action='pricing_item_update', object_id=item_id,
                             detail={'fields': sorted(s.validated_data)})
    return _versioned({
        'success': True,
        'message': 'Pricing item updated',
        'item': pricing_tree.find_item_by_id(saved, item_id),
        'data': saved,
    }, version)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def pricing_item_clone(request, item_id: str):
    """Deep-copy a node and its subtree next to the original."""
    store = get_pricing_store()
    expected = _requested_version(request) or store.version()
    forest = store.load()
    clone = pricing_tree.clone_item(forest, item_id)
    saved, version = _commit(request, store, forest, expected_version=expected,
                             action='pricing_item_clone', object_id=clone['id'],
                             detail={'source': item_id})
    return _versioned({
        'success': True,
        'message': f'"{clone["name"]}" created',
        'item': pricing_tree.find_item_by_id(saved, clone['id']),
        'data': saved,
    }, version, status.HTTP_201_CREATED)
