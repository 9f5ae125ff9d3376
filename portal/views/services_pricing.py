"""
Public pricing endpoints used by the customer pricing pages.

Nothing here requires a login.  Responses are built from the same
pricing document the admin edits and are cached until the next save.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from portal.exceptions import NotFoundError
from portal.serializers.pricing import QuoteSerializer
from portal.services.customer import (
    find_public_service,
    quote,
    transform_to_customer_service,
    transform_to_public_services,
)
from portal.services.pricing_cache import cached_payload
from portal.services.pricing_store import get_pricing_store
from portal.services.slugs import find_service_by_slug


def _service_for_slug(service_slug: str):
    forest = get_pricing_store().load()
    if not forest:
        raise NotFoundError('No pricing data available')
    service = find_service_by_slug(forest, service_slug)
    if service is None:
        raise NotFoundError('Service not found')
    return service


@api_view(['GET'])
@permission_classes([AllowAny])
def services_pricing_list(request):
    """List public services, or one of them when ``id`` or ``name`` is given."""
    services = cached_payload('public', lambda: transform_to_public_services(get_pricing_store().load()))
    service_id = request.query_params.get('id')
    name = request.query_params.get('name')
    if service_id or name:
        service = find_public_service(services, service_id=service_id, name=name)
        if service is None:
            raise NotFoundError('Service not found')
        return Response({'success': True, 'data': service})
    return Response({'success': True, 'data': services})


@api_view(['GET'])
@permission_classes([AllowAny])
def service_pricing_detail(request, service_slug: str):
    """Customer view of one service, addressed by its slug."""
    customer_service = cached_payload(
        f'service:{service_slug.lower()}',
        lambda: transform_to_customer_service(_service_for_slug(service_slug)),
    )
    return Response({'success': True, 'service': customer_service})


@api_view(['POST'])
@permission_classes([AllowAny])
def service_pricing_quote(request, service_slug: str):
    """Total price of a customer's feature and add-on selection."""
    s = QuoteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    service = _service_for_slug(service_slug)
    return Response({'success': True, 'quote': quote(service, s.validated_data['selected'])})
