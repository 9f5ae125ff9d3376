"""
URL mappings for the home-care portal API.

Trailing slashes are omitted to match the paths the front-end calls.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view, jwt_logout_view
from .views import health
from .views.pricing import (
    pricing_forest,
    pricing_item_create,
    pricing_item_detail,
    pricing_item_clone,
)
from .views.services_pricing import (
    services_pricing_list,
    service_pricing_detail,
    service_pricing_quote,
)


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    # Admin pricing catalog
    path('api/admin/pricing', pricing_forest, name='admin_pricing'),
    path('api/admin/pricing/items', pricing_item_create, name='admin_pricing_item_create'),
    path('api/admin/pricing/items/<str:item_id>', pricing_item_detail, name='admin_pricing_item'),
    path('api/admin/pricing/items/<str:item_id>/clone', pricing_item_clone, name='admin_pricing_item_clone'),
    # Customer pricing pages
    path('api/services/pricing', services_pricing_list, name='services_pricing'),
    path('api/services/pricing/<str:service_slug>', service_pricing_detail, name='service_pricing_detail'),
    path('api/services/pricing/<str:service_slug>/quote', service_pricing_quote, name='service_pricing_quote'),
]
