import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from portal.models import User


@pytest.fixture(autouse=True)
def pricing_path(tmp_path, settings):
    """Point the pricing document at a throwaway file for every test."""
    path = tmp_path / 'data' / 'pricing.json'
    settings.PRICING_DATA_PATH = str(path)
    cache.clear()
    yield path
    cache.clear()


@pytest.fixture
def home_care_service():
    return {
        'id': 'svc-1',
        'name': 'Home Care Service',
        'type': 'service',
        'basePrice': 150,
        'children': [
            {
                'id': 'feat-1',
                'type': 'feature',
                'name': 'Daily Check-ins',
                'basePrice': 0,
                'children': [
                    {'id': 'addon-1', 'type': 'addon', 'name': 'Vital signs monitoring', 'basePrice': 15},
                    {'id': 'addon-2', 'type': 'addon', 'name': 'Medication reminders', 'basePrice': 10},
                ],
            },
        ],
    }


@pytest.fixture
def admin_client(db):
    user = User.objects.create_user(username='admin1', password='P@ssw0rd1', role='admin')
    client = APIClient()
    client.force_authenticate(user=user)
    client.user = user
    return client
