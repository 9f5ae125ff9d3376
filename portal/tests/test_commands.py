import json
from io import StringIO

import pytest
from django.core.cache import cache
from django.core.management import call_command

from portal.models import User
from portal.services.pricing_cache import cache_key
from portal.services.pricing_store import PricingStore


def run(*args):
    out = StringIO()
    call_command(*args, stdout=out)
    return out.getvalue()


def test_seed_pricing_writes_the_builtin_catalog(pricing_path):
    output = run('seed_pricing')
    assert 'Seeded 4 services' in output
    forest = json.loads(pricing_path.read_text())
    assert [s['name'] for s in forest][:2] == ['Home Care Service', 'Ahenefie']
    assert all(s['updatedAt'] for s in forest)


def test_seed_pricing_keeps_existing_document_unless_forced(pricing_path, home_care_service):
    PricingStore(pricing_path).save([home_care_service])

    assert 'already exists' in run('seed_pricing')
    assert len(json.loads(pricing_path.read_text())) == 1

    run('seed_pricing', '--force')
    assert len(json.loads(pricing_path.read_text())) == 4


def test_refresh_pricing_cache_warms_every_projection(pricing_path, home_care_service):
    PricingStore(pricing_path).save([home_care_service])

    output = run('refresh_pricing_cache')
    assert 'Refreshed 2 pricing keys' in output
    assert cache.get(cache_key('public'))[0]['slug'] == 'home-care-service'
    assert cache.get(cache_key('service:home-care-service'))['metadata']['totalAddons'] == 2


@pytest.mark.django_db
def test_ensure_test_users_is_idempotent():
    run('ensure_test_users')
    User.objects.filter(username='reviewer1').update(role='patient')
    run('ensure_test_users')
    roles = dict(User.objects.values_list('username', 'role'))
    assert roles == {
        'admin1': 'admin',
        'reviewer1': 'reviewer',
        'caregiver1': 'caregiver',
        'patient1': 'patient',
        'super': 'super',
    }
    assert User.objects.get(username='patient1').check_password('123456')
