"""
Integration tests for the pricing API.

The admin endpoints are exercised as an administrator, a reviewer and a
patient; the customer endpoints anonymously.  Every test writes its
pricing document into a temporary directory.
"""
import tempfile
from pathlib import Path

from django.core.cache import cache
from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from portal.models import AuditEvent, User
from portal.services.pricing_store import PricingStore


def _service(**overrides):
    service = {
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
                'isRequired': False,
                'children': [
                    {'id': 'addon-1', 'type': 'addon', 'name': 'Vital signs monitoring', 'basePrice': 15},
                    {'id': 'addon-2', 'type': 'addon', 'name': 'Medication reminders', 'basePrice': 10},
                ],
            },
        ],
    }
    service.update(overrides)
    return service


class PricingAPITests(APITestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.path = Path(tmp.name) / 'data' / 'pricing.json'
        override = override_settings(PRICING_DATA_PATH=str(self.path))
        override.enable()
        self.addCleanup(override.disable)
        cache.clear()

        self.admin_user = User.objects.create_user(username='admin1', password='P@ssw0rd1', role='admin')
        self.super_user = User.objects.create_user(username='super', password='P@ssw0rd1', role='super')
        self.reviewer = User.objects.create_user(username='reviewer1', password='P@ssw0rd1', role='reviewer')
        self.patient = User.objects.create_user(username='patient1', password='P@ssw0rd1', role='patient')

    def authenticate(self, user: User) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def seed(self, forest=None):
        return PricingStore(self.path).save(forest or [_service()])

    # -- access control -------------------------------------------------

    def test_admin_pricing_requires_authentication(self):
        response = APIClient().get('/api/admin/pricing')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_non_admin_roles_are_forbidden(self):
        for user in (self.patient, self.reviewer):
            response = self.authenticate(user).get('/api/admin/pricing')
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
            self.assertFalse(response.data['success'])

    def test_super_users_can_read_the_catalog(self):
        response = self.authenticate(self.super_user).get('/api/admin/pricing')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    # -- bulk load/save -------------------------------------------------

    def test_get_serves_defaults_before_anything_is_saved(self):
        response = self.authenticate(self.admin_user).get(reverse('admin_pricing'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(len(response.data['data']), 4)
        self.assertIsNone(response.data['version'])
        self.assertNotIn('ETag', response)
        self.assertEqual(response['Cache-Control'], 'private, no-cache')

    def test_save_persists_and_reports_version(self):
        client = self.authenticate(self.admin_user)
        response = client.post(reverse('admin_pricing'), {'data': [_service()]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Pricing data saved successfully (1 services)')
        self.assertTrue(self.path.exists())
        saved = response.data['data'][0]
        self.assertTrue(saved['createdAt'] and saved['updatedAt'])
        self.assertEqual(saved['children'][0]['parentId'], 'svc-1')
        self.assertEqual(response['ETag'], f'"{response.data["version"]}"')

        reread = client.get(reverse('admin_pricing'))
        self.assertEqual(reread.data['data'], response.data['data'])
        self.assertEqual(reread.data['version'], response.data['version'])
        self.assertTrue(AuditEvent.objects.filter(action='pricing_save', user=self.admin_user).exists())

    def test_save_rejects_invalid_payloads(self):
        client = self.authenticate(self.admin_user)
        for body in ({'data': {'id': 'x'}}, {'data': [{'id': 'a', 'name': 'A', 'type': 'addon'}]}, {}):
            response = client.post(reverse('admin_pricing'), body, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertFalse(response.data['success'])
            self.assertTrue(response.data['error'])
        self.assertFalse(self.path.exists())

    def test_stale_version_is_rejected(self):
        client = self.authenticate(self.admin_user)
        first = client.post(reverse('admin_pricing'), {'data': [_service()]}, format='json')
        client.post(reverse('admin_pricing'), {'data': [_service(basePrice=175)]}, format='json')

        stale = client.post(reverse('admin_pricing'), {'data': [_service(basePrice=200)]}, format='json',
                            HTTP_IF_MATCH=first['ETag'])
        self.assertEqual(stale.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(stale.data['success'])

        body_version = client.post(reverse('admin_pricing'),
                                   {'data': [_service(basePrice=200)], 'version': first.data['version']},
                                   format='json')
        self.assertEqual(body_version.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(PricingStore(self.path).load()[0]['basePrice'], 175)

    def test_save_failure_is_reported_generically(self):
        blocker = self.path.parent
        blocker.parent.mkdir(parents=True, exist_ok=True)
        blocker.write_text('not a directory')
        response = self.authenticate(self.admin_user).post(reverse('admin_pricing'), {'data': [_service()]},
                                                           format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'success': False, 'error': 'Failed to process pricing data'})

    # -- single item edits ----------------------------------------------

    def test_create_update_clone_and_delete_items(self):
        self.seed()
        client = self.authenticate(self.admin_user)

        created = client.post('/api/admin/pricing/items',
                              {'name': 'Night <b>visits</b>', 'type': 'addon', 'parentId': 'feat-1', 'basePrice': 25},
                              format='json')
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        item = created.data['item']
        self.assertEqual(item['name'], 'Night visits')
        self.assertEqual(item['parentId'], 'feat-1')
        self.assertTrue(item['createdAt'])

        patched = client.patch(f'/api/admin/pricing/items/{item["id"]}', {'basePrice': 30}, format='json')
        self.assertEqual(patched.status_code, status.HTTP_200_OK)
        self.assertEqual(patched.data['item']['basePrice'], 30)
        self.assertEqual(patched.data['item']['name'], 'Night visits')

        cloned = client.post('/api/admin/pricing/items/feat-1/clone', format='json')
        self.assertEqual(cloned.status_code, status.HTTP_201_CREATED)
        self.assertEqual(cloned.data['item']['name'], 'Daily Check-ins (Copy)')
        self.assertEqual(len(cloned.data['item']['children']), 3)

        deleted = client.delete(f'/api/admin/pricing/items/{item["id"]}')
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        missing = client.get(f'/api/admin/pricing/items/{item["id"]}')
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

        actions = set(AuditEvent.objects.values_list('action', flat=True))
        self.assertTrue({'pricing_item_create', 'pricing_item_update', 'pricing_item_clone',
                         'pricing_item_delete'} <= actions)

    def test_null_children_are_stored_as_empty_lists(self):
        client = self.authenticate(self.admin_user)
        forest = [_service(children=[{'id': 'feat-1', 'type': 'feature', 'name': 'Daily Check-ins',
                                      'children': None}])]
        saved = client.post(reverse('admin_pricing'), {'data': forest}, format='json')
        self.assertEqual(saved.status_code, status.HTTP_200_OK)
        self.assertEqual(saved.data['data'][0]['children'][0]['children'], [])
        self.assertEqual(PricingStore(self.path).load()[0]['children'][0]['children'], [])

        created = client.post('/api/admin/pricing/items',
                              {'name': 'Night visits', 'type': 'addon', 'parentId': 'feat-1'}, format='json')
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertEqual(created.data['item']['sortOrder'], 0)

    def test_save_rejects_mistyped_fields(self):
        client = self.authenticate(self.admin_user)
        for overrides in ({'isRequired': 'false'}, {'sortOrder': 1.5}, {'createdAt': 5}):
            response = client.post(reverse('admin_pricing'), {'data': [_service(**overrides)]}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(self.path.exists())

    def test_item_nesting_rules_are_enforced(self):
        self.seed()
        client = self.authenticate(self.admin_user)
        loose = client.post('/api/admin/pricing/items', {'name': 'Loose', 'type': 'addon'}, format='json')
        self.assertEqual(loose.status_code, status.HTTP_400_BAD_REQUEST)
        orphan = client.post('/api/admin/pricing/items',
                             {'name': 'Orphan', 'type': 'addon', 'parentId': 'nope'}, format='json')
        self.assertEqual(orphan.status_code, status.HTTP_404_NOT_FOUND)
        negative = client.post('/api/admin/pricing/items',
                               {'name': 'Cheap', 'type': 'service', 'basePrice': -5}, format='json')
        self.assertEqual(negative.status_code, status.HTTP_400_BAD_REQUEST)

    # -- customer pages -------------------------------------------------

    def test_service_detail_by_slug(self):
        self.seed()
        response = self.client.get('/api/services/pricing/home-care-service')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        service = response.data['service']
        self.assertEqual(service['metadata'], {
            'totalPlans': 1, 'totalFeatures': 1, 'totalAddons': 2, 'startingPrice': 150,
        })
        self.assertEqual(service['plans'][0]['pricing'], {'daily': 150, 'monthly': 4500, 'hourly': 6.25})
        self.assertEqual(response['Cache-Control'], 'public, s-maxage=300, stale-while-revalidate=600')

        upper = self.client.get('/api/services/pricing/HOME-CARE-SERVICE')
        self.assertEqual(upper.data['service']['id'], 'svc-1')

    def test_service_detail_falls_back_to_defaults(self):
        response = self.client.get(reverse('service_pricing_detail', args=['ahenefie']))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['service']['name'], 'Ahenefie')

    def test_unknown_slug_is_not_found(self):
        self.seed()
        response = self.client.get('/api/services/pricing/unknown-service')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'success': False, 'error': 'Service not found'})
        self.assertNotIn('Cache-Control', response)

    def test_public_list_and_filters(self):
        self.seed()
        listing = self.client.get('/api/services/pricing')
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual([s['slug'] for s in listing.data['data']], ['home-care-service'])

        by_name = self.client.get('/api/services/pricing', {'name': 'home care'})
        self.assertEqual(by_name.data['data']['id'], 'svc-1')
        by_id = self.client.get('/api/services/pricing', {'id': 'svc-1'})
        self.assertEqual(by_id.data['data']['name'], 'Home Care Service')
        missing = self.client.get('/api/services/pricing', {'id': 'nope'})
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_quote(self):
        self.seed()
        response = self.client.post('/api/services/pricing/home-care-service/quote',
                                    {'selected': ['feat-1', 'addon-1']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quote']['total'], 165)
        self.assertEqual([line['id'] for line in response.data['quote']['items']], ['feat-1', 'addon-1'])

    def test_saving_refreshes_cached_customer_views(self):
        self.seed()
        before = self.client.get('/api/services/pricing/home-care-service')
        self.assertEqual(before.data['service']['basePrice'], 150)

        admin = self.authenticate(self.admin_user)
        admin.patch('/api/admin/pricing/items/svc-1', {'basePrice': 99}, format='json')

        after = self.client.get('/api/services/pricing/home-care-service')
        self.assertEqual(after.data['service']['basePrice'], 99)

    # -- health ---------------------------------------------------------

    def test_healthz_reports_pricing_source(self):
        response = self.client.get('/healthz')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'success': True, 'db': True, 'pricing': 'defaults'})
        self.seed()
        self.assertEqual(self.client.get('/healthz').json()['pricing'], 'persisted')
