# aegistnet/apps/dashboard_app/tests/test_serializers.py
from django.test import SimpleTestCase

from apps.dashboard_app.serializers import (
    SignUpSerializer,
    ChildSummarySerializer,
    AppSerializer,
    ChildNameSerializer,
    ContentFilterToggleSerializer,
    LocationHistoryQuerySerializer,
    ParentProfileSerializer,
)

NOW = 1_700_000_000_000


class SignUpSerializerTests(SimpleTestCase):
    def test_valid_registration(self):
        data = {"name": "Pat", "email": "Pat@Example.com", "password": "secret1", "password2": "secret1"}
        serializer = SignUpSerializer(data=data)
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data['email'], 'pat@example.com')  # Emails are lowercased

    def test_password_mismatch(self):
        data = {"email": "pat@example.com", "password": "secret1", "password2": "secret2"}
        serializer = SignUpSerializer(data=data)
        self.assertFalse(serializer.is_valid())
        self.assertEqual(serializer.errors['password_confirmation'][0], 'Passwords do not match')

    def test_short_password(self):
        data = {"email": "pat@example.com", "password": "abc", "password2": "abc"}
        serializer = SignUpSerializer(data=data)
        self.assertFalse(serializer.is_valid())
        self.assertIn('password', serializer.errors)

    def test_invalid_email(self):
        data = {"email": "not-an-email", "password": "secret1", "password2": "secret1"}
        serializer = SignUpSerializer(data=data)
        self.assertFalse(serializer.is_valid())
        self.assertIn('email', serializer.errors)


class ChildSummarySerializerTests(SimpleTestCase):
    def test_online_child(self):
        child = {'id': 'c1', 'name': 'Ana', 'email': 'ana@kids.test', 'parentEmail': 'p@example.com',
                 'lastUpdated': NOW - 30 * 1000, 'deviceLocked': True}
        data = ChildSummarySerializer(child, context={'now': NOW}).data
        self.assertEqual(data['id'], 'c1')
        self.assertTrue(data['is_online'])
        self.assertEqual(data['last_seen'], 'Online now')
        self.assertTrue(data['deviceLocked'])
        self.assertFalse(data['appDeleted'])

    def test_child_without_heartbeat(self):
        data = ChildSummarySerializer({'id': 'c2'}, context={'now': NOW}).data
        self.assertFalse(data['is_online'])
        self.assertEqual(data['last_seen'], 'Never')
        self.assertEqual(data['last_updated_display'], 'Never')
        self.assertIsNone(data['lastUpdated'])
        self.assertEqual(data['name'], '')


class AppSerializerTests(SimpleTestCase):
    def test_blocked_at_passes_through(self):
        data = AppSerializer({'appId': '0', 'appName': 'YouTube', 'blocked': True, 'blockedAt': NOW}).data
        self.assertEqual(data['blockedAt'], NOW)
        self.assertTrue(data['blocked'])

    def test_defaults_for_sparse_record(self):
        data = AppSerializer({'appId': 'k1'}).data
        self.assertEqual(data['appName'], '')
        self.assertFalse(data['blocked'])


class RequestSerializerTests(SimpleTestCase):
    def test_child_name_is_stripped(self):
        serializer = ChildNameSerializer(data={'name': '  Ana  '})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data['name'], 'Ana')

    def test_child_name_cannot_be_blank(self):
        serializer = ChildNameSerializer(data={'name': '   '})
        self.assertFalse(serializer.is_valid())
        self.assertEqual(serializer.errors['name'][0], 'Name cannot be empty')

    def test_filter_toggle_defaults_to_single_child(self):
        serializer = ContentFilterToggleSerializer(data={'enabled': 'true'})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.validated_data, {'enabled': True, 'apply_to_all': False})

    def test_history_query_bounds(self):
        self.assertTrue(LocationHistoryQuerySerializer(data={'since': '100', 'limit': '5'}).is_valid())
        self.assertFalse(LocationHistoryQuerySerializer(data={'limit': '5000'}).is_valid())
        self.assertFalse(LocationHistoryQuerySerializer(data={'since': '-1'}).is_valid())

    def test_parent_profile_defaults(self):
        data = ParentProfileSerializer({'uid': 'u1', 'email': 'p@example.com'}).data
        self.assertEqual(data['role'], 'parent')
        self.assertEqual(data['name'], '')
