# aegistnet/apps/dashboard_app/tests/test_firebase_service.py
from django.test import SimpleTestCase
from unittest.mock import patch, MagicMock
from firebase_admin import exceptions as firebase_exceptions

from apps.dashboard_app import firebase_service
from apps.dashboard_app.firebase_service import FirebaseServiceError, FirebaseUnavailable


class FirebaseServiceTests(SimpleTestCase):
    def setUp(self):
        app_patcher = patch.object(firebase_service, 'firebase_app', MagicMock())
        app_patcher.start()
        self.addCleanup(app_patcher.stop)

        self.refs = {}
        ref_patcher = patch('apps.dashboard_app.firebase_service.db.reference', side_effect=self._reference)
        self.mock_reference = ref_patcher.start()
        self.addCleanup(ref_patcher.stop)

    def _reference(self, path, app=None):
        return self.refs.setdefault(path, MagicMock())

    def test_child_path(self):
        self.assertEqual(firebase_service.child_path('c1'), 'users/childs/c1')
        self.assertEqual(firebase_service.child_path('c1', 'apps', 3), 'users/childs/c1/apps/3')

    def test_children_snapshot_defaults_to_empty(self):
        self.refs['users/childs'] = MagicMock(**{'get.return_value': None})
        self.assertEqual(firebase_service.get_children_snapshot(), {})

    def test_block_app_sets_timestamp(self):
        with patch.object(firebase_service, 'now_ms', return_value=42):
            values = firebase_service.update_blocked_app('c1', '0', True)
        self.assertEqual(values, {'blocked': True, 'blockedAt': 42})
        self.refs['users/childs/c1/apps/0'].update.assert_called_once_with({'blocked': True, 'blockedAt': 42})

    def test_unblock_app_clears_timestamp(self):
        values = firebase_service.update_blocked_app('c1', 'k1', False)
        self.assertEqual(values, {'blocked': False, 'blockedAt': None})

    def test_unblock_all_is_one_update(self):
        apps = [
            {'appId': '0', 'blocked': True},
            {'appId': '1', 'blocked': False},
            {'appId': '2', 'blocked': True},
        ]
        count = firebase_service.unblock_all_apps('c1', apps)
        self.assertEqual(count, 2)
        self.refs['users/childs/c1'].update.assert_called_once_with({
            'apps/0/blocked': False, 'apps/0/blockedAt': None,
            'apps/2/blocked': False, 'apps/2/blockedAt': None,
        })

    def test_unblock_all_with_nothing_blocked(self):
        self.assertEqual(firebase_service.unblock_all_apps('c1', [{'appId': '0'}]), 0)
        self.assertNotIn('users/childs/c1', self.refs)

    def test_flag_updates(self):
        firebase_service.toggle_device_lock('c1', 1)
        firebase_service.set_app_deleted('c1', False)
        firebase_service.update_child_name('c1', 'Ana')
        firebase_service.update_content_filters('c1', {'nudity': True})
        update = self.refs['users/childs/c1'].update
        update.assert_any_call({'deviceLocked': True})
        update.assert_any_call({'appDeleted': False})
        update.assert_any_call({'name': 'Ana'})
        self.refs['users/childs/c1/contentFilters'].update.assert_called_once_with({'nudity': True})

    def test_location_refresh_request(self):
        with patch.object(firebase_service, 'now_ms', return_value=99):
            values = firebase_service.request_location_refresh('c1')
        self.assertEqual(values, {'requestLocationRefresh': True, 'lastLocationRefresh': 99})

    def test_create_parent_profile(self):
        with patch.object(firebase_service, 'now_ms', return_value=7):
            profile = firebase_service.create_parent_profile('u1', 'p@example.com', 'Pat')
        self.assertEqual(profile, {'uid': 'u1', 'email': 'p@example.com', 'name': 'Pat',
                                   'createdAt': 7, 'role': 'parent'})
        self.refs['users/parents/u1'].set.assert_called_once_with(profile)

    def test_database_errors_are_wrapped(self):
        ref = MagicMock()
        ref.update.side_effect = firebase_exceptions.PermissionDeniedError('denied')
        self.refs['users/childs/c1'] = ref
        with self.assertRaises(FirebaseServiceError):
            firebase_service.toggle_device_lock('c1', True)

    def test_listen_returns_registration(self):
        callback = MagicMock()
        registration = firebase_service.listen('users/childs', callback)
        self.refs['users/childs'].listen.assert_called_once_with(callback)
        self.assertIs(registration, self.refs['users/childs'].listen.return_value)


class FirebaseUnconfiguredTests(SimpleTestCase):
    @patch.object(firebase_service, 'firebase_app', None)
    def test_calls_fail_when_not_configured(self):
        with self.assertRaises(FirebaseUnavailable):
            firebase_service.get_child('c1')
        with self.assertRaises(FirebaseUnavailable):
            firebase_service.toggle_device_lock('c1', True)
