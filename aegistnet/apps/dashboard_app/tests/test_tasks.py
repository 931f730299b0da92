# aegistnet/apps/dashboard_app/tests/test_tasks.py
from django.test import TestCase
from unittest.mock import patch, MagicMock, AsyncMock

from apps.dashboard_app.tasks import resolve_child_address, parent_group_name


class ResolveChildAddressTaskTests(TestCase):
    def test_parent_group_name(self):
        self.assertEqual(parent_group_name('abc'), 'parent_abc_notifications')

    @patch('apps.dashboard_app.tasks.get_channel_layer')
    @patch('apps.dashboard_app.tasks.reverse_geocode')
    def test_address_pushed_to_parent_group(self, mock_geocode, mock_get_channel_layer):
        mock_geocode.return_value = 'Main St, Springfield'
        channel_layer = MagicMock()
        channel_layer.group_send = AsyncMock()
        mock_get_channel_layer.return_value = channel_layer

        result = resolve_child_address('parent-uid', 'child1', 1.5, 2.5)

        self.assertEqual(result, 'Main St, Springfield')
        mock_geocode.assert_called_once_with(1.5, 2.5)
        channel_layer.group_send.assert_called_once()
        group, message = channel_layer.group_send.call_args[0]
        self.assertEqual(group, 'parent_parent-uid_notifications')
        self.assertEqual(message['type'], 'address.resolved')
        self.assertEqual(message['payload'], {
            'type': 'address_resolved',
            'child_id': 'child1',
            'latitude': 1.5,
            'longitude': 2.5,
            'address': 'Main St, Springfield',
        })

    @patch('apps.dashboard_app.tasks.get_channel_layer')
    @patch('apps.dashboard_app.tasks.reverse_geocode')
    def test_failed_lookup_still_notifies(self, mock_geocode, mock_get_channel_layer):
        mock_geocode.return_value = 'Unable to load address'
        channel_layer = MagicMock()
        channel_layer.group_send = AsyncMock()
        mock_get_channel_layer.return_value = channel_layer

        resolve_child_address('parent-uid', 'child1', 1.5, 2.5)

        message = channel_layer.group_send.call_args[0][1]
        self.assertEqual(message['payload']['address'], 'Unable to load address')

    @patch('apps.dashboard_app.tasks.get_channel_layer')
    @patch('apps.dashboard_app.tasks.reverse_geocode')
    def test_no_channel_layer(self, mock_geocode, mock_get_channel_layer):
        mock_geocode.return_value = 'Somewhere'
        mock_get_channel_layer.return_value = None

        with self.assertLogs('apps.dashboard_app.tasks', level='WARNING'):
            result = resolve_child_address('parent-uid', 'child1', 1.5, 2.5)
        self.assertEqual(result, 'Somewhere')
