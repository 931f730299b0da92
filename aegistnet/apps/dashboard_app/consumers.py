import json
import logging

from asgiref.sync import async_to_sync, sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from kombu.exceptions import OperationalError

from . import firebase_service
from .firebase_service import FirebaseServiceError
from .geocode_service import get_cached_address
from .live import ChildrenSubscription, ChildSubscription
from .serializers import ChildSummarySerializer
from .snapshots import apps_as_list, content_filters_of, is_filter_active, location_of
from .tasks import parent_group_name, resolve_child_address

logger = logging.getLogger(__name__)

UNAUTHORIZED_CLOSE_CODE = 4401
NOT_FOUND_CLOSE_CODE = 4404
UNAVAILABLE_CLOSE_CODE = 4503


class _LiveConsumer(AsyncWebsocketConsumer):
    """
    Pushes realtime-database changes to the client. Updates arrive on the
    Firebase listener thread and are relayed through this consumer's channel.
    """
    subscription = None
    update_type = None
    closed = False

    async def connect(self):
        self.user = self.scope.get("user")
        if not self.user or not self.user.is_authenticated:
            await self.close(code=UNAUTHORIZED_CLOSE_CODE)
            return

        self.room_group_name = parent_group_name(self.user.uid)
        await self.channel_layer.group_add(self.room_group_name, self.channel_name)

        try:
            allowed = await sync_to_async(self.authorize)()
        except FirebaseServiceError as e:
            logger.error(f"Cannot open live subscription for {self.user}: {e}")
            await self.close(code=UNAVAILABLE_CLOSE_CODE)
            return
        if not allowed:
            await self.close(code=NOT_FOUND_CLOSE_CODE)
            return

        await self.accept()
        try:
            subscription = await sync_to_async(self.make_subscription().start)()
        except FirebaseServiceError as e:
            logger.error(f"Live subscription failed for {self.user}: {e}")
            await self.send(text_data=json.dumps({'type': 'error', 'message': 'Live updates are unavailable.'}))
            await self.close(code=UNAVAILABLE_CLOSE_CODE)
            return
        if self.closed:
            # Socket went away while the listener was starting.
            await sync_to_async(subscription.close)()
            return
        self.subscription = subscription

    async def disconnect(self, close_code):
        self.closed = True
        if self.subscription is not None:
            await sync_to_async(self.subscription.close)()
            self.subscription = None
        if hasattr(self, 'room_group_name'):
            await self.channel_layer.group_discard(self.room_group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        await self.send(text_data=json.dumps({
            'type': 'info',
            'message': 'This channel is read-only. Use the REST API to make changes.'
        }))

    def authorize(self):
        return True

    def make_subscription(self):
        raise NotImplementedError

    def relay(self, payload):
        # Called from the listener thread.
        async_to_sync(self.channel_layer.send)(
            self.channel_name,
            {"type": "live.update", "payload": payload}
        )

    async def live_update(self, event):
        await self.send(text_data=json.dumps({
            'type': self.update_type,
            'payload': event['payload'],
        }))

    async def address_resolved(self, event):
        await self.send(text_data=json.dumps(event['payload']))


class ChildrenConsumer(_LiveConsumer):
    """Live list of the parent's children, as on the dashboard."""
    update_type = 'children_update'

    def make_subscription(self):
        return ChildrenSubscription(self.user.email, self.on_children)

    def on_children(self, children):
        self.relay(ChildSummarySerializer(children, many=True).data)


class ChildConsumer(_LiveConsumer):
    """Live view of one child: apps, filters, location."""
    update_type = 'child_update'

    def authorize(self):
        self.child_id = self.scope['url_route']['kwargs']['child_id']
        record = firebase_service.get_child(self.child_id)
        return isinstance(record, dict) and record.get('parentEmail') == self.user.email

    def make_subscription(self):
        self._last_coordinates = None
        return ChildSubscription(self.child_id, self.on_child)

    def on_child(self, child):
        if child is None:
            self.relay(None)
            return
        if child.get('parentEmail') != self.user.email:
            # Re-linked to another parent while subscribed.
            self.relay(None)
            return

        location = location_of(child)
        address = None
        if location:
            coordinates = (location['latitude'], location['longitude'])
            address = get_cached_address(*coordinates)
            if address is None and coordinates != self._last_coordinates:
                try:
                    resolve_child_address.delay(self.user.uid, self.child_id, *coordinates)
                except OperationalError as e:
                    # Broker down: send the update without an address, retry on the next change.
                    logger.warning(f"Could not queue address lookup for child {self.child_id}: {e}")
                    coordinates = None
            self._last_coordinates = coordinates

        filters = content_filters_of(child)
        payload = dict(ChildSummarySerializer(child).data)
        payload.update({
            'apps': apps_as_list(child.get('apps')),
            'contentFilters': filters,
            'filter_active': is_filter_active(filters),
            'location': location,
            'address': address,
        })
        self.relay(payload)
