# aegistnet/apps/dashboard_app/tasks.py
from celery import shared_task
from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync
import logging

from .geocode_service import reverse_geocode, ADDRESS_ERROR

logger = logging.getLogger(__name__)


def parent_group_name(parent_uid):
    return f'parent_{parent_uid}_notifications'


# Nominatim's usage policy allows one request per second.
@shared_task(name="resolve_child_address", rate_limit='1/s', ignore_result=True)
def resolve_child_address(parent_uid, child_id, lat, lon):
    """
    Resolves the address of a child's location in the background and pushes
    it to the parent's notification group.
    """
    address = reverse_geocode(lat, lon)
    if address == ADDRESS_ERROR:
        logger.info(f"Address for child {child_id} could not be resolved.")

    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer configured; address update not delivered.")
        return address

    async_to_sync(channel_layer.group_send)(
        parent_group_name(parent_uid),
        {
            "type": "address.resolved",
            "payload": {
                'type': 'address_resolved',
                'child_id': child_id,
                'latitude': lat,
                'longitude': lon,
                'address': address,
            },
        }
    )
    logger.info(f"Sent resolved address for child {child_id} to parent {parent_uid}")
    return address
