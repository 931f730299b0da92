from django.urls import re_path
from . import consumers

websocket_urlpatterns = [
    re_path(r'ws/children/$', consumers.ChildrenConsumer.as_asgi()),
    re_path(r'ws/children/(?P<child_id>[^/]+)/$', consumers.ChildConsumer.as_asgi()),
]
