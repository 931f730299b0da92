from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from rest_framework.exceptions import AuthenticationFailed
import logging

from .authentication import user_from_token

logger = logging.getLogger(__name__)


class FirebaseTokenAuthMiddleware(BaseMiddleware):
    """
    Populates scope["user"] from a Firebase ID token passed as ?token=...
    since browsers cannot set headers on WebSocket handshakes.
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        query = parse_qs(scope.get('query_string', b'').decode())
        token = (query.get('token') or [None])[0]
        scope['user'] = AnonymousUser()
        if token:
            try:
                scope['user'] = await sync_to_async(user_from_token)(token)
            except AuthenticationFailed as e:
                logger.info(f"Rejected WebSocket token: {e.detail}")
        return await super().__call__(scope, receive, send)
