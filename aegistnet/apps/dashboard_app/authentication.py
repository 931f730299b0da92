import logging

from rest_framework import authentication, exceptions

from apps.services import auth_service
from .firebase_service import FirebaseServiceError

logger = logging.getLogger(__name__)


class FirebaseUser:
    """
    Request user backed by verified Firebase ID token claims.
    Parents have no local database row.
    """
    is_authenticated = True
    is_anonymous = False
    is_active = True

    def __init__(self, claims):
        self.claims = claims
        self.uid = claims.get('uid') or claims.get('user_id')
        self.email = claims.get('email')
        self.name = claims.get('name', '')
        self.email_verified = bool(claims.get('email_verified', False))

    @property
    def pk(self):
        return self.uid

    def __str__(self):
        return self.email or self.uid


def user_from_token(id_token):
    try:
        claims = auth_service.verify_id_token(id_token)
    except FirebaseServiceError as e:
        logger.error(f"Cannot verify token, Firebase unavailable: {e}")
        raise exceptions.AuthenticationFailed('Authentication service unavailable.') from e
    except auth_service.AuthServiceError as e:
        raise exceptions.AuthenticationFailed(e.message) from e
    return FirebaseUser(claims)


class FirebaseAuthentication(authentication.BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed('Invalid token header.')
        try:
            id_token = header[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Invalid token header.')
        user = user_from_token(id_token)
        return (user, id_token)

    def authenticate_header(self, request):
        return self.keyword
