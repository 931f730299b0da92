# aegistnet/apps/services/auth_service.py
# Parent authentication against Firebase Authentication.
import logging

import requests
from django.conf import settings
from django.core.mail import send_mail
from firebase_admin import auth, exceptions as firebase_exceptions

from apps.dashboard_app import firebase_service
from apps.dashboard_app.firebase_service import FirebaseServiceError
from apps.dashboard_app.status_utils import get_firebase_error_message

logger = logging.getLogger(__name__)

SIGN_IN_URL = 'https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword'

# Identity Toolkit REST error messages -> client SDK style codes
REST_ERROR_CODES = {
    'EMAIL_NOT_FOUND': 'auth/user-not-found',
    'INVALID_PASSWORD': 'auth/wrong-password',
    'INVALID_LOGIN_CREDENTIALS': 'auth/wrong-password',
    'INVALID_EMAIL': 'auth/invalid-email',
    'USER_DISABLED': 'auth/user-disabled',
    'TOO_MANY_ATTEMPTS_TRY_LATER': 'auth/too-many-requests',
}


class AuthServiceError(Exception):
    def __init__(self, code, message=None):
        self.code = code
        self.message = message or get_firebase_error_message(code)
        super().__init__(self.message)


def sign_in(email, password):
    """
    Exchanges email/password for a Firebase ID token.
    Returns a dict with id_token, refresh_token, expires_in, uid and email.
    """
    api_key = getattr(settings, 'FIREBASE_WEB_API_KEY', None)
    if not api_key:
        raise AuthServiceError('auth/unavailable', 'Authentication service is not configured.')

    try:
        response = requests.post(
            SIGN_IN_URL,
            params={'key': api_key},
            json={'email': email, 'password': password, 'returnSecureToken': True},
            timeout=settings.FIREBASE_REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error(f"Sign-in request failed for {email}: {e}")
        raise AuthServiceError('auth/network-request-failed') from e

    try:
        payload = response.json() if response.content else {}
    except ValueError as e:
        logger.error(f"Sign-in returned a non-JSON body (HTTP {response.status_code}) for {email}")
        raise AuthServiceError('auth/internal-error') from e
    if not response.ok:
        raw = (payload.get('error') or {}).get('message', '')
        # e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account has been ..."
        code = REST_ERROR_CODES.get(raw.split(' ')[0], 'auth/internal-error')
        logger.warning(f"Login failed for {email}: {raw}")
        raise AuthServiceError(code)

    return {
        'id_token': payload['idToken'],
        'refresh_token': payload.get('refreshToken'),
        'expires_in': int(payload.get('expiresIn', 3600)),
        'uid': payload['localId'],
        'email': payload.get('email', email),
    }


def _send_action_email(email, subject, intro, link):
    send_mail(
        subject,
        f"{intro}\n\n{link}\n\nIf you did not request this, you can ignore this email.",
        settings.DEFAULT_FROM_EMAIL,
        [email],
    )


def send_email_verification(email):
    try:
        link = auth.generate_email_verification_link(email, app=firebase_service.get_app())
    except auth.UserNotFoundError as e:
        raise AuthServiceError('auth/user-not-found') from e
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        logger.error(f"Could not generate verification link for {email}: {e}")
        raise AuthServiceError('auth/internal-error') from e
    _send_action_email(email, 'Verify your AegistNet account',
                       'Confirm your email address by following this link:', link)


def send_password_reset(email):
    try:
        link = auth.generate_password_reset_link(email, app=firebase_service.get_app())
    except auth.UserNotFoundError as e:
        raise AuthServiceError('auth/user-not-found') from e
    except ValueError as e:
        raise AuthServiceError('auth/invalid-email') from e
    except firebase_exceptions.FirebaseError as e:
        logger.error(f"Could not generate password reset link for {email}: {e}")
        raise AuthServiceError('auth/internal-error') from e
    _send_action_email(email, 'Reset your AegistNet password',
                       'Choose a new password by following this link:', link)


def sign_up(email, password, name=''):
    """
    Creates the auth account and the parent profile, then tries to send the
    verification email. A failed verification email does not fail sign-up;
    it is reported through `verification_sent`.
    """
    app = firebase_service.get_app()
    try:
        user = auth.create_user(email=email, password=password,
                                display_name=name or None, app=app)
    except auth.EmailAlreadyExistsError as e:
        raise AuthServiceError('auth/email-already-exists') from e
    except ValueError as e:
        raise AuthServiceError('auth/weak-password' if 'password' in str(e).lower()
                               else 'auth/invalid-email') from e
    except firebase_exceptions.FirebaseError as e:
        logger.error(f"Could not create account for {email}: {e}")
        raise AuthServiceError('auth/internal-error') from e

    try:
        profile = firebase_service.create_parent_profile(user.uid, user.email, name)
    except FirebaseServiceError:
        # Roll back so the email can register again.
        try:
            auth.delete_user(user.uid, app=app)
            logger.warning(f"Removed account {user.uid} after its profile could not be written")
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.error(f"Account {user.uid} ({user.email}) has no parent profile and could not be removed: {e}")
        raise

    verification_sent = False
    try:
        send_email_verification(user.email)
        verification_sent = True
    except (AuthServiceError, OSError) as e:
        logger.warning(f"sendEmailVerification failed for {user.email}: {e}")

    return {'uid': user.uid, 'profile': profile, 'verification_sent': verification_sent}


def verify_id_token(id_token):
    """Returns the decoded token claims or raises AuthServiceError."""
    try:
        return auth.verify_id_token(id_token, app=firebase_service.get_app())
    except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
            auth.RevokedIdTokenError, auth.UserDisabledError) as e:
        raise AuthServiceError('auth/invalid-token', 'Invalid or expired token.') from e
    except (auth.CertificateFetchError, ValueError) as e:
        logger.error(f"Token verification failed: {e}")
        raise AuthServiceError('auth/invalid-token', 'Invalid or expired token.') from e
