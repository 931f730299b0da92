import json
import logging

import firebase_admin
from firebase_admin import credentials, db, exceptions as firebase_exceptions
from django.conf import settings

from .status_utils import now_ms

logger = logging.getLogger(__name__)

CHILDREN_PATH = 'users/childs'
PARENTS_PATH = 'users/parents'


class FirebaseServiceError(Exception):
    """Raised when a realtime database call fails."""


class FirebaseUnavailable(FirebaseServiceError):
    """Raised when the Firebase app was never initialised."""


def _initialize_firebase():
    key_json = getattr(settings, 'FIREBASE_SERVICE_ACCOUNT_KEY', None)
    if not key_json:
        logger.warning("FIREBASE_SERVICE_ACCOUNT_KEY not set. Firebase not initialized.")
        return None
    try:
        cred = credentials.Certificate(json.loads(key_json))
        app = firebase_admin.initialize_app(cred, {
            'databaseURL': settings.FIREBASE_DATABASE_URL,
        })
        logger.info("Firebase initialized successfully")
        return app
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        logger.error(f"Error initializing Firebase: {e}", exc_info=True)
        return None


firebase_app = _initialize_firebase()


def get_app():
    if not firebase_app:
        raise FirebaseUnavailable("Firebase is not configured.")
    return firebase_app


def _ref(path):
    return db.reference(path, app=get_app())


def child_path(child_id, *parts):
    return '/'.join([CHILDREN_PATH, str(child_id), *[str(p) for p in parts]])


def _get(path):
    try:
        return _ref(path).get()
    except FirebaseUnavailable:
        raise
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        logger.error(f"Error reading {path}: {e}")
        raise FirebaseServiceError(str(e)) from e


def _update(path, values):
    try:
        _ref(path).update(values)
    except FirebaseUnavailable:
        raise
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        logger.error(f"Error updating {path} with {sorted(values)}: {e}")
        raise FirebaseServiceError(str(e)) from e


# --- One-shot reads ---

def get_children_snapshot():
    return _get(CHILDREN_PATH) or {}


def get_child(child_id):
    return _get(child_path(child_id))


def get_parent_profile(uid):
    return _get(f'{PARENTS_PATH}/{uid}')


# --- Field updates ---

def create_parent_profile(uid, email, name=''):
    profile = {
        'uid': uid,
        'email': email,
        'name': name or '',
        'createdAt': now_ms(),
        'role': 'parent',
    }
    try:
        _ref(f'{PARENTS_PATH}/{uid}').set(profile)
    except FirebaseUnavailable:
        raise
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        logger.error(f"Error creating parent profile for {uid}: {e}")
        raise FirebaseServiceError(str(e)) from e
    return profile


def update_blocked_app(child_id, app_key, blocked):
    # None removes blockedAt from the record on unblock.
    values = {
        'blocked': bool(blocked),
        'blockedAt': now_ms() if blocked else None,
    }
    _update(child_path(child_id, 'apps', app_key), values)
    return values


def unblock_all_apps(child_id, apps):
    """
    Unblocks every blocked app in `apps` (as produced by snapshots.apps_as_list)
    in a single multi-path update. Returns the number of apps unblocked.
    """
    values = {}
    for app in apps:
        if app.get('blocked'):
            values[f"apps/{app['appId']}/blocked"] = False
            values[f"apps/{app['appId']}/blockedAt"] = None
    if values:
        _update(child_path(child_id), values)
    return len(values) // 2


def update_content_filters(child_id, filters):
    _update(child_path(child_id, 'contentFilters'), dict(filters))


def toggle_device_lock(child_id, locked):
    _update(child_path(child_id), {'deviceLocked': bool(locked)})


def request_location_refresh(child_id):
    values = {'requestLocationRefresh': True, 'lastLocationRefresh': now_ms()}
    _update(child_path(child_id), values)
    return values


def set_app_deleted(child_id, deleted):
    _update(child_path(child_id), {'appDeleted': bool(deleted)})


def update_child_name(child_id, name):
    _update(child_path(child_id), {'name': name})


# --- Live subscriptions ---

def listen(path, callback):
    """
    Starts streaming changes under `path`. `callback` receives
    firebase_admin.db.Event objects on a background thread.
    Returns the ListenerRegistration; call close() to stop.
    """
    try:
        return _ref(path).listen(callback)
    except FirebaseUnavailable:
        raise
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        logger.error(f"Error subscribing to {path}: {e}")
        raise FirebaseServiceError(str(e)) from e
