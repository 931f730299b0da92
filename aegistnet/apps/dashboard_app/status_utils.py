# aegistnet/apps/dashboard_app/status_utils.py
import time
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.utils import timezone
from django.utils.timesince import timesince

ONLINE_THRESHOLD = timedelta(minutes=getattr(settings, 'ONLINE_THRESHOLD_MINUTES', 5))
ONLINE_THRESHOLD_MS = int(ONLINE_THRESHOLD.total_seconds() * 1000)

FIREBASE_ERROR_MESSAGES = {
    'auth/user-not-found': 'No account found with this email',
    'auth/wrong-password': 'Incorrect password',
    'auth/invalid-email': 'Invalid email address',
    'auth/user-disabled': 'This account has been disabled',
    'auth/too-many-requests': 'Too many login attempts. Please try again later',
    'auth/email-already-exists': 'An account with this email already exists',
    'auth/weak-password': 'Password should be at least 6 characters',
}
DEFAULT_ERROR_MESSAGE = 'An error occurred. Please try again.'


def now_ms():
    return int(time.time() * 1000)


def to_millis(value):
    """
    Coerces an epoch-milliseconds value (number or numeric string) to int.
    Returns None for empty or non-numeric input.
    """
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def is_online(last_updated, now=None):
    """
    A device is online when it reported within the last ONLINE_THRESHOLD.
    Missing, zero or unparseable timestamps count as offline.
    """
    last = to_millis(last_updated)
    if not last:
        return False
    if now is None:
        now = now_ms()
    return now - last < ONLINE_THRESHOLD_MS


def millis_to_datetime(value):
    ms = to_millis(value)
    if not ms:
        return None
    return datetime.fromtimestamp(ms / 1000.0, tz=dt_timezone.utc)


def format_timestamp(value):
    moment = millis_to_datetime(value)
    if not moment:
        return 'Never'
    return timezone.localtime(moment).strftime('%Y-%m-%d %H:%M:%S')


def last_seen_text(last_updated, now=None):
    moment = millis_to_datetime(last_updated)
    if not moment:
        return 'Never'
    if now is None:
        now = now_ms()
    if is_online(last_updated, now=now):
        return 'Online now'
    elapsed = timesince(moment, millis_to_datetime(now), depth=1)
    return f"Active {elapsed.replace(chr(160), ' ')} ago"


def get_firebase_error_message(code):
    return FIREBASE_ERROR_MESSAGES.get(code, DEFAULT_ERROR_MESSAGE)
