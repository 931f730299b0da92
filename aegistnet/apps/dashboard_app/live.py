# aegistnet/apps/dashboard_app/live.py
import copy
import logging
import threading

from . import firebase_service
from .snapshots import children_for_parent

logger = logging.getLogger(__name__)


class SnapshotCache:
    """
    Local copy of a realtime-database subtree, kept current by applying the
    `put` and `patch` events the database streams to listeners.
    """

    def __init__(self, value=None):
        self.value = value
        self._lock = threading.Lock()

    @staticmethod
    def _split(path):
        return [part for part in (path or '/').split('/') if part]

    def _set_at(self, parts, data):
        if not parts:
            self.value = data
            return
        if not isinstance(self.value, dict):
            self.value = {}
        node = self.value
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        if data is None:
            node.pop(parts[-1], None)
        else:
            node[parts[-1]] = data

    def apply(self, event_type, path, data):
        parts = self._split(path)
        with self._lock:
            if event_type == 'put':
                self._set_at(parts, copy.deepcopy(data))
            elif event_type == 'patch':
                for key, value in (data or {}).items():
                    self._set_at(parts + self._split(key), copy.deepcopy(value))
            else:
                logger.debug(f"Ignoring realtime event type {event_type!r} at {path}")
                return False
            return True

    def snapshot(self):
        with self._lock:
            return copy.deepcopy(self.value)


class _Subscription:
    path = None

    def __init__(self, on_change):
        self.on_change = on_change
        self.cache = SnapshotCache()
        self.registration = None

    def start(self):
        self.registration = firebase_service.listen(self.path, self.handle_event)
        return self

    def handle_event(self, event):
        if self.cache.apply(event.event_type, event.path, event.data):
            try:
                self.on_change(self.current())
            except Exception as e:
                # Runs on the listener thread; an exception here would end the stream.
                logger.error(f"Error delivering update for {self.path}: {e}", exc_info=True)

    def current(self):
        raise NotImplementedError

    def close(self):
        if self.registration is not None:
            self.registration.close()
            self.registration = None


class ChildrenSubscription(_Subscription):
    """Streams the list of children linked to a parent email."""

    path = firebase_service.CHILDREN_PATH

    def __init__(self, parent_email, on_change):
        super().__init__(on_change)
        self.parent_email = parent_email

    def current(self):
        return children_for_parent(self.cache.snapshot() or {}, self.parent_email)


class ChildSubscription(_Subscription):
    """Streams a single child record; None once the record is removed."""

    def __init__(self, child_id, on_change):
        super().__init__(on_change)
        self.child_id = child_id
        self.path = firebase_service.child_path(child_id)

    def current(self):
        value = self.cache.snapshot()
        if not isinstance(value, dict):
            return None
        return {'id': self.child_id, **value}
