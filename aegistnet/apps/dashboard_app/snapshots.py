# aegistnet/apps/dashboard_app/snapshots.py
# Helpers that reshape raw realtime-database snapshots into view-friendly lists.
from .status_utils import is_online, now_ms, to_millis

CONTENT_FILTER_KEYS = ('nudity', 'violence', 'harmfulText')


def children_for_parent(snapshot, parent_email):
    """
    Filters the `users/childs` snapshot down to the records linked to
    parent_email. Each returned dict carries its database key as `id`.
    """
    if not snapshot or not parent_email:
        return []
    children = []
    for key, record in snapshot.items():
        if not isinstance(record, dict):
            continue
        if record.get('parentEmail') == parent_email:
            children.append({'id': key, **record})
    return children


def apps_as_list(apps):
    """
    The device reports apps either as a list or as a keyed mapping.
    Both are flattened to a list where `appId` is the index or key used
    to address the record in the database.
    """
    if not apps:
        return []
    if isinstance(apps, list):
        return [
            {**app, 'appId': str(index)}
            for index, app in enumerate(apps)
            if isinstance(app, dict)
        ]
    return [
        {**app, 'appId': str(key)}
        for key, app in apps.items()
        if isinstance(app, dict)
    ]


def search_apps(apps, query):
    query = (query or '').strip().lower()
    if not query:
        return list(apps)
    return [
        app for app in apps
        if query in (app.get('appName') or '').lower()
        or query in (app.get('packageName') or '').lower()
    ]


def search_children(children, query):
    query = (query or '').strip().lower()
    if not query:
        return list(children)
    return [
        child for child in children
        if query in (child.get('name') or '').lower()
        or query in (child.get('email') or '').lower()
    ]


def blocked_apps(apps):
    return [app for app in apps if app.get('blocked')]


def content_filters_of(child):
    filters = (child or {}).get('contentFilters') or {}
    return {key: bool(filters.get(key, False)) for key in CONTENT_FILTER_KEYS}


def merge_content_filters(current, enabled):
    # A single toggle drives every category at once.
    merged = dict(current or {})
    for key in CONTENT_FILTER_KEYS:
        merged[key] = bool(enabled)
    return merged


def is_filter_active(filters):
    filters = filters or {}
    return any(filters.get(key) for key in CONTENT_FILTER_KEYS)


def dashboard_summary(children, now=None):
    if now is None:
        now = now_ms()
    children = children or []
    online = sum(1 for child in children if is_online(child.get('lastUpdated'), now=now))
    total_apps = 0
    total_blocked = 0
    with_filters = 0
    for child in children:
        apps = apps_as_list(child.get('apps'))
        total_apps += len(apps)
        total_blocked += len(blocked_apps(apps))
        if is_filter_active(child.get('contentFilters')):
            with_filters += 1
    return {
        'total_children': len(children),
        'online_count': online,
        'offline_count': len(children) - online,
        'total_apps': total_apps,
        'total_blocked_apps': total_blocked,
        'children_with_filters': with_filters,
    }


def _normalize_location(entry):
    if not isinstance(entry, dict):
        return None
    latitude = entry.get('latitude', entry.get('lat'))
    longitude = entry.get('longitude', entry.get('lng'))
    if latitude is None or longitude is None:
        return None
    try:
        latitude = float(latitude)
        longitude = float(longitude)
    except (TypeError, ValueError):
        return None
    return {
        'latitude': latitude,
        'longitude': longitude,
        'timestamp': to_millis(entry.get('timestamp')),
        'accuracy': entry.get('accuracy'),
    }


def location_of(child):
    return _normalize_location((child or {}).get('location'))


def location_history(child, since=None, until=None, limit=None):
    """
    Returns the child's recorded locations newest first. Devices that do not
    keep a `locationHistory` collection yield their current location only.
    """
    child = child or {}
    raw = child.get('locationHistory')
    if isinstance(raw, dict):
        entries = raw.values()
    elif isinstance(raw, list):
        entries = raw
    else:
        entries = []

    points = [p for p in (_normalize_location(e) for e in entries) if p]
    if not points:
        current = location_of(child)
        points = [current] if current else []

    if since is not None:
        points = [p for p in points if p['timestamp'] is not None and p['timestamp'] >= since]
    if until is not None:
        points = [p for p in points if p['timestamp'] is not None and p['timestamp'] <= until]

    points.sort(key=lambda p: p['timestamp'] or 0, reverse=True)
    if limit is not None:
        points = points[:limit]
    return points
