import logging

import requests
from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

ADDRESS_UNAVAILABLE = 'Address not available'
ADDRESS_ERROR = 'Unable to load address'


class GeocodingError(Exception):
    pass


def cache_key_for(lat, lon):
    return f"geocode_{float(lat):.6f},{float(lon):.6f}"


def format_address(data):
    """
    Builds "<number> <road>, <city>, <state>, <postcode>, <country>" from a
    Nominatim response, skipping missing parts.
    """
    addr = data.get('address') or {}
    parts = []

    if addr.get('house_number') and addr.get('road'):
        parts.append(f"{addr['house_number']} {addr['road']}")
    elif addr.get('road'):
        parts.append(addr['road'])

    locality = addr.get('city') or addr.get('town') or addr.get('village')
    if locality:
        parts.append(locality)

    for key in ('state', 'postcode', 'country'):
        if addr.get(key):
            parts.append(addr[key])

    formatted = ', '.join(parts)
    return formatted or data.get('display_name') or ADDRESS_UNAVAILABLE


def fetch_address(lat, lon):
    try:
        response = requests.get(
            settings.GEOCODE_API_URL,
            params={
                'format': 'json',
                'lat': lat,
                'lon': lon,
                'zoom': 18,
                'addressdetails': 1,
            },
            headers={'User-Agent': settings.GEOCODE_USER_AGENT},
            timeout=settings.GEOCODE_REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise GeocodingError(str(e)) from e

    if not response.ok:
        raise GeocodingError('Geocoding service unavailable')

    try:
        data = response.json()
    except ValueError as e:
        raise GeocodingError('Invalid geocoding response') from e
    if data.get('error'):
        raise GeocodingError(data['error'])
    return format_address(data)


def get_cached_address(lat, lon):
    if lat is None or lon is None:
        return None
    return cache.get(cache_key_for(lat, lon))


def reverse_geocode(lat, lon):
    """
    Returns a human-readable address for the coordinates. Results are cached;
    failures are logged and reported as a placeholder that is not cached.
    """
    if lat is None or lon is None:
        return ''

    key = cache_key_for(lat, lon)
    cached = cache.get(key)
    if cached:
        logger.debug(f"Returning cached address for {lat},{lon}")
        return cached

    try:
        address = fetch_address(lat, lon)
    except GeocodingError as e:
        logger.error(f"Reverse geocoding error for lat={lat}, lon={lon}: {e}")
        return ADDRESS_ERROR

    cache.set(key, address, getattr(settings, 'GEOCODE_CACHE_TIMEOUT', None))
    return address
