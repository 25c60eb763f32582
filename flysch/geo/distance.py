from __future__ import annotations

import math

from .location import GeoPoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in kilometres on a spherical earth."""
    lat1, lng1, lat2, lng2 = map(math.radians, [a.lat, a.lng, b.lat, b.lng])
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points.
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def within_radius(point: GeoPoint | None, center: GeoPoint, radius_km: float) -> bool:
    if point is None:
        return False
    return haversine_km(center, point) <= radius_km


def proximity_score(point: GeoPoint, center: GeoPoint, radius_km: float) -> float:
    """1.0 at the centre, falling linearly to 0.0 at the radius edge and beyond."""
    if radius_km <= 0:
        return 0.0
    return max(0.0, 1.0 - haversine_km(center, point) / radius_km)
