"""Great-circle distance."""

import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: tuple[float, float], destination: tuple[float, float]) -> float:
    """Distance in kilometres between two ``(lat, lon)`` points."""
    lat1, lon1 = (math.radians(v) for v in origin)
    lat2, lon2 = (math.radians(v) for v in destination)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
