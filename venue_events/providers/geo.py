# providers/geo.py
# great-circle distance between two (lat, lng) points (haversine)

import math

EARTH_RADIUS_KM = 6371
KM_PER_MILE = 1.60934


def distance(coords1: tuple[float, float], coords2: tuple[float, float], is_miles: bool = False) -> float:
    """
    Haversine distance between two [latitude, longitude] pairs in degrees.
    Returns kilometres, or miles when is_miles is set. Malformed inputs give NaN.
    """
    try:
        lat1, lon1 = float(coords1[0]), float(coords1[1])
        lat2, lon2 = float(coords2[0]), float(coords2[1])
    except (IndexError, TypeError, ValueError):
        return math.nan

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) * math.sin(d_lat / 2) +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(d_lon / 2) * math.sin(d_lon / 2))
    # rounding near antipodes can push a past 1 (sqrt domain error)
    if a > 1:
        a = 1.0
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    d = EARTH_RADIUS_KM * c

    if is_miles:
        d /= KM_PER_MILE
    return d
