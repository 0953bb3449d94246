import math

EARTH_RADIUS_KM = 6371.0


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in kilometres between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push a just past 1 for antipodal points; NaN must pass through
    if a > 1.0:
        a = 1.0
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))
