import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bounding_box(lat: float, lon: float, radius_km: float) -> tuple[float, float, float, float]:
    """
    Coarse (min_lat, max_lat, min_lon, max_lon) box around a point, used to
    narrow candidates in SQL before the exact distance check.

    A box that would cross the antimeridian spans every longitude instead.
    """
    lat_offset = radius_km / 111.0
    cos_lat = math.cos(math.radians(lat))
    # Near the poles every longitude is within reach
    lon_offset = 180.0 if cos_lat < 1e-6 else radius_km / (111.0 * cos_lat)
    min_lon, max_lon = lon - lon_offset, lon + lon_offset
    if min_lon < -180.0 or max_lon > 180.0:
        min_lon, max_lon = -180.0, 180.0
    return lat - lat_offset, lat + lat_offset, min_lon, max_lon
