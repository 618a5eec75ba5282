"""
Great-circle distance utilities.
"""
import math

from treespotter.domain.models import GpsCoordinate

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(coord1: GpsCoordinate, coord2: GpsCoordinate) -> float:
    """
    Calculate the great-circle distance between two GPS coordinates.

    Args:
        coord1: First coordinate
        coord2: Second coordinate

    Returns:
        Distance in meters on a sphere of radius EARTH_RADIUS_M
    """
    lat1_rad = math.radians(coord1.latitude)
    lat2_rad = math.radians(coord2.latitude)
    delta_lat_rad = math.radians(coord2.latitude - coord1.latitude)
    delta_lng_rad = math.radians(coord2.longitude - coord1.longitude)

    a = (
        math.sin(delta_lat_rad / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lng_rad / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c
