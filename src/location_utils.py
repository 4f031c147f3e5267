"""
Location utilities for ChopXpress
- Distance calculation
- Delivery zone checking
- Delivery time estimate
"""
import math
from dataclasses import dataclass
from typing import Tuple

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371

# Delivery time assumptions
AVERAGE_SPEED_KMH = 20  # City traffic
PREP_TIME_MINS = 15
BUFFER_MINS = 5  # Parking, finding address, etc.


@dataclass(frozen=True)
class Coordinates:
    """A WGS84 point in decimal degrees."""
    latitude: float
    longitude: float


def haversine_distance(point1: Coordinates, point2: Coordinates) -> float:
    """
    Calculate the great circle distance between two points
    on the earth (specified in decimal degrees).
    Returns distance in kilometers.
    """
    d_lat = math.radians(point2.latitude - point1.latitude)
    d_lon = math.radians(point2.longitude - point1.longitude)
    lat1 = math.radians(point1.latitude)
    lat2 = math.radians(point2.latitude)

    # Haversine formula
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def is_in_delivery_zone(point: Coordinates, restaurant: Coordinates, max_radius_km: float) -> Tuple[bool, float]:
    """
    Check if given coordinates are within delivery zone.
    Returns (is_deliverable, distance_km) with the unrounded distance.
    """
    distance = haversine_distance(point, restaurant)
    return distance <= max_radius_km, distance


def estimate_delivery_time(distance_km: float) -> int:
    """
    Estimate delivery time in minutes based on distance.
    Assumes average speed of 20 km/h in city traffic + 15 min prep time.
    """
    travel_time = (distance_km / AVERAGE_SPEED_KMH) * 60  # Convert to minutes
    return int(travel_time + PREP_TIME_MINS + BUFFER_MINS)


def format_distance(distance_km: float) -> str:
    """Distance for display, one decimal place"""
    return f"{distance_km:.1f}km"
