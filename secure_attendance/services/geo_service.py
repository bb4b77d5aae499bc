# secure_attendance/services/geo_service.py
"""Geofence distance verification."""
import math
from typing import Dict, Tuple

EARTH_RADIUS_METERS = 6371000

class GeoService:
    """Service for GPS distance checks."""

    @staticmethod
    def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great-circle distance between two GPS points in meters (haversine)."""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)

        a = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon / 2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_METERS * c

    @staticmethod
    def verify_location(user_lat: float, user_lng: float, location,
                        default_radius: float = 50) -> Dict:
        """Check a position against a classroom location's acceptance circle."""
        radius = location.radius_meters
        if radius is None:
            radius = default_radius
        distance = GeoService.distance_meters(
            user_lat, user_lng,
            location.latitude, location.longitude
        )

        return {
            'is_inside': distance <= radius,
            'distance': distance,
            'allowed_radius': radius
        }

    @staticmethod
    def offset_point(lat: float, lon: float, meters_north: float = 0.0,
                     meters_east: float = 0.0) -> Tuple[float, float]:
        """Point displaced by the given distances along the sphere."""
        angular_north = meters_north / EARTH_RADIUS_METERS
        new_lat = lat + math.degrees(angular_north)
        angular_east = meters_east / (EARTH_RADIUS_METERS * math.cos(math.radians(lat)))
        new_lon = lon + math.degrees(angular_east)
        return new_lat, new_lon
