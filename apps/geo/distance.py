"""
Distance estimation between two coordinates.

The default provider is a great-circle (haversine) estimate; a routing
service can replace it by pointing settings.GEO_PROVIDER at any class that
exposes estimate(point_a, point_b) -> Distance.
"""

import math
from collections import namedtuple

from django.conf import settings
from django.utils.module_loading import import_string

from apps.core.exceptions import ValidationError

EARTH_RADIUS_KM = 6371

# average road speeds, km/h
HIGHWAY_SPEED = 80
URBAN_SPEED   = 60
HIGHWAY_THRESHOLD_KM = 50

Point    = namedtuple("Point", ["lat", "lng"])
Distance = namedtuple("Distance", ["km", "minutes"])


def validate_point(point) -> Point:
    lat, lng = float(point[0]), float(point[1])
    if not -90 <= lat <= 90:
        raise ValidationError(f"Latitude {lat} out of range [-90, 90]")
    if not -180 <= lng <= 180:
        raise ValidationError(f"Longitude {lng} out of range [-180, 180]")
    return Point(lat, lng)


class HaversineEstimator:
    """Straight-line estimate, no road network."""

    def estimate(self, point_a, point_b) -> Distance:
        a = validate_point(point_a)
        b = validate_point(point_b)

        d_lat = math.radians(b.lat - a.lat)
        d_lng = math.radians(b.lng - a.lng)
        h = (
            math.sin(d_lat / 2) ** 2
            + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat))
            * math.sin(d_lng / 2) ** 2
        )
        km = EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
        km = round(km, 2)

        speed = HIGHWAY_SPEED if km > HIGHWAY_THRESHOLD_KM else URBAN_SPEED
        minutes = round(km / speed * 60)
        return Distance(km=km, minutes=minutes)


def get_geo_provider():
    path = getattr(settings, "GEO_PROVIDER", "apps.geo.distance.HaversineEstimator")
    return import_string(path)()
