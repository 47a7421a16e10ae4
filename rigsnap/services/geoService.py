"""
Geo Service
===========

Great-circle distance between a request and a provider, in kilometres. The
matching engine compares the result with each provider's service radius.

The haversine formula is used over a spherical Earth of mean radius
6371 km, which is accurate to well under a percent at service-radius scale.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_KM: float = 6371.0


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Haversine distance in kilometres between two points given in decimal
    degrees.

    Inputs are not range-checked; any real values are accepted and the
    result is always a finite, non-negative number.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    half_dphi = math.radians(lat2 - lat1) / 2
    half_dlambda = math.radians(lon2 - lon1) / 2

    h = math.sin(half_dphi) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(half_dlambda) ** 2
    # Rounding near antipodes, or latitudes outside +/-90, can push h out of [0, 1]
    h = min(max(h, 0.0), 1.0)

    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def distance_between(origin: Coordinates, destination: Coordinates) -> float:
    """Haversine distance in kilometres between two ``Coordinates``."""
    return haversine_distance(
        origin.latitude,
        origin.longitude,
        destination.latitude,
        destination.longitude,
    )
