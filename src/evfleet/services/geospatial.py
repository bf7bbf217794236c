"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from ..models.domain import LatLng

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def midpoint(a: LatLng, b: LatLng) -> LatLng:
    """Arithmetic midpoint of two (lat, lng) pairs.

    Not a great-circle midpoint; the error is negligible at city scale.
    """

    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def path_distance_km(points: Sequence[LatLng]) -> float:
    """Sum of haversine legs along a path."""

    return sum(
        haversine_km(start[0], start[1], end[0], end[1])
        for start, end in zip(points, points[1:])
    )
