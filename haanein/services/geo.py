"""Spherical helpers for radius queries.

Distances are converted to an angular radius (radians) on a sphere with the
Earth's mean radius, and a point matches when its great-circle angle from the
centre is within that radius.
"""
from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0


def parse_number(value: str, name: str, *, bound: float | None = None) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"{name} must be a finite number")
    if bound is not None and abs(number) > bound:
        raise ValueError(f"{name} must be between -{bound:g} and {bound:g}")
    return number


def radius_radians(distance_km: float) -> float:
    if distance_km < 0:
        raise ValueError("distance must be a non-negative number")
    return distance_km / EARTH_RADIUS_KM


def central_angle(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle angle between two points in radians (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(a)))


def within_radius(center_lat: float, center_lng: float, lat: float, lng: float, radius: float) -> bool:
    return central_angle(center_lat, center_lng, lat, lng) <= radius


def latitude_band(center_lat: float, radius: float) -> tuple[float, float]:
    """Latitudes any matching point must fall between; used as an index prefilter."""
    span = math.degrees(radius)
    return max(-90.0, center_lat - span), min(90.0, center_lat + span)
