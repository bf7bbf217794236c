"""Formatting and map payload builders."""

from .formatter import format_distance, format_hours, routes_to_csv
from .map_overlays import build_map_overlays, build_route_detail_overlay

__all__ = [
    "format_distance",
    "format_hours",
    "routes_to_csv",
    "build_map_overlays",
    "build_route_detail_overlay",
]
