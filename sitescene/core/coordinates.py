"""
Coordinate utilities.

Handles:
- Antimeridian unwrapping of longitudes relative to a viewport reference
- Coercion of raw GeoJSON positions into (lon, lat) rings
- Projection of WGS84 rings into the local UTM zone for metric areas
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np
from pyproj import Transformer
from shapely.geometry import Polygon
from shapely.ops import transform

from .errors import ParseError

Coordinate = tuple[float, float]
Ring = tuple[Coordinate, ...]


def unwrap_longitude(reference: float, longitude: float) -> float:
    """
    Shift a longitude by multiples of 360° until it lies within 180° of the reference.

    Args:
        reference: Reference longitude (usually the viewport centre)
        longitude: Longitude to unwrap

    Returns:
        Longitude congruent to the input (mod 360) with |reference - result| <= 180
    """
    if not (math.isfinite(reference) and math.isfinite(longitude)):
        raise ParseError(
            f"Cannot unwrap non-finite longitude {longitude!r} against {reference!r}",
            field="longitude",
        )

    unwrapped = float(longitude)
    if abs(reference - unwrapped) > 540:
        # Far outside one wrap: jump close in one step, the loop finishes the job
        unwrapped = reference + math.remainder(unwrapped - reference, 360.0)

    while abs(reference - unwrapped) > 180:
        unwrapped += 360 if reference > unwrapped else -360
    return unwrapped


def unwrap_coordinate(coordinate: Sequence[float], reference: float) -> Coordinate:
    """Unwrap the longitude of a (lon, lat) pair relative to a reference longitude."""
    return (unwrap_longitude(reference, coordinate[0]), float(coordinate[1]))


def normalize_longitude(longitude: float) -> float:
    """Fold a longitude into [-180, 180]; both boundaries are kept as given."""
    return unwrap_longitude(0.0, longitude)


def unwrap_ring(ring: Sequence[Sequence[float]], reference: float | None = None) -> list[Coordinate]:
    """
    Make a ring continuous across the antimeridian.

    Args:
        ring: Sequence of (lon, lat) pairs
        reference: Reference longitude. If None, uses the first vertex.

    Returns:
        List of (lon, lat) with every longitude within 180° of the reference
    """
    if not ring:
        return []
    if reference is None:
        reference = ring[0][0]
    return [unwrap_coordinate(c, reference) for c in ring]


def as_ring(positions: Iterable[Sequence[float]]) -> Ring:
    """
    Coerce GeoJSON positions into a ring of finite (lon, lat) floats.

    Any third ordinate is dropped.
    """
    try:
        ring = tuple((float(p[0]), float(p[1])) for p in positions)
    except (TypeError, ValueError, IndexError) as e:
        raise ParseError(f"Invalid coordinate in ring: {e}", field="coordinates") from e

    if ring and not np.isfinite(np.asarray(ring, dtype=float)).all():
        raise ParseError("Ring contains non-finite coordinates", field="coordinates")
    return ring


def distinct_vertices(ring: Sequence[Sequence[float]]) -> list[Coordinate]:
    """Ordered vertices with exact duplicates (including the closing vertex) removed."""
    return list(dict.fromkeys((float(c[0]), float(c[1])) for c in ring))


class CoordinateTransformer:
    """
    Project WGS84 geometry into metric coordinates.

    Each ring is projected into the UTM zone containing its centroid, which
    keeps area distortion negligible at building and parcel scale.
    """

    WGS84 = "EPSG:4326"

    def __init__(self):
        # One transformer per UTM zone, created on demand
        self._transformers: dict[int, Transformer] = {}

    @staticmethod
    def utm_epsg(longitude: float, latitude: float) -> int:
        """EPSG code of the UTM zone containing a WGS84 point."""
        zone = int((normalize_longitude(longitude) + 180) / 6) + 1
        zone = min(max(zone, 1), 60)
        return (32600 if latitude >= 0 else 32700) + zone

    def _wgs84_to(self, epsg: int) -> Transformer:
        if epsg not in self._transformers:
            self._transformers[epsg] = Transformer.from_crs(
                self.WGS84, f"EPSG:{epsg}", always_xy=True
            )
        return self._transformers[epsg]

    def create_polygon_from_coords(
        self, coords: Sequence[Sequence[float]], close: bool = True
    ) -> Polygon:
        """
        Create a Shapely Polygon from coordinate list.

        Args:
            coords: List of [x, y] or [x, y, z] coordinates
            close: Whether to close the polygon if not already closed

        Returns:
            Shapely Polygon
        """
        xy_coords = [(c[0], c[1]) for c in coords]

        if close and xy_coords[0] != xy_coords[-1]:
            xy_coords.append(xy_coords[0])

        return Polygon(xy_coords)

    def polygon_wgs84_to_utm(self, polygon: Polygon) -> Polygon:
        """Transform a Shapely polygon from WGS84 to its local UTM zone."""
        centroid = polygon.centroid
        epsg = self.utm_epsg(centroid.x, centroid.y)
        return transform(self._wgs84_to(epsg).transform, polygon)

    def calculate_area_sqm(self, coords: Sequence[Sequence[float]]) -> float:
        """
        Calculate polygon area in square meters.

        Coordinates are WGS84 (lon, lat) and must already be continuous
        across the antimeridian.
        """
        polygon = self.create_polygon_from_coords(coords)
        return self.polygon_wgs84_to_utm(polygon).area
