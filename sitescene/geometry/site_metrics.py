"""
Site Metrics Calculator

Derives site metrics from parcel and footprint rings:
- Land area of the parcel (m²)
- Footprint area and built footprint under a lot-coverage ratio (m²)
- Building height from the declared height or the floor model (m)
- Enclosed volume (m³)
- Footprint centroid (lon, lat)

Rings are WGS84 (lon, lat). Areas are measured in the UTM zone of each
ring after unwrapping it across the antimeridian.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Optional, Sequence

import numpy as np

from ..core.coordinates import (
    Coordinate,
    CoordinateTransformer,
    distinct_vertices,
    normalize_longitude,
    unwrap_ring,
)
from ..core.errors import DegenerateGeometryError
from ..core.models import SiteFeature, UserParameters
from ..utils.validation import validate_parameters

_transformer = CoordinateTransformer()


@dataclass(frozen=True)
class MassingEstimate:
    """Height and volume derived from zoning parameters."""
    height_m: float
    building_footprint_area_m2: float
    volume_m3: float


@dataclass(frozen=True)
class SiteMetrics:
    """Metrics snapshot for one (parcel, footprint, parameters) triple."""
    land_area_m2: float
    footprint_area_m2: float  # Measured footprint ring
    building_footprint_area_m2: float  # After lot coverage
    building_height_m: float
    volume_m3: float
    centroid: Coordinate  # (lon, lat) of the footprint

    def to_dict(self) -> dict:
        return asdict(self)


def require_ring(ring: Sequence[Sequence[float]], label: str = "ring") -> list[Coordinate]:
    """
    Return the distinct vertices of a ring, or fail if there are fewer than 3.

    Raises:
        DegenerateGeometryError: If the ring cannot bound an area
    """
    vertices = distinct_vertices(ring)
    if len(vertices) < 3:
        raise DegenerateGeometryError(
            f"{label.capitalize()} ring has {len(vertices)} distinct vertices, at least 3 required",
            field=label,
            suggestions=["Check that the polygon's outer ring lists at least three corners"],
        )
    return vertices


def ring_area(ring: Sequence[Sequence[float]]) -> float:
    """
    Unsigned area enclosed by a ring in m².

    Invariant to winding direction and starting vertex. Returns exactly 0.0
    for rings with fewer than 3 distinct vertices or zero width.
    """
    vertices = distinct_vertices(ring)
    if len(vertices) < 3:
        return 0.0

    unwrapped = unwrap_ring(vertices)
    polygon = _transformer.create_polygon_from_coords(unwrapped)
    if polygon.area == 0.0:
        return 0.0

    return abs(_transformer.polygon_wgs84_to_utm(polygon).area)


def ring_centroid(ring: Sequence[Sequence[float]]) -> Coordinate:
    """
    Area-weighted centroid of a ring as (lon, lat).

    Degenerate rings fall back to the mean of their distinct vertices.
    """
    vertices = distinct_vertices(ring)
    if not vertices:
        raise DegenerateGeometryError("Cannot take the centroid of an empty ring", field="ring")

    unwrapped = unwrap_ring(vertices)
    polygon = None
    if len(unwrapped) >= 3:
        polygon = _transformer.create_polygon_from_coords(unwrapped)

    if polygon is None or polygon.area == 0.0:
        lon, lat = np.asarray(unwrapped, dtype=float).mean(axis=0)
    else:
        lon, lat = polygon.centroid.x, polygon.centroid.y

    return (normalize_longitude(float(lon)), float(lat))


def derive_volume_and_height(
    footprint_area: float,
    lot_coverage_percent: float,
    floor_count: int,
    floor_height: float,
    declared_relative_height: Optional[float] = None,
) -> MassingEstimate:
    """
    Derive building height and volume from the zoning model.

    Args:
        footprint_area: Footprint ring area (m²)
        lot_coverage_percent: Share of the footprint that is built (0-100)
        floor_count: Number of floors
        floor_height: Floor-to-floor height (m)
        declared_relative_height: Height declared on the feature, if any

    Returns:
        MassingEstimate with height, built footprint and volume

    Raises:
        InvalidParameterError: If coverage is outside [0, 100], or the floor
            model is non-positive and no declared height is available
    """
    has_declared = (
        declared_relative_height is not None
        and math.isfinite(declared_relative_height)
        and declared_relative_height > 0
    )
    validate_parameters(
        lot_coverage_percent, floor_count, floor_height, has_declared_height=has_declared
    )

    height = declared_relative_height if has_declared else floor_count * floor_height
    building_footprint_area = footprint_area * (lot_coverage_percent / 100)

    return MassingEstimate(
        height_m=height,
        building_footprint_area_m2=building_footprint_area,
        volume_m3=building_footprint_area * height,
    )


def compute_site_metrics(
    parcel: SiteFeature,
    footprint: SiteFeature,
    parameters: UserParameters,
) -> SiteMetrics:
    """
    Compute the full metrics snapshot.

    Land area comes from the parcel ring only; footprint area, height,
    volume and centroid come from the footprint ring only.
    """
    require_ring(parcel.ring, "parcel")
    require_ring(footprint.ring, "footprint")

    land_area = ring_area(parcel.ring)
    footprint_area = ring_area(footprint.ring)
    massing = derive_volume_and_height(
        footprint_area,
        parameters.lot_coverage_percent,
        parameters.floor_count,
        parameters.floor_height,
        footprint.maximum_relative_height,
    )

    return SiteMetrics(
        land_area_m2=land_area,
        footprint_area_m2=footprint_area,
        building_footprint_area_m2=massing.building_footprint_area_m2,
        building_height_m=massing.height_m,
        volume_m3=massing.volume_m3,
        centroid=ring_centroid(footprint.ring),
    )
