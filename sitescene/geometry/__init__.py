"""
Geometry Module - Calculate site metrics from footprint and parcel rings.

Calculates:
- Parcel land area and footprint area (m²)
- Built footprint under lot coverage
- Building height and volume
- Footprint centroid
"""

from .site_metrics import (
    MassingEstimate,
    SiteMetrics,
    compute_site_metrics,
    derive_volume_and_height,
    require_ring,
    ring_area,
    ring_centroid,
)

__all__ = [
    'MassingEstimate',
    'SiteMetrics',
    'compute_site_metrics',
    'derive_volume_and_height',
    'require_ring',
    'ring_area',
    'ring_centroid',
]
