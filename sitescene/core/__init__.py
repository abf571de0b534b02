"""Core models and utilities."""

from .errors import (
    SiteSceneError,
    ParseError,
    InvalidParameterError,
    DegenerateGeometryError,
    UnsupportedFileTypeError,
)
from .config import Settings, settings
from .coordinates import (
    CoordinateTransformer,
    Ring,
    unwrap_longitude,
    unwrap_coordinate,
    unwrap_ring,
    normalize_longitude,
)
from .models import ObservationPoint, SiteDataset, SiteFeature, UserParameters

__all__ = [
    "SiteSceneError",
    "ParseError",
    "InvalidParameterError",
    "DegenerateGeometryError",
    "UnsupportedFileTypeError",
    "Settings",
    "settings",
    "CoordinateTransformer",
    "Ring",
    "unwrap_longitude",
    "unwrap_coordinate",
    "unwrap_ring",
    "normalize_longitude",
    "ObservationPoint",
    "SiteDataset",
    "SiteFeature",
    "UserParameters",
]
