"""
Input validation utilities for SiteScene.

Provides validation for zoning parameters, coordinates and upload names.

Usage:
    from sitescene.utils.validation import (
        validate_parameters,
        validate_coordinates,
        validate_upload_filename,
    )

    validate_parameters(50, 10, 3.0)
    lon, lat = validate_coordinates(6.1369, 46.2036)
"""

import math
from pathlib import PurePath
from typing import Iterable, Tuple
import logging

from ..core.errors import InvalidParameterError, ParseError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)


def validate_parameters(
    lot_coverage_percent: float,
    floor_count: int,
    floor_height: float,
    has_declared_height: bool = False,
) -> None:
    """
    Validate zoning parameters.

    Args:
        lot_coverage_percent: Lot coverage, must lie in [0, 100]
        floor_count: Number of floors, must be positive unless a height is declared
        floor_height: Floor height in m, must be positive unless a height is declared
        has_declared_height: Whether the footprint declares its own height

    Raises:
        InvalidParameterError: If a parameter is out of range
    """
    if not isinstance(lot_coverage_percent, (int, float)) or not math.isfinite(lot_coverage_percent):
        raise InvalidParameterError(
            f"Lot coverage must be a finite number, got {lot_coverage_percent!r}",
            field="lot_coverage_percent",
        )

    if not 0 <= lot_coverage_percent <= 100:
        raise InvalidParameterError(
            f"Lot coverage {lot_coverage_percent}% is outside [0, 100]",
            field="lot_coverage_percent",
            suggestions=["Enter a percentage between 0 and 100"],
        )

    if has_declared_height:
        return

    if not isinstance(floor_count, int) or isinstance(floor_count, bool) or floor_count <= 0:
        raise InvalidParameterError(
            f"Floor count must be a positive integer, got {floor_count!r}",
            field="floor_count",
            suggestions=["Enter at least one floor"],
        )

    if (
        not isinstance(floor_height, (int, float))
        or not math.isfinite(floor_height)
        or floor_height <= 0
    ):
        raise InvalidParameterError(
            f"Floor height must be a positive number of meters, got {floor_height!r}",
            field="floor_height",
            suggestions=["Typical floor heights are 3-4 m"],
        )


def validate_coordinates(longitude: float, latitude: float) -> Tuple[float, float]:
    """
    Validate a WGS84 position.

    Returns:
        Tuple of (longitude, latitude)

    Raises:
        ParseError: If the position is outside the WGS84 range
    """
    if not (math.isfinite(longitude) and math.isfinite(latitude)):
        raise ParseError(f"Non-finite coordinate ({longitude}, {latitude})", field="coordinates")

    if not -90 <= latitude <= 90:
        raise ParseError(f"Latitude {latitude} must be between -90 and 90", field="latitude")

    if not -180 <= longitude <= 180:
        raise ParseError(
            f"Longitude {longitude} must be between -180 and 180",
            field="longitude",
            suggestions=["Coordinates must be [longitude, latitude] in WGS84"],
        )

    return longitude, latitude


def validate_upload_filename(filename: str, allowed_extensions: Iterable[str] = (".geojson",)) -> str:
    """
    Check an upload's extension before any parsing happens.

    Raises:
        UnsupportedFileTypeError: If the extension is not allowed
    """
    allowed = [ext.lower() for ext in allowed_extensions]
    suffix = PurePath(filename or "").suffix.lower()

    if suffix not in allowed:
        logger.warning(f"Rejected upload with unsupported extension: {filename!r}")
        raise UnsupportedFileTypeError(
            f"Invalid file type uploaded. Only {', '.join(allowed)} files supported",
            field="filename",
            suggestions=[f"Export the site as {allowed[0]}"] if allowed else [],
        )
    return filename
