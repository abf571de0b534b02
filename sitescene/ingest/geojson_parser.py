"""
GeoJSON site parser.

Parses an uploaded or built-in GeoJSON document into a SiteDataset
(footprint + parcel) and camera-pose records into ObservationPoints.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from ..core.coordinates import Ring, as_ring
from ..core.errors import ParseError
from ..core.models import ObservationPoint, SiteDataset, SiteFeature
from ..utils.validation import validate_coordinates

logger = logging.getLogger(__name__)

POLYGON_TYPES = ("Polygon", "MultiPolygon")

# Property names, preferred first
MIN_ABSOLUTE_HEIGHT_KEYS = ("minimumAbsoluteHeight", "absoluteheightminimum")
MAX_RELATIVE_HEIGHT_KEYS = ("maximumRelativeHeight", "relativeheightmaximum")


def feature_properties(feature: Any, index: Optional[int] = None) -> dict[str, Any]:
    """
    Properties object of a GeoJSON feature; a null or missing one reads as empty.

    Raises:
        ParseError: If the feature or its properties are not JSON objects
    """
    label = "Feature" if index is None else f"Feature {index}"
    if not isinstance(feature, dict):
        raise ParseError(f"{label} is not an object", field="features")

    props = feature.get("properties")
    if props is None:
        return {}
    if not isinstance(props, dict):
        raise ParseError(
            f"{label} has {type(props).__name__} properties, expected an object",
            field="properties",
        )
    return props


class GeoJSONSiteParser:
    """
    Parser for site GeoJSON documents.

    Handles:
    - FeatureCollection, single Feature or bare Polygon/MultiPolygon input
    - Picking the footprint and parcel features
    - Reading base elevation and declared height properties

    Feature selection: a feature whose ``role`` property is ``"footprint"``
    or ``"parcel"`` wins. Otherwise the footprint is the first polygon
    feature carrying a height property and the parcel is the first polygon
    feature; a single-feature document serves as both.
    """

    def load(self, file_path: str | Path) -> SiteDataset:
        """Parse a GeoJSON file from disk."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"GeoJSON file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            return self.parse_text(f.read(), source_name=path.name)

    def parse_text(self, text: str, source_name: str = "") -> SiteDataset:
        """
        Parse raw GeoJSON text.

        Raises:
            ParseError: If the text is not valid JSON or holds no polygon
        """
        try:
            data = json.loads(text)
        except (TypeError, json.JSONDecodeError) as e:
            raise ParseError(
                f"Dataset is not valid JSON: {e}",
                field="source",
                suggestions=["Upload a GeoJSON FeatureCollection"],
            ) from e
        return self.parse_dict(data, source_name=source_name)

    def parse_dict(self, data: Any, source_name: str = "") -> SiteDataset:
        """Parse an already-decoded GeoJSON object."""
        features = self._polygon_features(data)

        footprint_raw = (
            self._find_role(features, "footprint")
            or next((f for f in features if self._has_height(f)), None)
            or features[0]
        )
        parcel_raw = self._find_role(features, "parcel") or features[0]

        dataset = SiteDataset(
            footprint=self._to_site_feature(footprint_raw),
            parcel=self._to_site_feature(parcel_raw),
            source_name=source_name,
            collection=data,
        )
        logger.debug(
            f"Parsed {len(features)} polygon feature(s)",
            extra={"dataset": source_name or "<inline>"},
        )
        return dataset

    def _polygon_features(self, data: Any) -> list[dict[str, Any]]:
        if not isinstance(data, dict):
            raise ParseError("GeoJSON root must be an object", field="type")

        kind = data.get("type")
        if kind == "FeatureCollection":
            features = data.get("features")
            if not isinstance(features, list):
                raise ParseError("FeatureCollection has no 'features' array", field="features")
        elif kind == "Feature":
            features = [data]
        elif kind in POLYGON_TYPES:
            features = [{"type": "Feature", "geometry": data, "properties": {}}]
        else:
            raise ParseError(
                f"Unsupported GeoJSON type: {kind!r}",
                field="type",
                suggestions=["Use a FeatureCollection of Polygon features"],
            )

        for i, feature in enumerate(features):
            feature_properties(feature, i)

        polygons = [
            f for f in features
            if isinstance(f.get("geometry"), dict)
            and f["geometry"].get("type") in POLYGON_TYPES
        ]
        if not polygons:
            raise ParseError("Dataset contains no Polygon feature", field="features")
        return polygons

    @staticmethod
    def _find_role(features: list[dict[str, Any]], role: str) -> Optional[dict[str, Any]]:
        for feature in features:
            if feature_properties(feature).get("role") == role:
                return feature
        return None

    @staticmethod
    def _has_height(feature: dict[str, Any]) -> bool:
        props = feature_properties(feature)
        return any(k in props for k in MIN_ABSOLUTE_HEIGHT_KEYS + MAX_RELATIVE_HEIGHT_KEYS)

    def _to_site_feature(self, feature: dict[str, Any]) -> SiteFeature:
        props = dict(feature_properties(feature))
        base = self._read_number(props, MIN_ABSOLUTE_HEIGHT_KEYS)
        ring = self._exterior_ring(feature["geometry"])
        for lon, lat in ring:
            validate_coordinates(lon, lat)

        return SiteFeature(
            ring=ring,
            minimum_absolute_height=base if base is not None else 0.0,
            maximum_relative_height=self._read_number(props, MAX_RELATIVE_HEIGHT_KEYS),
            properties=props,
        )

    @staticmethod
    def _exterior_ring(geometry: dict[str, Any]) -> Ring:
        """Outer ring of a Polygon, or of the first polygon of a MultiPolygon."""
        coordinates = geometry.get("coordinates")
        try:
            if geometry["type"] == "MultiPolygon":
                if len(coordinates) > 1:
                    logger.warning(
                        f"MultiPolygon with {len(coordinates)} parts, using the first"
                    )
                coordinates = coordinates[0]
            exterior = coordinates[0]
        except (TypeError, IndexError, KeyError) as e:
            raise ParseError(
                f"Malformed {geometry.get('type')} coordinates", field="coordinates"
            ) from e
        return as_ring(exterior)

    @staticmethod
    def _read_number(props: dict[str, Any], keys: tuple[str, ...]) -> Optional[float]:
        for key in keys:
            value = props.get(key)
            if value is None or value == "":
                continue
            try:
                number = float(value)
            except (TypeError, ValueError) as e:
                raise ParseError(f"Property {key!r} is not a number: {value!r}", field=key) from e
            if not math.isfinite(number):
                raise ParseError(f"Property {key!r} is not finite", field=key)
            return number
        return None


def parse_observation_points(data: Any) -> tuple[ObservationPoint, ...]:
    """
    Parse camera-pose records.

    Accepts a list of ``{"coordinates": [lon, lat(, alt)], "bearing", "altitude"}``
    records, or a FeatureCollection of Point features with ``bearing``
    (or ``heading``) and ``altitude`` properties.

    Raises:
        ParseError: If a record is malformed
    """
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ParseError(f"Observation points are not valid JSON: {e}", field="source") from e

    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        features = data.get("features") or []
        if not isinstance(features, list):
            raise ParseError("FeatureCollection has no 'features' array", field="features")

        records = []
        for i, feature in enumerate(features):
            props = feature_properties(feature, i)
            geometry = feature.get("geometry")
            if not isinstance(geometry, dict) or geometry.get("type") != "Point":
                continue
            records.append({**props, "coordinates": geometry.get("coordinates")})
    elif isinstance(data, list):
        records = data
    else:
        raise ParseError("Observation points must be a list or a FeatureCollection", field="source")

    points = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise ParseError(f"Observation point {i} is not an object", field="observation_points")
        try:
            coords = record["coordinates"]
            bearing = record.get("bearing", record.get("heading", 0.0))
            altitude = record.get("altitude")
            if altitude is None:
                altitude = coords[2] if len(coords) > 2 else 0.0
            points.append(ObservationPoint(
                longitude=coords[0],
                latitude=coords[1],
                bearing=float(bearing) % 360,
                altitude=altitude,
            ))
        except (KeyError, IndexError, TypeError, ValueError, ValidationError) as e:
            raise ParseError(f"Observation point {i} is malformed: {e}", field="observation_points") from e

    return tuple(points)
