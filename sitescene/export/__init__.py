"""Export modules."""

from .geojson_export import GeoJSONExporter

__all__ = ["GeoJSONExporter"]
