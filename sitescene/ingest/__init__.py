"""Data ingestion modules."""

from .geojson_parser import GeoJSONSiteParser, parse_observation_points

__all__ = ["GeoJSONSiteParser", "parse_observation_points"]
