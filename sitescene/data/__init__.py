"""Built-in datasets."""

from .sample_site import (
    SAMPLE_SITE,
    SAMPLE_OBSERVATION_POINTS,
    load_sample_dataset,
    load_sample_observation_points,
    sample_geojson_text,
)

__all__ = [
    "SAMPLE_SITE",
    "SAMPLE_OBSERVATION_POINTS",
    "load_sample_dataset",
    "load_sample_observation_points",
    "sample_geojson_text",
]
