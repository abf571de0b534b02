"""
Built-in sample site.

A small Geneva plot: one parcel, one building footprint with declared
heights, and three camera poses around it.
"""

import copy
import json

from ..core.models import ObservationPoint, SiteDataset
from ..ingest.geojson_parser import GeoJSONSiteParser, parse_observation_points

SAMPLE_NAME = "sample_site.geojson"

SAMPLE_SITE = {
    "type": "FeatureCollection",
    "name": "sample_site",
    "features": [
        {
            "type": "Feature",
            "properties": {"role": "parcel", "egrid": "CH670299773514"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[
                    [6.136480, 46.203380],
                    [6.137130, 46.203380],
                    [6.137130, 46.203760],
                    [6.136480, 46.203760],
                    [6.136480, 46.203380],
                ]],
            },
        },
        {
            "type": "Feature",
            "properties": {
                "role": "footprint",
                "egid": 1009846,
                "minimumAbsoluteHeight": 375.2,
                "maximumRelativeHeight": 18.4,
            },
            "geometry": {
                "type": "Polygon",
                "coordinates": [[
                    [6.136610, 46.203480],
                    [6.136999, 46.203480],
                    [6.136999, 46.203660],
                    [6.136610, 46.203660],
                    [6.136610, 46.203480],
                ]],
            },
        },
    ],
}

# Camera poses (coordinates, heading in degrees, altitude in m)
SAMPLE_OBSERVATION_POINTS = [
    {"coordinates": [6.136350, 46.203300], "bearing": 45.0, "altitude": 377.5},
    {"coordinates": [6.137300, 46.203420], "bearing": 300.0, "altitude": 378.1},
    {"coordinates": [6.136800, 46.203900], "bearing": 180.0, "altitude": 392.0},
]


def sample_geojson_text() -> str:
    """Sample site serialized as compact GeoJSON."""
    return json.dumps(SAMPLE_SITE, ensure_ascii=False, separators=(",", ":"))


def load_sample_dataset() -> SiteDataset:
    """Parse a private copy of the sample site."""
    return GeoJSONSiteParser().parse_dict(copy.deepcopy(SAMPLE_SITE), source_name=SAMPLE_NAME)


def load_sample_observation_points() -> tuple[ObservationPoint, ...]:
    return parse_observation_points(SAMPLE_OBSERVATION_POINTS)
