"""
Pytest configuration and fixtures for SiteScene tests.

Provides reusable test fixtures for:
- Square rings in WGS84
- Site features and datasets
- Session controllers
"""

import copy
import json

import pytest
from pathlib import Path

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from sitescene.core.config import Settings
from sitescene.core.models import ObservationPoint, SiteDataset, SiteFeature, UserParameters
from sitescene.data.sample_site import SAMPLE_SITE
from sitescene.session.controller import SessionController


def square_ring(lon: float, lat: float, size: float = 0.001, closed: bool = True):
    """Counter-clockwise square with its south-west corner at (lon, lat)."""
    ring = [
        (lon, lat),
        (lon + size, lat),
        (lon + size, lat + size),
        (lon, lat + size),
    ]
    if closed:
        ring.append(ring[0])
    return ring


def feature_collection(*features) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}


def polygon_feature(ring, **properties) -> dict:
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": "Polygon", "coordinates": [[list(c) for c in ring]]},
    }


# =============================================================================
# GEOMETRY FIXTURES
# =============================================================================

@pytest.fixture
def small_square():
    """~110 m square on the equator, close to the UTM zone 31 central meridian."""
    return square_ring(3.0, 0.0)


@pytest.fixture
def antimeridian_ring():
    """Ring straddling the antimeridian, 0.0015° wide and 0.001° tall."""
    return [
        (179.999, 0.0),
        (-179.9995, 0.0),
        (-179.9995, 0.001),
        (179.999, 0.001),
        (179.999, 0.0),
    ]


# =============================================================================
# DATASET FIXTURES
# =============================================================================

@pytest.fixture
def parcel_feature() -> SiteFeature:
    return SiteFeature(ring=tuple(square_ring(6.1364, 46.2033, size=0.001)))


@pytest.fixture
def footprint_feature() -> SiteFeature:
    """Footprint without a declared height."""
    return SiteFeature(
        ring=tuple(square_ring(6.1366, 46.2035, size=0.0003)),
        minimum_absolute_height=375.0,
    )


@pytest.fixture
def default_parameters() -> UserParameters:
    return UserParameters(lot_coverage_percent=50, floor_count=10, floor_height=3.0)


@pytest.fixture
def undeclared_site_text() -> str:
    """Parcel + footprint collection where the footprint declares no height."""
    return json.dumps(feature_collection(
        polygon_feature(square_ring(6.1364, 46.2033, size=0.001), role="parcel"),
        polygon_feature(
            square_ring(6.1366, 46.2035, size=0.0003),
            role="footprint",
            minimumAbsoluteHeight=375.0,
        ),
    ))


@pytest.fixture
def sample_collection() -> dict:
    return copy.deepcopy(SAMPLE_SITE)


@pytest.fixture
def observation_points():
    return (
        ObservationPoint(longitude=6.1363, latitude=46.2033, bearing=45.0, altitude=377.5),
        ObservationPoint(longitude=6.1373, latitude=46.2034, bearing=300.0, altitude=378.1),
    )


# =============================================================================
# SESSION FIXTURES
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def controller(test_settings, observation_points) -> SessionController:
    """Idle controller with two observation points."""
    return SessionController(settings=test_settings, observation_points=observation_points)


@pytest.fixture
def ready_controller(controller) -> SessionController:
    """Controller with the sample site loaded."""
    controller.load_default()
    return controller
