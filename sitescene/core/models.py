"""
Pydantic models for site input data.

Covers the parsed dataset (footprint + parcel features), the user zoning
parameters and the observation points that drive the marker layer.
Derived values (metrics, scene records) live next to the code that
computes them.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .coordinates import Ring


# =============================================================================
# USER PARAMETERS
# =============================================================================


class UserParameters(BaseModel):
    """Zoning parameters edited by the user."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    lot_coverage_percent: float = Field(
        default=50.0,
        validation_alias=AliasChoices("lot_coverage_percent", "lotCoveragePercent", "lotCoverage"),
        description="Share of the footprint assumed built (0-100)",
    )
    floor_count: int = Field(
        default=10,
        validation_alias=AliasChoices("floor_count", "floorCount", "floorNumber"),
    )
    floor_height: float = Field(
        default=10.0,
        validation_alias=AliasChoices("floor_height", "floorHeight"),
        description="Floor-to-floor height (m)",
    )

    @classmethod
    def from_settings(cls, settings) -> "UserParameters":
        return cls(
            lot_coverage_percent=settings.default_lot_coverage_percent,
            floor_count=settings.default_floor_count,
            floor_height=settings.default_floor_height_m,
        )


# =============================================================================
# DATASET
# =============================================================================


class SiteFeature(BaseModel):
    """A polygon feature (footprint or parcel) with its height properties."""

    model_config = ConfigDict(frozen=True)

    ring: Ring
    minimum_absolute_height: float = Field(default=0.0, description="Base elevation (m)")
    maximum_relative_height: Optional[float] = Field(
        default=None, description="Building height above base (m)"
    )
    properties: dict[str, Any] = Field(default_factory=dict)

    @property
    def declared_height(self) -> Optional[float]:
        """Declared relative height when present and positive."""
        if self.maximum_relative_height is not None and self.maximum_relative_height > 0:
            return self.maximum_relative_height
        return None


class SiteDataset(BaseModel):
    """A loaded site: one footprint and one parcel, plus the source collection."""

    model_config = ConfigDict(frozen=True)

    footprint: SiteFeature
    parcel: SiteFeature
    source_name: str = ""
    collection: dict[str, Any] = Field(
        default_factory=dict, description="Parsed feature collection, kept for export"
    )


# =============================================================================
# OBSERVATION POINTS
# =============================================================================


class ObservationPoint(BaseModel):
    """A camera pose record shown as an oriented marker."""

    model_config = ConfigDict(frozen=True)

    longitude: float = Field(ge=-180, le=180)
    latitude: float = Field(ge=-90, le=90)
    bearing: float = Field(default=0.0, ge=0, le=360, description="Heading (degrees)")
    altitude: float = Field(default=0.0, description="Altitude (m)")

    @property
    def coordinates(self) -> tuple[float, float, float]:
        return (self.longitude, self.latitude, self.altitude)
