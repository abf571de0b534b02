"""
Configuration management for SiteScene.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Can be configured via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SITESCENE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Zoning parameter defaults
    default_lot_coverage_percent: float = Field(default=50.0, description="Lot coverage (%)")
    default_floor_count: int = Field(default=10, description="Number of floors")
    default_floor_height_m: float = Field(default=10.0, description="Floor height (m)")
    reset_parameters_on_reload: bool = Field(
        default=True, description="Restore default parameters whenever a dataset is (re)loaded"
    )

    # Upload
    allowed_upload_extensions: list[str] = Field(default=[".geojson"])

    # Terrain drape
    terrain_elevation_url: str = Field(
        default="https://tile.buildingshistory.co.uk/data/su_/{z}/{x}/{y}.png",
        description="Terrain-RGB elevation tile template",
    )
    terrain_texture_url: str = Field(default="", description="Optional surface imagery template")
    terrain_r_scaler: float = Field(default=6553.6)
    terrain_g_scaler: float = Field(default=25.6)
    terrain_b_scaler: float = Field(default=0.1)
    terrain_offset: float = Field(default=-10000.0)
    terrain_min_zoom: int = Field(default=0)
    terrain_max_zoom: int = Field(default=23)
    terrain_strategy: str = Field(default="no-overlap")
    terrain_wireframe: bool = Field(default=False)

    # Markers
    marker_icon_key: str = Field(default="marker")
    marker_icon_atlas: str = Field(
        default="https://raw.githubusercontent.com/visgl/deck.gl-data/master/website/icon-atlas.png"
    )
    marker_icon_width: int = Field(default=128, description="Icon frame width in the atlas (px)")
    marker_icon_height: int = Field(default=128, description="Icon frame height in the atlas (px)")
    marker_icon_mask: bool = Field(default=True, description="Tint the icon with the marker colour")
    marker_icon_size: float = Field(default=5.0)
    marker_size_scale: float = Field(default=8.0)
    marker_billboard: bool = Field(default=True)
    marker_scenegraph_url: str = Field(default="./cam.gltf", description="Camera model drawn at each point")

    # View
    view_zoom: float = Field(default=18.0, description="Zoom applied after a dataset loads")
    view_pitch: float = Field(default=45.0)
    view_bearing: float = Field(default=0.0)

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    # Logging
    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))


# Global settings instance
settings = Settings()
