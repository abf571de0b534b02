"""3D scene assembly."""

from .scene_assembler import (
    ElevationDecoder,
    ExtrudedRecord,
    GroundRecord,
    IconFrame,
    MarkerLayerConfig,
    MarkerRecord,
    SceneAssembler,
    SceneDescription,
    TerrainConfig,
    ViewState,
)

__all__ = [
    "ElevationDecoder",
    "ExtrudedRecord",
    "GroundRecord",
    "IconFrame",
    "MarkerLayerConfig",
    "MarkerRecord",
    "SceneAssembler",
    "SceneDescription",
    "TerrainConfig",
    "ViewState",
]
