"""
Scene description assembler.

Turns parcel and footprint rings into a renderer-agnostic layer bundle:
ground polygon, extruded building prism, terrain drape and camera markers.
The bundle maps one-to-one onto a deck.gl-style layer stack.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional, Sequence

from ..core.coordinates import Coordinate, Ring
from ..core.models import ObservationPoint
from ..geometry.site_metrics import require_ring

Color = tuple[int, int, int, int]


@dataclass(frozen=True)
class ElevationDecoder:
    """Terrain-RGB decode scalars: height = r*rScaler + g*gScaler + b*bScaler + offset."""
    r_scaler: float
    g_scaler: float
    b_scaler: float
    offset: float


@dataclass(frozen=True)
class TerrainConfig:
    """Terrain drape configuration handed to the renderer unchanged."""
    elevation_data: str
    decoder: ElevationDecoder
    min_zoom: int = 0
    max_zoom: int = 23
    texture: str = ""
    strategy: str = "no-overlap"
    wireframe: bool = False
    color: tuple[int, int, int] = (255, 255, 255)

    @classmethod
    def from_settings(cls, settings) -> "TerrainConfig":
        return cls(
            elevation_data=settings.terrain_elevation_url,
            decoder=ElevationDecoder(
                r_scaler=settings.terrain_r_scaler,
                g_scaler=settings.terrain_g_scaler,
                b_scaler=settings.terrain_b_scaler,
                offset=settings.terrain_offset,
            ),
            min_zoom=settings.terrain_min_zoom,
            max_zoom=settings.terrain_max_zoom,
            texture=settings.terrain_texture_url,
            strategy=settings.terrain_strategy,
            wireframe=settings.terrain_wireframe,
        )


@dataclass(frozen=True)
class GroundRecord:
    """Flat parcel polygon."""
    id: str
    polygon: Ring
    fill_color: Color
    line_color: Color
    line_width: float
    opacity: float = 1.0


@dataclass(frozen=True)
class ExtrudedRecord:
    """Footprint contour lifted to its base elevation and extruded by `elevation`."""
    id: str
    contour: tuple[tuple[float, float, float], ...]
    elevation: float
    fill_color: Color
    line_color: Color
    wireframe: bool = True
    opacity: float = 1.0


@dataclass(frozen=True)
class IconFrame:
    """Sprite rectangle inside the icon atlas."""
    x: int = 0
    y: int = 0
    width: int = 128
    height: int = 128
    mask: bool = True


@dataclass(frozen=True)
class MarkerLayerConfig:
    """
    Shared styling for the observation point layers.

    Each point is drawn twice: as a billboarded icon from the atlas and as
    the camera model (`scenegraph`) rotated to the point's heading.
    """
    icon_key: str = "marker"
    icon_atlas: str = "https://raw.githubusercontent.com/visgl/deck.gl-data/master/website/icon-atlas.png"
    icon_mapping: dict[str, IconFrame] = field(default_factory=lambda: {"marker": IconFrame()})
    icon_size: float = 5.0
    size_scale: float = 8.0
    billboard: bool = True
    scenegraph: str = "./cam.gltf"
    color: Color = (203, 24, 226, 255)

    @classmethod
    def from_settings(cls, settings) -> "MarkerLayerConfig":
        frame = IconFrame(
            width=settings.marker_icon_width,
            height=settings.marker_icon_height,
            mask=settings.marker_icon_mask,
        )
        return cls(
            icon_key=settings.marker_icon_key,
            icon_atlas=settings.marker_icon_atlas,
            icon_mapping={settings.marker_icon_key: frame},
            icon_size=settings.marker_icon_size,
            size_scale=settings.marker_size_scale,
            billboard=settings.marker_billboard,
            scenegraph=settings.marker_scenegraph_url,
        )


@dataclass(frozen=True)
class MarkerRecord:
    """Oriented marker for one observation point."""
    position: tuple[float, float, float]
    orientation: tuple[float, float, float]  # (pitch, yaw, roll) as the renderer expects
    icon: str
    color: Color
    bearing: float
    altitude: float


@dataclass(frozen=True)
class ViewState:
    """Camera state for the rendering boundary."""
    longitude: float
    latitude: float
    zoom: float
    pitch: float = 45.0
    bearing: float = 0.0

    @classmethod
    def centred_on(cls, centroid: Coordinate, settings) -> "ViewState":
        return cls(
            longitude=centroid[0],
            latitude=centroid[1],
            zoom=settings.view_zoom,
            pitch=settings.view_pitch,
            bearing=settings.view_bearing,
        )


@dataclass(frozen=True)
class SceneDescription:
    """Complete, immutable scene handed to the rendering boundary."""
    ground: GroundRecord
    extrusion: ExtrudedRecord
    terrain: TerrainConfig
    marker_layer: MarkerLayerConfig
    markers: tuple[MarkerRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready layer bundle."""
        return {
            "ground": asdict(self.ground),
            "extrusion": asdict(self.extrusion),
            "terrain": asdict(self.terrain),
            "marker_layer": asdict(self.marker_layer),
            "markers": [asdict(m) for m in self.markers],
        }


class SceneAssembler:
    """
    Assemble scene descriptions for a site.

    Usage:
        assembler = SceneAssembler(MarkerLayerConfig.from_settings(settings))
        scene = assembler.assemble(
            parcel_ring=parcel.ring,
            footprint_ring=footprint.ring,
            base_elevation=375.2,
            height=18.4,
            observation_points=points,
            terrain=TerrainConfig.from_settings(settings),
        )
    """

    GROUND_FILL = (183, 244, 216, 255)
    BUILDING_FILL = (249, 180, 45, 255)
    OUTLINE = (0, 0, 0, 255)

    GROUND_LINE_WIDTH = 0.3

    def __init__(self, marker_layer: Optional[MarkerLayerConfig] = None):
        self.marker_layer = marker_layer or MarkerLayerConfig()

    def assemble(
        self,
        parcel_ring: Sequence[Sequence[float]],
        footprint_ring: Sequence[Sequence[float]],
        base_elevation: float,
        height: float,
        observation_points: Iterable[ObservationPoint],
        terrain: TerrainConfig,
    ) -> SceneDescription:
        """
        Build a fresh scene description.

        Args:
            parcel_ring: Parcel ring (lon, lat), emitted unmodified
            footprint_ring: Footprint ring (lon, lat)
            base_elevation: Absolute elevation of the footprint base (m)
            height: Extrusion distance (m)
            observation_points: Camera poses to mark
            terrain: Terrain drape configuration

        Returns:
            SceneDescription

        Raises:
            DegenerateGeometryError: If the footprint has fewer than 3 distinct vertices
        """
        require_ring(footprint_ring, "footprint")

        return SceneDescription(
            ground=self._generate_ground(parcel_ring),
            extrusion=self._generate_extrusion(footprint_ring, base_elevation, height),
            terrain=terrain,
            marker_layer=self.marker_layer,
            markers=tuple(self._generate_marker(p) for p in observation_points),
        )

    def _generate_ground(self, parcel_ring: Sequence[Sequence[float]]) -> GroundRecord:
        return GroundRecord(
            id="ground",
            polygon=tuple((float(c[0]), float(c[1])) for c in parcel_ring),
            fill_color=self.GROUND_FILL,
            line_color=self.OUTLINE,
            line_width=self.GROUND_LINE_WIDTH,
        )

    def _generate_extrusion(
        self,
        footprint_ring: Sequence[Sequence[float]],
        base_elevation: float,
        height: float,
    ) -> ExtrudedRecord:
        # Copy each vertex; the caller's ring is left untouched
        contour = tuple(
            (float(c[0]), float(c[1]), float(base_elevation)) for c in footprint_ring
        )
        return ExtrudedRecord(
            id="building",
            contour=contour,
            elevation=float(height),
            fill_color=self.BUILDING_FILL,
            line_color=self.OUTLINE,
        )

    def _generate_marker(self, point: ObservationPoint) -> MarkerRecord:
        return MarkerRecord(
            position=point.coordinates,
            orientation=(0.0, -point.bearing, 90.0),
            icon=self.marker_layer.icon_key,
            color=self.marker_layer.color,
            bearing=point.bearing,
            altitude=point.altitude,
        )
