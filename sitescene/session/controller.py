"""
Session controller.

Holds the current zoning parameters, loaded dataset and observation points,
runs the metrics → scene pipeline whenever one of them changes, and
publishes the result as one immutable snapshot.

States: IDLE → LOADING → READY → LOADING → READY …, with ERROR reachable
from any state on malformed input. A failed operation never touches the
last published snapshot.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from ..core.config import Settings, settings as default_settings
from ..core.coordinates import Coordinate, unwrap_coordinate
from ..core.errors import InvalidParameterError, SiteSceneError
from ..core.models import ObservationPoint, SiteDataset, UserParameters
from ..data.sample_site import load_sample_dataset, load_sample_observation_points
from ..export.geojson_export import GeoJSONExporter
from ..geometry.site_metrics import SiteMetrics, compute_site_metrics
from ..ingest.geojson_parser import GeoJSONSiteParser, parse_observation_points
from ..utils.validation import validate_parameters, validate_upload_filename
from ..visualization.scene_assembler import (
    MarkerRecord,
    MarkerLayerConfig,
    SceneAssembler,
    SceneDescription,
    TerrainConfig,
    ViewState,
)

logger = logging.getLogger(__name__)

# Front-end field names accepted by update_parameters
_PARAMETER_ALIASES = {
    "lotCoveragePercent": "lot_coverage_percent",
    "lotCoverage": "lot_coverage_percent",
    "floorCount": "floor_count",
    "floorNumber": "floor_count",
    "floorHeight": "floor_height",
}


class SessionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class FileReadResult:
    """Completed single-shot file read: the name and the full text."""
    filename: str
    text: str


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything derived from one (dataset, parameters, points) generation."""
    generation: int
    dataset: SiteDataset
    parameters: UserParameters
    observation_points: Tuple[ObservationPoint, ...]
    metrics: SiteMetrics
    scene: SceneDescription
    view_state: ViewState


@dataclass(frozen=True)
class SessionEvent:
    """Notification sent to subscribers after every publish or failure."""
    kind: str  # 'ready' or 'error'
    state: SessionState
    snapshot: Optional[SessionSnapshot]
    error: Optional[SiteSceneError] = None

    @property
    def message(self) -> str:
        if self.error is not None:
            return str(self.error)
        return "Scene updated"


@dataclass(frozen=True)
class PointerEvent:
    """Pointer interaction reported by the rendering boundary."""
    x: float
    y: float
    coordinate: Coordinate
    viewport_longitude: float
    picked: Optional[Union[MarkerRecord, ObservationPoint]] = None
    kind: str = "hover"  # 'hover' or 'click'


@dataclass(frozen=True)
class Tooltip:
    x: float
    y: float
    coordinate: Coordinate
    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class PointerResult:
    coordinate: Coordinate
    tooltip: Optional[Tooltip] = None


Listener = Callable[[SessionEvent], None]


class SessionController:
    """
    Orchestrate recomputation for one viewing session.

    Usage:
        controller = SessionController()
        controller.subscribe(lambda event: print(event.message))
        controller.load_default()
        controller.update_parameters({"lot_coverage_percent": 60})
        scene = controller.scene

    Operations never raise SiteSceneError: failures are logged, stored in
    ``last_error`` and sent to subscribers, and the method returns None.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        assembler: Optional[SceneAssembler] = None,
        parser: Optional[GeoJSONSiteParser] = None,
        exporter: Optional[GeoJSONExporter] = None,
        default_loader: Callable[[], SiteDataset] = load_sample_dataset,
        observation_points: Optional[Iterable[ObservationPoint]] = None,
    ):
        self.settings = settings or default_settings
        self.assembler = assembler or SceneAssembler(MarkerLayerConfig.from_settings(self.settings))
        self.parser = parser or GeoJSONSiteParser()
        self.exporter = exporter or GeoJSONExporter()
        self.terrain = TerrainConfig.from_settings(self.settings)
        self._default_loader = default_loader

        if observation_points is None:
            observation_points = load_sample_observation_points()

        # Recomputes are serialized; RLock lets listeners call back in
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._state = SessionState.IDLE
        self._parameters = UserParameters.from_settings(self.settings)
        self._observation_points: Tuple[ObservationPoint, ...] = tuple(observation_points)
        self._snapshot: Optional[SessionSnapshot] = None
        self._generation = 0
        self.last_error: Optional[SiteSceneError] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def snapshot(self) -> Optional[SessionSnapshot]:
        return self._snapshot

    @property
    def parameters(self) -> UserParameters:
        return self._parameters

    @property
    def observation_points(self) -> Tuple[ObservationPoint, ...]:
        return self._observation_points

    @property
    def dataset(self) -> Optional[SiteDataset]:
        return self._snapshot.dataset if self._snapshot else None

    @property
    def metrics(self) -> Optional[SiteMetrics]:
        return self._snapshot.metrics if self._snapshot else None

    @property
    def scene(self) -> Optional[SceneDescription]:
        return self._snapshot.scene if self._snapshot else None

    @property
    def view_state(self) -> Optional[ViewState]:
        return self._snapshot.view_state if self._snapshot else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def load_default(self) -> Optional[SessionSnapshot]:
        """Load the built-in sample dataset and publish a new snapshot."""
        return self._run_load(self._default_loader)

    def load_from_source(self, source: Union[FileReadResult, str]) -> Optional[SessionSnapshot]:
        """
        Parse a dataset and publish a new snapshot.

        Args:
            source: Completed file read, or raw GeoJSON text
        """
        if isinstance(source, FileReadResult):
            text, name = source.text, source.filename
        else:
            text, name = source, ""

        return self._run_load(lambda: self.parser.parse_text(text, source_name=name))

    def load_upload(self, upload: FileReadResult) -> Optional[SessionSnapshot]:
        """Check the upload's file type, then load it."""
        try:
            validate_upload_filename(upload.filename, self.settings.allowed_upload_extensions)
        except SiteSceneError as e:
            with self._lock:
                return self._fail(e, enter_error_state=False)
        return self.load_from_source(upload)

    def update_parameters(
        self, new_params: Union[UserParameters, Mapping[str, Any]]
    ) -> Optional[SessionSnapshot]:
        """
        Replace the zoning parameters and recompute against the loaded dataset.

        A mapping may hold any subset of the parameters; missing ones keep
        their current value. Without a loaded dataset the parameters are
        only stored.
        """
        with self._lock:
            try:
                params = self._coerce_parameters(new_params)
                if self._snapshot is None:
                    validate_parameters(
                        params.lot_coverage_percent, params.floor_count, params.floor_height
                    )
                    self._parameters = params
                    return None

                return self._publish(self._snapshot.dataset, params, self._observation_points)
            except SiteSceneError as e:
                return self._fail(e, enter_error_state=False)

    def set_observation_points(self, points: Any) -> Optional[SessionSnapshot]:
        """Replace the camera poses shown as markers."""
        with self._lock:
            try:
                if isinstance(points, (list, tuple)) and all(
                    isinstance(p, ObservationPoint) for p in points
                ):
                    parsed = tuple(points)
                else:
                    parsed = parse_observation_points(points)

                if self._snapshot is None:
                    self._observation_points = parsed
                    return None

                return self._publish(self._snapshot.dataset, self._parameters, parsed)
            except SiteSceneError as e:
                return self._fail(e, enter_error_state=False)

    def recompute(self) -> Optional[SessionSnapshot]:
        """Re-run the pipeline on unchanged inputs."""
        with self._lock:
            if self._snapshot is None:
                return None
            try:
                return self._publish(
                    self._snapshot.dataset, self._parameters, self._observation_points
                )
            except SiteSceneError as e:
                return self._fail(e, enter_error_state=False)

    def handle_pointer(self, event: PointerEvent) -> Optional[PointerResult]:
        """
        Resolve a pointer event into an unwrapped coordinate and tooltip.

        Hovering a marker shows its altitude and heading; clicks hide the tooltip.
        """
        try:
            coordinate = unwrap_coordinate(event.coordinate, event.viewport_longitude)
        except SiteSceneError as e:
            with self._lock:
                return self._fail(e, enter_error_state=False)

        tooltip = None
        if event.kind == "hover" and event.picked is not None:
            tooltip = Tooltip(
                x=event.x,
                y=event.y,
                coordinate=coordinate,
                lines=(
                    f"Altitude: {event.picked.altitude:.2f}m",
                    f"Heading: {event.picked.bearing:.2f}°",
                ),
            )
        return PointerResult(coordinate=coordinate, tooltip=tooltip)

    def export_dataset(self) -> Optional[bytes]:
        """Serialized GeoJSON of the loaded dataset, or None before the first load."""
        dataset = self.dataset
        return self.exporter.serialize(dataset) if dataset else None

    def export_data_uri(self) -> Optional[str]:
        dataset = self.dataset
        return self.exporter.to_data_uri(dataset) if dataset else None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_load(self, read: Callable[[], SiteDataset]) -> Optional[SessionSnapshot]:
        """Read a dataset and publish it; a load never leaves the session in LOADING."""
        with self._lock:
            self._set_state(SessionState.LOADING)
            try:
                return self._load(read())
            except SiteSceneError as e:
                return self._fail(e, enter_error_state=True)
            finally:
                if self._state == SessionState.LOADING:
                    self._set_state(SessionState.ERROR)

    def _load(self, dataset: SiteDataset) -> SessionSnapshot:
        if self.settings.reset_parameters_on_reload:
            params = UserParameters.from_settings(self.settings)
        else:
            params = self._parameters

        snapshot = self._publish(dataset, params, self._observation_points)
        logger.info(
            f"Loaded site: land {snapshot.metrics.land_area_m2:.1f} m², "
            f"volume {snapshot.metrics.volume_m3:.1f} m³",
            extra={"dataset": dataset.source_name or "<inline>", "generation": snapshot.generation},
        )
        return snapshot

    def _publish(
        self,
        dataset: SiteDataset,
        parameters: UserParameters,
        points: Tuple[ObservationPoint, ...],
    ) -> SessionSnapshot:
        """Run the full pipeline, then swap the snapshot in one assignment."""
        metrics = compute_site_metrics(dataset.parcel, dataset.footprint, parameters)
        scene = self.assembler.assemble(
            parcel_ring=dataset.parcel.ring,
            footprint_ring=dataset.footprint.ring,
            base_elevation=dataset.footprint.minimum_absolute_height,
            height=metrics.building_height_m,
            observation_points=points,
            terrain=self.terrain,
        )
        snapshot = SessionSnapshot(
            generation=self._generation + 1,
            dataset=dataset,
            parameters=parameters,
            observation_points=points,
            metrics=metrics,
            scene=scene,
            view_state=ViewState.centred_on(metrics.centroid, self.settings),
        )

        self._generation = snapshot.generation
        self._snapshot = snapshot
        self._parameters = parameters
        self._observation_points = points
        self.last_error = None
        self._set_state(SessionState.READY)
        self._notify(SessionEvent(kind="ready", state=self._state, snapshot=snapshot))
        return snapshot

    def _coerce_parameters(self, new_params: Union[UserParameters, Mapping[str, Any]]) -> UserParameters:
        if isinstance(new_params, UserParameters):
            return new_params

        merged = self._parameters.model_dump()
        for key, value in dict(new_params).items():
            merged[_PARAMETER_ALIASES.get(key, key)] = value
        try:
            return UserParameters.model_validate(merged)
        except ValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else ""
            raise InvalidParameterError(
                f"Invalid value for {field or 'parameters'}: {first['msg']}", field=field
            ) from e

    def _fail(self, error: SiteSceneError, enter_error_state: bool) -> None:
        self.last_error = error
        if enter_error_state:
            self._set_state(SessionState.ERROR)
        logger.warning(
            f"{error.kind}: {error}",
            extra={"error_kind": error.kind, "state": self._state.value},
        )
        self._notify(SessionEvent(
            kind="error", state=self._state, snapshot=self._snapshot, error=error
        ))
        return None

    def _set_state(self, state: SessionState) -> None:
        if state != self._state:
            logger.debug(f"Session {self._state.value} -> {state.value}")
        self._state = state

    def _notify(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed")
