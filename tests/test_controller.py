"""Tests for the session controller."""

import json

import pytest

from sitescene.core.config import Settings
from sitescene.core.errors import (
    DegenerateGeometryError,
    InvalidParameterError,
    ParseError,
    UnsupportedFileTypeError,
)
from sitescene.core.models import ObservationPoint, UserParameters
from sitescene.geometry.site_metrics import derive_volume_and_height, ring_area
from sitescene.session.controller import (
    FileReadResult,
    PointerEvent,
    SessionController,
    SessionState,
)

from tests.conftest import feature_collection, polygon_feature


@pytest.fixture
def events(controller):
    received = []
    controller.subscribe(received.append)
    return received


class TestLoading:
    """Test dataset loading and state transitions."""

    def test_initial_state(self, controller):
        assert controller.state == SessionState.IDLE
        assert controller.snapshot is None
        assert controller.scene is None
        assert controller.metrics is None

    def test_load_default(self, controller):
        snapshot = controller.load_default()

        assert controller.state == SessionState.READY
        assert snapshot is controller.snapshot
        assert snapshot.generation == 1
        assert snapshot.metrics.building_height_m == 18.4
        assert snapshot.scene.extrusion.elevation == 18.4
        assert snapshot.scene.extrusion.contour[0][2] == 375.2
        assert len(snapshot.scene.markers) == 2

    def test_view_centred_on_footprint(self, ready_controller):
        view = ready_controller.view_state
        assert (view.longitude, view.latitude) == ready_controller.metrics.centroid

    def test_load_upload(self, controller, undeclared_site_text):
        snapshot = controller.load_upload(FileReadResult("site.geojson", undeclared_site_text))

        assert controller.state == SessionState.READY
        assert snapshot.dataset.source_name == "site.geojson"

    def test_load_plain_text(self, controller, undeclared_site_text):
        assert controller.load_from_source(undeclared_site_text) is not None
        assert controller.dataset.source_name == ""

    def test_failed_load_keeps_snapshot(self, ready_controller, events):
        before = ready_controller.snapshot

        result = ready_controller.load_from_source(FileReadResult("bad.geojson", "{not json"))

        assert result is None
        assert ready_controller.state == SessionState.ERROR
        assert ready_controller.snapshot is before
        assert isinstance(ready_controller.last_error, ParseError)
        assert events[-1].kind == "error"
        assert events[-1].snapshot is before

    def test_wrong_extension_rejected_before_parsing(self, ready_controller):
        before = ready_controller.snapshot

        result = ready_controller.load_upload(FileReadResult("site.kml", "<kml/>"))

        assert result is None
        assert ready_controller.state == SessionState.READY
        assert ready_controller.snapshot is before
        assert isinstance(ready_controller.last_error, UnsupportedFileTypeError)
        assert "Only .geojson files supported" in str(ready_controller.last_error)

    def test_degenerate_footprint(self, controller):
        text = json.dumps(feature_collection(
            polygon_feature([(6.0, 46.0), (6.001, 46.0), (6.0, 46.0)], role="footprint"),
            polygon_feature([(6.0, 46.0), (6.01, 46.0), (6.01, 46.01), (6.0, 46.0)], role="parcel"),
        ))
        assert controller.load_from_source(text) is None
        assert controller.state == SessionState.ERROR
        assert isinstance(controller.last_error, DegenerateGeometryError)
        assert controller.snapshot is None

    def test_recovery_after_error(self, controller, undeclared_site_text):
        controller.load_from_source("{not json")
        assert controller.state == SessionState.ERROR

        controller.load_from_source(undeclared_site_text)
        assert controller.state == SessionState.READY
        assert controller.last_error is None

    @pytest.mark.parametrize("properties", [["a"], "text", 5])
    def test_non_object_properties_enter_error(self, ready_controller, properties):
        before = ready_controller.snapshot
        feature = polygon_feature([(6.0, 46.0), (6.01, 46.0), (6.01, 46.01), (6.0, 46.0)])
        feature["properties"] = properties

        assert ready_controller.load_from_source(json.dumps(feature_collection(feature))) is None
        assert ready_controller.state == SessionState.ERROR
        assert ready_controller.snapshot is before
        assert isinstance(ready_controller.last_error, ParseError)

    def test_unexpected_loader_failure_ends_in_error(self, test_settings):
        def broken_loader():
            raise RuntimeError("disk gone")

        controller = SessionController(settings=test_settings, default_loader=broken_loader)
        with pytest.raises(RuntimeError):
            controller.load_default()
        assert controller.state == SessionState.ERROR

    def test_reload_is_idempotent(self, ready_controller):
        first = ready_controller.snapshot
        second = ready_controller.load_default()

        assert second.generation == first.generation + 1
        assert second.metrics == first.metrics
        assert second.scene == first.scene


class TestParameters:
    """Test parameter updates."""

    def test_update_recomputes(self, controller, undeclared_site_text):
        controller.load_from_source(undeclared_site_text)
        # Settings defaults: 50%, 10 floors of 10 m
        assert controller.metrics.building_height_m == 100.0

        snapshot = controller.update_parameters({"floor_height": 3.0})

        footprint_area = ring_area(controller.dataset.footprint.ring)
        expected = derive_volume_and_height(footprint_area, 50, 10, 3.0)
        assert snapshot.metrics.building_height_m == 30.0
        assert snapshot.metrics.volume_m3 == expected.volume_m3
        assert snapshot.scene.extrusion.elevation == 30.0
        assert controller.parameters.floor_height == 3.0

    def test_same_update_is_idempotent(self, controller, undeclared_site_text):
        controller.load_from_source(undeclared_site_text)
        params = {"lot_coverage_percent": 60, "floor_count": 4, "floor_height": 3.0}

        first = controller.update_parameters(params)
        second = controller.update_parameters(params)

        assert second.generation == first.generation + 1
        assert second.metrics == first.metrics
        assert second.scene == first.scene
        assert second.view_state == first.view_state

    def test_front_end_names(self, ready_controller):
        ready_controller.update_parameters({"lotCoverage": 80, "floorNumber": 4})
        assert ready_controller.parameters.lot_coverage_percent == 80
        assert ready_controller.parameters.floor_count == 4

    def test_full_parameter_object(self, ready_controller):
        params = UserParameters(lot_coverage_percent=25, floor_count=2, floor_height=3)
        snapshot = ready_controller.update_parameters(params)
        assert snapshot.parameters is params

    def test_declared_height_ignores_floor_model(self, ready_controller):
        snapshot = ready_controller.update_parameters({"floor_count": 3})
        assert snapshot.metrics.building_height_m == 18.4

    @pytest.mark.parametrize("update", [
        {"lot_coverage_percent": 120},
        {"lot_coverage_percent": -5},
        {"floor_count": 2.5},
        {"floor_count": "many"},
    ])
    def test_invalid_update_keeps_snapshot(self, ready_controller, update):
        before = ready_controller.snapshot
        params_before = ready_controller.parameters

        assert ready_controller.update_parameters(update) is None
        assert ready_controller.snapshot is before
        assert ready_controller.parameters is params_before
        assert ready_controller.state == SessionState.READY
        assert isinstance(ready_controller.last_error, InvalidParameterError)

    def test_update_without_dataset(self, controller):
        assert controller.update_parameters({"floor_count": 3}) is None
        assert controller.parameters.floor_count == 3
        assert controller.state == SessionState.IDLE

    def test_update_without_dataset_validated(self, controller):
        controller.update_parameters({"floor_height": 0})
        assert isinstance(controller.last_error, InvalidParameterError)
        assert controller.last_error.field == "floor_height"

    def test_reload_resets_parameters(self, ready_controller):
        ready_controller.update_parameters({"lot_coverage_percent": 80})
        ready_controller.load_default()
        assert ready_controller.parameters.lot_coverage_percent == 50

    def test_reload_keeps_parameters_when_configured(self, observation_points):
        controller = SessionController(
            settings=Settings(_env_file=None, reset_parameters_on_reload=False),
            observation_points=observation_points,
        )
        controller.load_default()
        controller.update_parameters({"lot_coverage_percent": 80})
        controller.load_default()
        assert controller.parameters.lot_coverage_percent == 80


class TestObservationPoints:
    def test_default_points_from_sample(self, test_settings):
        controller = SessionController(settings=test_settings)
        assert len(controller.observation_points) == 3

    def test_replace_points(self, ready_controller):
        snapshot = ready_controller.set_observation_points(
            [{"coordinates": [6.1368, 46.2040], "bearing": 90, "altitude": 400}]
        )
        assert len(snapshot.scene.markers) == 1
        assert snapshot.scene.markers[0].orientation == (0.0, -90.0, 90.0)
        assert ready_controller.observation_points == snapshot.observation_points

    def test_malformed_points_rejected(self, ready_controller):
        before = ready_controller.snapshot
        assert ready_controller.set_observation_points([{"bearing": 5}]) is None
        assert ready_controller.snapshot is before
        assert isinstance(ready_controller.last_error, ParseError)

    def test_non_object_point_feature_rejected(self, ready_controller):
        before = ready_controller.snapshot
        points = {"type": "FeatureCollection", "features": [3]}

        assert ready_controller.set_observation_points(points) is None
        assert ready_controller.snapshot is before
        assert ready_controller.state == SessionState.READY
        assert isinstance(ready_controller.last_error, ParseError)

    def test_points_stored_before_load(self, controller):
        point = ObservationPoint(longitude=6.0, latitude=46.0)
        controller.set_observation_points([point])
        assert controller.observation_points == (point,)


class TestSubscribers:
    def test_ready_event(self, controller, events):
        controller.load_default()
        assert [e.kind for e in events] == ["ready"]
        assert events[0].message == "Scene updated"
        assert events[0].snapshot is controller.snapshot

    def test_listener_sees_new_parameters(self, ready_controller):
        seen = []
        ready_controller.subscribe(lambda e: seen.append(ready_controller.parameters.floor_count))
        ready_controller.update_parameters({"floor_count": 7})
        assert seen == [7]

    def test_unsubscribe(self, controller, events):
        extra = []
        unsubscribe = controller.subscribe(extra.append)
        unsubscribe()
        unsubscribe()
        controller.load_default()
        assert extra == []
        assert len(events) == 1

    def test_failing_listener_isolated(self, controller):
        def broken(event):
            raise RuntimeError("listener bug")

        controller.subscribe(broken)
        assert controller.load_default() is not None
        assert controller.state == SessionState.READY


class TestPointer:
    """Test hover and click handling."""

    def test_unwraps_against_viewport(self, controller):
        result = controller.handle_pointer(
            PointerEvent(x=10, y=20, coordinate=(-179.0, 10.0), viewport_longitude=170.0)
        )
        assert result.coordinate == (181.0, 10.0)
        assert result.tooltip is None

    def test_hover_marker_tooltip(self, controller, observation_points):
        result = controller.handle_pointer(PointerEvent(
            x=10, y=20, coordinate=(6.1363, 46.2033), viewport_longitude=6.0,
            picked=observation_points[0],
        ))
        assert result.tooltip.lines == ("Altitude: 377.50m", "Heading: 45.00°")
        assert result.tooltip.text == "Altitude: 377.50m\nHeading: 45.00°"
        assert (result.tooltip.x, result.tooltip.y) == (10, 20)

    def test_click_hides_tooltip(self, controller, observation_points):
        result = controller.handle_pointer(PointerEvent(
            x=10, y=20, coordinate=(6.1363, 46.2033), viewport_longitude=6.0,
            picked=observation_points[0], kind="click",
        ))
        assert result.tooltip is None

    def test_non_finite_coordinate(self, controller):
        result = controller.handle_pointer(
            PointerEvent(x=0, y=0, coordinate=(float("nan"), 0.0), viewport_longitude=0.0)
        )
        assert result is None
        assert isinstance(controller.last_error, ParseError)


class TestExport:
    def test_nothing_before_load(self, controller):
        assert controller.export_dataset() is None
        assert controller.export_data_uri() is None

    def test_export_loaded_dataset(self, ready_controller):
        data = json.loads(ready_controller.export_dataset())
        assert data == ready_controller.dataset.collection
        assert ready_controller.export_data_uri().startswith("data:text/json;charset=utf-8,")
