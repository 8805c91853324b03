"""
Tests for the navigation lane update cycle.
"""

import logging
import math

import pytest

from data.formats.data_format import PerceptionOutput, VehiclePose
from relative_map.lane_model import CubicLaneBoundary, LaneMarkers
from relative_map.navigation_lane import NavigationLane, UpdateError, UpdateResult
from relative_map.path_sampler import PathSampler


def _perception(timestamp=0.0, c0=1.0, view_range=3.0) -> PerceptionOutput:
    return PerceptionOutput(
        timestamp=timestamp,
        lane_marker=LaneMarkers(
            CubicLaneBoundary(c0, 0.0, 0.0, 0.0, view_range=view_range),
            CubicLaneBoundary(-c0, 0.0, 0.0, 0.0, view_range=view_range),
        ),
    )


class TestSuccessfulUpdate:
    def test_update_builds_path(self):
        lane = NavigationLane()
        pose = VehiclePose(x=10.0, y=20.0, heading=0.0)

        result = lane.update(_perception(), pose)

        assert result
        assert result.ok
        assert result.error is None
        assert result.navigation_path is lane.navigation_path
        assert [(p.x, p.y) for p in lane.navigation_path] == [(10.0, 20.0), (11.0, 20.0), (12.0, 20.0), (13.0, 20.0)]
        assert lane.navigation_path[1].s == pytest.approx(math.hypot(10.0, 20.0))

    def test_update_stores_perception_and_pose(self):
        lane = NavigationLane()
        perception = _perception(timestamp=1.5)
        pose = VehiclePose(1.0, 2.0, 0.3, timestamp=1.5)

        lane.update(perception, pose)

        assert lane.perception is perception
        assert lane.adc_state is pose

    def test_path_replaced_wholesale(self):
        lane = NavigationLane()
        lane.update(_perception(view_range=10.0), VehiclePose(0.0, 0.0, 0.0))
        assert len(lane.navigation_path) == 11

        lane.update(_perception(view_range=2.0), VehiclePose(50.0, 0.0, 0.0))

        assert len(lane.navigation_path) == 3
        assert lane.navigation_path[0].x == pytest.approx(50.0)
        assert lane.navigation_path[0].s == 0.0

    def test_uses_injected_sampler(self):
        lane = NavigationLane(PathSampler(step=0.5))
        lane.update(_perception(view_range=3.0), VehiclePose(0.0, 0.0, 0.0))
        assert len(lane.navigation_path) == 7


class TestMissingBoundaryData:
    def test_initial_state_is_empty(self):
        lane = NavigationLane()
        assert lane.navigation_path.is_empty
        assert lane.perception is None
        assert lane.adc_state is None

    def test_missing_lane_marker_reports_error(self, caplog):
        lane = NavigationLane()

        with caplog.at_level(logging.ERROR):
            result = lane.update(PerceptionOutput(timestamp=0.0), VehiclePose(0.0, 0.0, 0.0))

        assert not result
        assert result.error is UpdateError.MISSING_BOUNDARY_DATA
        assert result.navigation_path is None
        assert "No lane marker" in caplog.text

    def test_none_perception_reports_error(self):
        result = NavigationLane().update(None, VehiclePose(0.0, 0.0, 0.0))
        assert result.error is UpdateError.MISSING_BOUNDARY_DATA

    def test_failed_update_keeps_stale_path(self):
        lane = NavigationLane()
        good_perception = _perception(timestamp=1.0)
        good_pose = VehiclePose(10.0, 20.0, 0.0)
        lane.update(good_perception, good_pose)
        previous_path = lane.navigation_path

        result = lane.update(PerceptionOutput(timestamp=2.0), VehiclePose(99.0, 99.0, 1.0))

        assert not result
        assert lane.navigation_path is previous_path
        assert lane.perception is good_perception
        assert lane.adc_state is good_pose

    def test_recovers_on_next_valid_update(self):
        lane = NavigationLane()
        lane.update(PerceptionOutput(timestamp=0.0), VehiclePose(0.0, 0.0, 0.0))

        assert lane.update(_perception(), VehiclePose(0.0, 0.0, 0.0))
        assert len(lane.navigation_path) == 4


def test_update_result_factories():
    failure = UpdateResult.failure(UpdateError.MISSING_BOUNDARY_DATA)
    assert bool(failure) is False
    assert failure.error.value == "missing_boundary_data"


class _FailingSampler(PathSampler):
    def sample(self, lane_marker, pose):
        raise RuntimeError("sampling failed")


def test_sampling_error_leaves_previous_state():
    lane = NavigationLane()
    good_perception = _perception(timestamp=1.0)
    good_pose = VehiclePose(10.0, 20.0, 0.0)
    lane.update(good_perception, good_pose)
    previous_path = lane.navigation_path

    lane.sampler = _FailingSampler()
    with pytest.raises(RuntimeError):
        lane.update(_perception(timestamp=2.0), VehiclePose(0.0, 0.0, 0.0))

    assert lane.navigation_path is previous_path
    assert lane.perception is good_perception
    assert lane.adc_state is good_pose
