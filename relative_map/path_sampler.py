"""
Lane marker to navigation path conversion.
Samples the lane centerline ahead of the vehicle and moves it into the reference frame.
"""

from __future__ import annotations

import math
import logging
from typing import Dict, List

from data.formats.data_format import NavigationPath, PathPoint, VehiclePose
from relative_map.geometry import to_reference_frame
from relative_map.lane_model import LaneMarkers

logger = logging.getLogger(__name__)

DEFAULT_SAMPLING_STEP_M = 1.0


class PathSampler:
    """
    Samples the centerline between the left and right lane markers.
    """

    def __init__(self, step: float = DEFAULT_SAMPLING_STEP_M):
        """
        Initialize path sampler.

        Args:
            step: Longitudinal spacing between samples (meters)
        """
        step = float(step)
        if not math.isfinite(step) or step <= 0.0:
            raise ValueError(f"Sampling step must be positive, got {step}")
        self.step = step
        self.last_diagnostics: Dict[str, float] = self._empty_diagnostics()

    @staticmethod
    def _empty_diagnostics() -> Dict[str, float]:
        return {
            "diag_points_generated": 0.0,
            "diag_view_range_m": math.nan,
            "diag_step_m": math.nan,
            "diag_final_s": math.nan,
        }

    def num_samples(self, view_range: float) -> int:
        """Number of samples z = 0, step, ... with z <= view_range."""
        if view_range < 0.0:
            return 0
        return int(math.floor(view_range / self.step)) + 1

    def sample(self, lane_marker: LaneMarkers, pose: VehiclePose) -> NavigationPath:
        """
        Build the navigation path for one cycle.

        Progress s of each point is the value accumulated before the point is
        added; after each point the distance from the reference-frame origin
        to that point is added to the accumulator.

        Args:
            lane_marker: Left/right lane markers in the vehicle frame
            pose: Vehicle pose snapshot in the reference frame

        Returns:
            NavigationPath ordered by increasing longitudinal offset
        """
        left_lane = lane_marker.left_lane_marker
        right_lane = lane_marker.right_lane_marker
        view_range = lane_marker.view_range

        points: List[PathPoint] = []
        accumulated_s = 0.0
        for i in range(self.num_samples(view_range)):
            z = i * self.step
            x_l = left_lane.evaluate(z)
            x_r = right_lane.evaluate(z)
            centerline_offset = (x_l + x_r) / 2.0

            x, y = to_reference_frame(pose.heading, z, centerline_offset, pose.x, pose.y)
            points.append(PathPoint(x=x, y=y, s=accumulated_s))
            accumulated_s += math.hypot(x, y)

        self.last_diagnostics = {
            "diag_points_generated": float(len(points)),
            "diag_view_range_m": float(view_range),
            "diag_step_m": self.step,
            "diag_final_s": points[-1].s if points else math.nan,
        }
        logger.debug(f"Sampled {len(points)} path points over {view_range:.2f}m")
        return NavigationPath(tuple(points))


def convert_lane_marker_to_path(lane_marker: LaneMarkers, pose: VehiclePose,
                                step: float = DEFAULT_SAMPLING_STEP_M) -> NavigationPath:
    """Sample a navigation path with a one-off sampler."""
    return PathSampler(step).sample(lane_marker, pose)
