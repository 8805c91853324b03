"""
Navigation lane for relative map mode.
Turns the latest perceived lane markers into a navigation path anchored at the vehicle pose.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from data.formats.data_format import NavigationPath, PerceptionOutput, VehiclePose
from relative_map.path_sampler import DEFAULT_SAMPLING_STEP_M, PathSampler

logger = logging.getLogger(__name__)


class UpdateError(enum.Enum):
    """Why an update cycle did not produce a path."""
    MISSING_BOUNDARY_DATA = "missing_boundary_data"


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of NavigationLane.update. Truthy on success."""
    ok: bool
    error: Optional[UpdateError] = None
    navigation_path: Optional[NavigationPath] = None

    @classmethod
    def success(cls, navigation_path: NavigationPath) -> "UpdateResult":
        return cls(ok=True, navigation_path=navigation_path)

    @classmethod
    def failure(cls, error: UpdateError) -> "UpdateResult":
        return cls(ok=False, error=error)

    def __bool__(self) -> bool:
        return self.ok


class NavigationLane:
    """
    Holds the latest perception payload, pose snapshot and navigation path.

    Each successful update replaces all three; a failed update leaves them as
    they were, so readers keep seeing the last good path. Not thread-safe:
    callers that share an instance across threads must serialize update().
    """

    def __init__(self, sampler: Optional[PathSampler] = None):
        self.sampler = sampler if sampler is not None else PathSampler(DEFAULT_SAMPLING_STEP_M)
        self._perception: Optional[PerceptionOutput] = None
        self._adc_state: Optional[VehiclePose] = None
        self._navigation_path = NavigationPath.empty()

    @property
    def navigation_path(self) -> NavigationPath:
        return self._navigation_path

    @property
    def perception(self) -> Optional[PerceptionOutput]:
        return self._perception

    @property
    def adc_state(self) -> Optional[VehiclePose]:
        return self._adc_state

    def update(self, perception: Optional[PerceptionOutput], pose: VehiclePose) -> UpdateResult:
        """
        Run one update cycle.

        Args:
            perception: Perception payload, possibly without lane markers
            pose: Vehicle pose snapshot for this cycle

        Returns:
            UpdateResult carrying the new path, or MISSING_BOUNDARY_DATA
        """
        if perception is None or not perception.has_lane_marker():
            logger.error("No lane marker in perception output.")
            return UpdateResult.failure(UpdateError.MISSING_BOUNDARY_DATA)

        navigation_path = self.sampler.sample(perception.lane_marker, pose)

        self._perception = perception
        self._adc_state = pose
        self._navigation_path = navigation_path
        return UpdateResult.success(self._navigation_path)
