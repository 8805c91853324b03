"""
Data format definitions for relative map update cycles.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple
import numpy as np

from relative_map.lane_model import LaneMarkers


@dataclass(frozen=True)
class VehiclePose:
    """Vehicle pose snapshot in the reference frame."""
    x: float
    y: float
    heading: float  # radians
    timestamp: Optional[float] = None


@dataclass
class PerceptionOutput:
    """Perception payload for one cycle."""
    timestamp: float
    lane_marker: Optional[LaneMarkers] = None  # Left/right lane markers (vehicle frame)

    def has_lane_marker(self) -> bool:
        return self.lane_marker is not None


@dataclass(frozen=True)
class PathPoint:
    """Single point on the navigation path."""
    x: float
    y: float
    s: float  # accumulated progress


@dataclass(frozen=True)
class NavigationPath:
    """Ordered navigation path in the reference frame."""
    points: Tuple[PathPoint, ...] = ()

    @classmethod
    def empty(cls) -> "NavigationPath":
        return cls(())

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[PathPoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> PathPoint:
        return self.points[index]

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def length(self) -> float:
        """Progress of the last point (0.0 for an empty path)."""
        return self.points[-1].s if self.points else 0.0

    def as_array(self) -> np.ndarray:
        """Path as an [N, 3] array of (x, y, s)."""
        if not self.points:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([[p.x, p.y, p.s] for p in self.points], dtype=np.float64)


@dataclass
class RecordingFrame:
    """One recorded update cycle."""
    timestamp: float
    frame_id: int
    perception: PerceptionOutput
    pose: VehiclePose
    success: bool = False
    navigation_path: NavigationPath = field(default_factory=NavigationPath.empty)
