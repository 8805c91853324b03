"""
Data replay utility for relative map recordings.
Feeds recorded perception/pose cycles back through the navigation lane.
"""

import json
import h5py
import numpy as np
from pathlib import Path
from typing import Iterator, Optional, Tuple

from .formats.data_format import NavigationPath, PathPoint, PerceptionOutput, VehiclePose
from relative_map.lane_model import CubicLaneBoundary, LaneMarkers


def lane_marker_from_row(row: np.ndarray) -> Optional[CubicLaneBoundary]:
    """Inverse of recorder.lane_marker_row."""
    if np.any(np.isnan(row)):
        return None
    return CubicLaneBoundary.from_coefficients(row[:4], float(row[4]))


class DataReplay:
    """Replay recorded relative map data."""

    def __init__(self, recording_file: str):
        """
        Initialize data replay.

        Args:
            recording_file: Path to HDF5 recording file
        """
        self.recording_file = Path(recording_file)
        if not self.recording_file.exists():
            raise FileNotFoundError(f"Recording file not found: {recording_file}")

        self.h5_file = h5py.File(self.recording_file, 'r')
        self._load_metadata()

    def _load_metadata(self):
        """Load recording metadata."""
        if "metadata" in self.h5_file.attrs:
            self.metadata = json.loads(self.h5_file.attrs["metadata"])
        else:
            self.metadata = {}

    def __len__(self) -> int:
        if "frames/frame_ids" not in self.h5_file:
            return 0
        return int(self.h5_file["frames/frame_ids"].shape[0])

    def get_cycles(self) -> Iterator[Tuple[PerceptionOutput, VehiclePose, int]]:
        """
        Get recorded update inputs.

        Yields:
            Tuple of (perception, pose, frame_id)
        """
        if len(self) == 0:
            return

        frame_ids = self.h5_file["frames/frame_ids"][:]
        timestamps = self.h5_file["perception/timestamps"][:]
        has_lane_marker = self.h5_file["perception/has_lane_marker"][:]
        left_rows = self.h5_file["perception/left_lane_marker"][:]
        right_rows = self.h5_file["perception/right_lane_marker"][:]
        pose_timestamps = self.h5_file["vehicle/timestamps"][:]
        poses = self.h5_file["vehicle/pose"][:]

        for i in range(len(frame_ids)):
            lane_marker = None
            if has_lane_marker[i]:
                left = lane_marker_from_row(left_rows[i])
                right = lane_marker_from_row(right_rows[i])
                if left is not None and right is not None:
                    lane_marker = LaneMarkers(left, right)
            perception = PerceptionOutput(timestamp=float(timestamps[i]), lane_marker=lane_marker)
            pose_time = float(pose_timestamps[i])
            pose = VehiclePose(
                x=float(poses[i, 0]),
                y=float(poses[i, 1]),
                heading=float(poses[i, 2]),
                timestamp=None if np.isnan(pose_time) else pose_time,
            )
            yield perception, pose, int(frame_ids[i])

    def get_navigation_paths(self) -> Iterator[Tuple[bool, NavigationPath]]:
        """
        Get recorded navigation paths.

        Yields:
            Tuple of (success, navigation_path)
        """
        if len(self) == 0:
            return

        success = self.h5_file["navigation_path/success"][:]
        num_points = self.h5_file["navigation_path/num_points"][:]
        points = self.h5_file["navigation_path/points"][:]

        offset = 0
        for i in range(len(num_points)):
            count = int(num_points[i])
            rows = points[offset:offset + count]
            offset += count
            path = NavigationPath(tuple(
                PathPoint(x=float(x), y=float(y), s=float(s)) for x, y, s in rows
            ))
            yield bool(success[i]), path

    def close(self):
        """Close HDF5 file."""
        self.h5_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
