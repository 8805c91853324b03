"""
Data recorder for relative map update cycles.
Records perception lane markers, pose snapshots and the resulting navigation paths.
"""

import h5py
import numpy as np
import json
import logging
from pathlib import Path
from typing import Optional, List
from datetime import datetime

from .formats.data_format import (
    PerceptionOutput, VehiclePose, NavigationPath, RecordingFrame
)
from relative_map.lane_model import CubicLaneBoundary

logger = logging.getLogger(__name__)

LANE_MARKER_FIELDS = 5  # c0, c1, c2, c3, view_range


def lane_marker_row(marker: Optional[CubicLaneBoundary]) -> np.ndarray:
    """Flatten a lane marker into (c0, c1, c2, c3, view_range); NaN when absent."""
    if marker is None:
        return np.full(LANE_MARKER_FIELDS, np.nan, dtype=np.float64)
    return np.array([*marker.coefficients, marker.view_range], dtype=np.float64)


class DataRecorder:
    """Records relative map cycles to HDF5 format."""

    def __init__(self, output_dir: str, recording_name: Optional[str] = None,
                 flush_every: int = 30):
        """
        Initialize data recorder.

        Args:
            output_dir: Directory to save recordings
            recording_name: Name for this recording (default: timestamp)
            flush_every: Number of buffered frames that triggers a write
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        if recording_name is None:
            recording_name = f"recording_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

        self.recording_name = recording_name
        self.output_file = self.output_dir / f"{recording_name}.h5"

        self.h5_file = h5py.File(self.output_file, 'w')
        self._create_datasets()

        self.frame_buffer: List[RecordingFrame] = []
        self.frame_count = 0
        self.flush_every = max(1, int(flush_every))

        self.metadata = {
            "recording_start_time": datetime.now().isoformat(),
            "recording_name": recording_name,
        }

    def _create_datasets(self):
        """Create HDF5 datasets for data storage."""
        max_shape = (None,)

        self.h5_file.create_dataset("frames/frame_ids", shape=(0,), maxshape=max_shape, dtype=np.int32)

        self.h5_file.create_dataset("perception/timestamps", shape=(0,), maxshape=max_shape, dtype=np.float64)
        self.h5_file.create_dataset("perception/has_lane_marker", shape=(0,), maxshape=max_shape, dtype=np.uint8)
        for side in ("left", "right"):
            self.h5_file.create_dataset(
                f"perception/{side}_lane_marker",
                shape=(0, LANE_MARKER_FIELDS),
                maxshape=(None, LANE_MARKER_FIELDS),
                dtype=np.float64,
            )

        self.h5_file.create_dataset("vehicle/timestamps", shape=(0,), maxshape=max_shape, dtype=np.float64)
        self.h5_file.create_dataset("vehicle/pose", shape=(0, 3), maxshape=(None, 3), dtype=np.float64)

        self.h5_file.create_dataset("navigation_path/success", shape=(0,), maxshape=max_shape, dtype=np.uint8)
        self.h5_file.create_dataset("navigation_path/num_points", shape=(0,), maxshape=max_shape, dtype=np.int32)
        # Points of all frames back to back; num_points gives the split
        self.h5_file.create_dataset("navigation_path/points", shape=(0, 3), maxshape=(None, 3), dtype=np.float64)

    def record_frame(self, frame: RecordingFrame):
        """Buffer one update cycle; writes when the buffer is full."""
        self.frame_buffer.append(frame)
        self.frame_count += 1
        if len(self.frame_buffer) >= self.flush_every:
            self.flush()

    def record_cycle(self, frame_id: int, perception: PerceptionOutput, pose: VehiclePose,
                     success: bool, navigation_path: NavigationPath):
        """Convenience wrapper around record_frame."""
        self.record_frame(RecordingFrame(
            timestamp=perception.timestamp,
            frame_id=frame_id,
            perception=perception,
            pose=pose,
            success=success,
            navigation_path=navigation_path,
        ))

    def flush(self):
        """Write buffered frames to disk."""
        if not self.frame_buffer:
            return
        frames = self.frame_buffer
        self.frame_buffer = []
        self._write_frames(frames)
        self.h5_file.flush()

    @staticmethod
    def _append(dataset, values: np.ndarray):
        if len(values) == 0:
            return
        current_size = dataset.shape[0]
        dataset.resize(current_size + len(values), axis=0)
        dataset[current_size:] = values

    def _write_frames(self, frames: List[RecordingFrame]):
        self._append(self.h5_file["frames/frame_ids"],
                     np.array([f.frame_id for f in frames], dtype=np.int32))

        self._append(self.h5_file["perception/timestamps"],
                     np.array([f.perception.timestamp for f in frames], dtype=np.float64))
        self._append(self.h5_file["perception/has_lane_marker"],
                     np.array([f.perception.has_lane_marker() for f in frames], dtype=np.uint8))
        left_rows = []
        right_rows = []
        for f in frames:
            lane_marker = f.perception.lane_marker
            left_rows.append(lane_marker_row(lane_marker.left_lane_marker if lane_marker else None))
            right_rows.append(lane_marker_row(lane_marker.right_lane_marker if lane_marker else None))
        self._append(self.h5_file["perception/left_lane_marker"], np.stack(left_rows))
        self._append(self.h5_file["perception/right_lane_marker"], np.stack(right_rows))

        self._append(self.h5_file["vehicle/timestamps"],
                     np.array([f.pose.timestamp if f.pose.timestamp is not None else np.nan
                               for f in frames], dtype=np.float64))
        self._append(self.h5_file["vehicle/pose"],
                     np.array([[f.pose.x, f.pose.y, f.pose.heading] for f in frames], dtype=np.float64))

        self._append(self.h5_file["navigation_path/success"],
                     np.array([f.success for f in frames], dtype=np.uint8))
        self._append(self.h5_file["navigation_path/num_points"],
                     np.array([len(f.navigation_path) for f in frames], dtype=np.int32))
        points = [f.navigation_path.as_array() for f in frames]
        self._append(self.h5_file["navigation_path/points"], np.concatenate(points, axis=0))

    def close(self):
        """Close the recording file."""
        if not self.h5_file.id.valid:
            return
        try:
            self.flush()
        except Exception as e:
            logger.error(f"Error during final flush: {e}", exc_info=True)

        self.metadata["recording_end_time"] = datetime.now().isoformat()
        self.metadata["total_frames"] = self.frame_count

        try:
            self.h5_file.attrs["metadata"] = json.dumps(self.metadata, indent=2)
        except Exception as e:
            logger.warning(f"Failed to save metadata: {e}")

        self.h5_file.close()
        logger.info(f"Recording saved to: {self.output_file}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
