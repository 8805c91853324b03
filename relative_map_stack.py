"""
Relative map stack entry point.
Wires perception lane markers and vehicle pose into the navigation lane.
"""

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import Callable, Optional

import yaml

from data.formats.data_format import NavigationPath, PerceptionOutput, VehiclePose
from data.recorder import DataRecorder
from data.replay import DataReplay
from relative_map.navigation_lane import NavigationLane, UpdateResult
from relative_map.path_sampler import DEFAULT_SAMPLING_STEP_M, PathSampler

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)

PoseProvider = Callable[[], VehiclePose]


def resolve_log_level(level) -> int:
    """Map a config level name (or number) to a logging level, ERROR if unknown."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.ERROR


def setup_logging(level: str = "ERROR", log_dir: Optional[Path] = None) -> None:
    """Configure root logging to stderr and tmp/logs/relative_map.log."""
    if log_dir is None:
        log_dir = Path(__file__).parent / 'tmp' / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / 'relative_map.log'

    logging.basicConfig(
        level=resolve_log_level(level),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(str(log_file))
        ]
    )


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file or use defaults."""
    if config_path is None:
        config_path = Path(__file__).parent / "config" / "relative_map_config.yaml"
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    else:
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return {}


def build_navigation_lane(config: dict) -> NavigationLane:
    """Build a NavigationLane from the config dictionary."""
    section = config.get("relative_map", {}) or {}
    step = float(section.get("sampling_step_m", DEFAULT_SAMPLING_STEP_M))
    return NavigationLane(PathSampler(step))


class RelativeMapStack:
    """
    Runs the navigation lane once per perception cycle.

    The pose provider is any callable returning the current VehiclePose; its
    lifecycle belongs to the caller.
    """

    def __init__(self, pose_provider: PoseProvider, config: Optional[dict] = None,
                 recorder: Optional[DataRecorder] = None):
        self.config = config if config is not None else {}
        self.pose_provider = pose_provider
        self.navigation_lane = build_navigation_lane(self.config)
        self.recorder = recorder
        self.frame_count = 0
        self.failed_updates = 0

    @property
    def navigation_path(self) -> NavigationPath:
        return self.navigation_lane.navigation_path

    def process_perception(self, perception: Optional[PerceptionOutput]) -> UpdateResult:
        """Snapshot the pose and update the navigation lane."""
        pose = self.pose_provider()
        result = self.navigation_lane.update(perception, pose)
        if not result:
            self.failed_updates += 1

        if self.recorder is not None:
            if perception is None:
                timestamp = pose.timestamp if pose.timestamp is not None else math.nan
                perception = PerceptionOutput(timestamp=timestamp)
            self.recorder.record_cycle(
                frame_id=self.frame_count,
                perception=perception,
                pose=pose,
                success=result.ok,
                navigation_path=self.navigation_lane.navigation_path if result else NavigationPath.empty(),
            )
        self.frame_count += 1
        return result

    def close(self):
        if self.recorder is not None:
            self.recorder.close()
            self.recorder = None


def replay_recording(recording_file: str, config: dict,
                     recorder: Optional[DataRecorder] = None) -> RelativeMapStack:
    """Run every recorded cycle through a fresh stack."""
    current_pose = {"pose": VehiclePose(0.0, 0.0, 0.0)}
    stack = RelativeMapStack(lambda: current_pose["pose"], config=config, recorder=recorder)

    with DataReplay(recording_file) as replay:
        for perception, pose, frame_id in replay.get_cycles():
            current_pose["pose"] = pose
            result = stack.process_perception(perception)
            if result:
                path = result.navigation_path
                logger.info(f"Frame {frame_id}: {len(path)} points, s_end={path.length:.2f}")
            else:
                logger.info(f"Frame {frame_id}: {result.error.value}")
    return stack


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Relative map navigation lane")
    parser.add_argument('--config', type=str, default=None, help='Path to YAML config')
    parser.add_argument('--replay', type=str, required=True, help='HDF5 recording to replay')
    parser.add_argument('--record', action='store_true', help='Record replayed cycles')
    parser.add_argument('--output-dir', type=str, default=None, help='Recording output directory')
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging((config.get("relative_map") or {}).get("log_level", "ERROR"))

    recording_cfg = config.get("recording", {}) or {}
    recorder = None
    if args.record or recording_cfg.get("enabled", False):
        output_dir = args.output_dir or recording_cfg.get("output_dir", "data/recordings")
        recorder = DataRecorder(output_dir, recording_name=f"{Path(args.replay).stem}_relative_map")

    try:
        stack = replay_recording(args.replay, config, recorder=recorder)
    finally:
        if recorder is not None:
            recorder.close()

    print(f"Processed {stack.frame_count} frames, {stack.failed_updates} without lane markers")
    return 0


if __name__ == "__main__":
    sys.exit(main())
