"""
Frame conversion between the vehicle frame and the reference frame.
"""

from typing import Tuple

import numpy as np


def rotate_axis(theta: float, x0: float, y0: float) -> Tuple[float, float]:
    """
    Express a point in axes rotated by theta.

    Args:
        theta: Axis rotation (radians, counter-clockwise)
        x0: Point x in the original axes
        y0: Point y in the original axes

    Returns:
        (x1, y1) in the rotated axes
    """
    cos_theta = np.cos(theta)
    sin_theta = np.sin(theta)
    x1 = x0 * cos_theta + y0 * sin_theta
    y1 = -x0 * sin_theta + y0 * cos_theta
    return float(x1), float(y1)


def to_reference_frame(heading: float, local_x: float, local_y: float,
                       origin_x: float, origin_y: float) -> Tuple[float, float]:
    """
    Convert a vehicle-frame point into the reference frame.

    Vehicle axes are rotated by heading relative to the reference axes, so
    rotating the axes back by -heading and shifting by the vehicle position
    gives the reference-frame point.

    Args:
        heading: Vehicle heading in the reference frame (radians)
        local_x: Longitudinal coordinate in the vehicle frame (meters)
        local_y: Lateral coordinate in the vehicle frame (meters)
        origin_x: Vehicle x in the reference frame
        origin_y: Vehicle y in the reference frame

    Returns:
        (x, y) in the reference frame
    """
    x, y = rotate_axis(-heading, local_x, local_y)
    return x + float(origin_x), y + float(origin_y)
