"""
Cubic lane marker model.
Lane boundaries reported by perception in the vehicle frame.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


def evaluate_cubic_polynomial(c0: float, c1: float, c2: float, c3: float,
                              z: ArrayLike) -> ArrayLike:
    """
    Evaluate c3*z^3 + c2*z^2 + c1*z + c0.

    Args:
        c0: Lateral offset at z = 0 (meters)
        c1: Heading angle term
        c2: Curvature term
        c3: Curvature derivative term
        z: Longitudinal distance ahead of the vehicle (meters), scalar or array

    Returns:
        Lateral offset of the curve at z
    """
    if isinstance(z, np.ndarray):
        return np.polyval([c3, c2, c1, c0], z)
    return c3 * z ** 3 + c2 * z ** 2 + c1 * z + c0


@dataclass(frozen=True)
class CubicLaneBoundary:
    """One lane marker as a cubic in the vehicle frame."""
    c0_position: float
    c1_heading_angle: float
    c2_curvature: float
    c3_curvature_derivative: float
    view_range: float  # meters, model is valid for 0 <= z <= view_range

    def __post_init__(self) -> None:
        for name, value in zip(("c0_position", "c1_heading_angle", "c2_curvature",
                                "c3_curvature_derivative"), self.coefficients):
            if not math.isfinite(float(value)):
                raise ValueError(f"{name} must be finite, got {value}")
        view_range = float(self.view_range)
        if not math.isfinite(view_range) or view_range < 0.0:
            raise ValueError(f"view_range must be finite and >= 0, got {self.view_range}")

    @classmethod
    def from_coefficients(cls, coefficients: Sequence[float], view_range: float) -> "CubicLaneBoundary":
        """Build from [c0, c1, c2, c3] (ascending order)."""
        if len(coefficients) != 4:
            raise ValueError(f"Expected 4 coefficients, got {len(coefficients)}")
        c0, c1, c2, c3 = (float(c) for c in coefficients)
        return cls(c0, c1, c2, c3, float(view_range))

    @property
    def coefficients(self) -> tuple:
        return (self.c0_position, self.c1_heading_angle,
                self.c2_curvature, self.c3_curvature_derivative)

    def evaluate(self, z: ArrayLike) -> ArrayLike:
        """Lateral offset of this marker at longitudinal distance z."""
        return evaluate_cubic_polynomial(
            self.c0_position, self.c1_heading_angle,
            self.c2_curvature, self.c3_curvature_derivative, z,
        )


@dataclass(frozen=True)
class LaneMarkers:
    """Left and right markers of the current lane."""
    left_lane_marker: CubicLaneBoundary
    right_lane_marker: CubicLaneBoundary

    def __post_init__(self) -> None:
        if self.left_lane_marker is None or self.right_lane_marker is None:
            raise ValueError("LaneMarkers needs both a left and a right marker")

    @property
    def view_range(self) -> float:
        """Range over which both markers are valid."""
        return min(self.left_lane_marker.view_range, self.right_lane_marker.view_range)
