"""
Tests for vehicle frame to reference frame conversion.
"""

import math

import pytest

from relative_map.geometry import rotate_axis, to_reference_frame


@pytest.mark.parametrize("heading", [0.0, 0.3, -1.2, math.pi / 2, math.pi, 7.5])
def test_vehicle_origin_maps_to_pose(heading):
    x, y = to_reference_frame(heading, 0.0, 0.0, 12.5, -4.0)
    assert x == pytest.approx(12.5)
    assert y == pytest.approx(-4.0)


def test_zero_heading_is_pure_translation():
    assert to_reference_frame(0.0, 3.0, -1.5, 10.0, 20.0) == pytest.approx((13.0, 18.5))


def test_forward_point_follows_heading():
    """A point straight ahead lands along the heading direction."""
    heading = math.pi / 2
    x, y = to_reference_frame(heading, 5.0, 0.0, 0.0, 0.0)
    assert x == pytest.approx(0.0, abs=1e-12)
    assert y == pytest.approx(5.0)


def test_lateral_point_rotates_with_heading():
    heading = math.pi / 2
    x, y = to_reference_frame(heading, 0.0, 2.0, 1.0, 1.0)
    assert x == pytest.approx(-1.0)
    assert y == pytest.approx(1.0, abs=1e-12)


def test_rotation_preserves_distance():
    x, y = to_reference_frame(0.77, 3.0, 4.0, 0.0, 0.0)
    assert math.hypot(x, y) == pytest.approx(5.0)


def test_rotate_axis_inverse():
    x1, y1 = rotate_axis(0.4, 2.0, -1.0)
    x0, y0 = rotate_axis(-0.4, x1, y1)
    assert (x0, y0) == pytest.approx((2.0, -1.0))


def test_rotate_axis_quarter_turn():
    # Axes rotated by +90 deg: a point on the old x axis sits on the new -y axis
    x1, y1 = rotate_axis(math.pi / 2, 1.0, 0.0)
    assert x1 == pytest.approx(0.0, abs=1e-12)
    assert y1 == pytest.approx(-1.0)
