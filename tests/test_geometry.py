"""
Tests for the planar geometry kernel.
"""

import math

import numpy as np
import pytest

from mtb_kinematics.geometry import (
    point, distance, angle, rotate, safe_asin, line_intersection,
    line_intersection_with_vertical, circle_circle_intersection, sprocket_radius,
    calculate_chain_length, tangent_points, transform_point_by_reference_line
)


def test_distance():
    assert distance((0, 0), (3, 4)) == 5
    assert distance((5, 5), (5, 5)) == 0
    assert distance((-3, -4), (0, 0)) == 5
    assert distance((0, 0), (1000, 1000)) == pytest.approx(1414.21, abs=0.01)


@pytest.mark.parametrize("to, expected", [
    ((1, 0), 0.0),
    ((0, 1), math.pi / 2),
    ((-1, 0), math.pi),
    ((0, -1), -math.pi / 2),
    ((1, 1), math.pi / 4),
])
def test_angle(to, expected):
    assert angle((0, 0), to) == pytest.approx(expected)


def test_angle_same_point_is_zero():
    assert angle((5, 5), (5, 5)) == 0


def test_rotate_about_pivot():
    rotated = rotate((2, 1), (1, 1), math.pi / 2)
    assert np.allclose(rotated, [1, 2])


def test_safe_asin_clamps():
    assert safe_asin(2.0) == pytest.approx(math.pi / 2)
    assert safe_asin(-5.0) == pytest.approx(-math.pi / 2)
    assert safe_asin(0.5) == pytest.approx(math.asin(0.5))


# --------------------------- Lines ---------------------------
def test_line_intersection_perpendicular():
    result = line_intersection((0, 5), (10, 5), (5, 0), (5, 10))
    assert np.allclose(result, [5, 5])


def test_line_intersection_parallel_is_none():
    assert line_intersection((0, 0), (10, 0), (0, 5), (10, 5)) is None


def test_line_intersection_is_not_clipped_to_segments():
    # y = x and y = 10 - x meet at (5, 5), outside both short segments
    result = line_intersection((0, 0), (1, 1), (10, 0), (9, 1))
    assert np.allclose(result, [5, 5])


def test_line_intersection_with_vertical():
    assert np.allclose(line_intersection_with_vertical((0, 0), (2, 2), 5), [5, 5])
    assert np.allclose(line_intersection_with_vertical((0, 1), (4, 3), -2), [-2, 0])
    assert line_intersection_with_vertical((3, 0), (3, 10), 5) is None


# --------------------------- Circles ---------------------------
def test_circle_intersection_two_points():
    points = circle_circle_intersection((0, 0), 5, (8, 0), 5)
    assert len(points) == 2
    assert np.allclose(points[0], [4, -3])
    assert np.allclose(points[1], [4, 3])
    for p in points:
        assert distance(p, (0, 0)) == pytest.approx(5)
        assert distance(p, (8, 0)) == pytest.approx(5)


def test_circle_intersection_same_center_is_empty():
    assert circle_circle_intersection((1, 1), 5, (1, 1), 5) == []


def test_circle_intersection_contained_is_empty():
    assert circle_circle_intersection((0, 0), 10, (1, 0), 2) == []


def test_circle_intersection_disjoint_is_empty():
    assert circle_circle_intersection((0, 0), 3, (10, 0), 3) == []


def test_circle_intersection_tangent_gives_coincident_points():
    points = circle_circle_intersection((0, 0), 2, (4, 0), 2)
    assert len(points) == 2
    assert np.allclose(points[0], [2, 0])
    assert np.allclose(points[1], [2, 0])


# --------------------------- Drivetrain ---------------------------
def test_sprocket_radius():
    assert sprocket_radius(32) == pytest.approx(32 * 12.7 / (2 * math.pi))
    assert sprocket_radius(32) == pytest.approx(64.68, abs=0.01)


def test_chain_length_equal_sprockets():
    length = calculate_chain_length((0, 0), (400, 0), 10, 10)
    assert length == pytest.approx(800 + 20 * math.pi)


def test_chain_length_grows_with_center_distance():
    short = calculate_chain_length((0, 0), (400, 0), 64, 56)
    long = calculate_chain_length((0, 0), (410, 0), 64, 56)
    assert long - short == pytest.approx(20, abs=0.5)


def test_chain_length_nested_returns_center_distance():
    assert calculate_chain_length((0, 0), (1, 0), 10, 2) == pytest.approx(1)


def test_tangent_points_upper_run():
    start, end = tangent_points((0, 0), 10, (-100, 0), 10)
    assert np.allclose(start, [0, 10])
    assert np.allclose(end, [-100, 10])


def test_tangent_points_touch_each_circle():
    c1, c2 = point(0, 0), point(-400, 40)
    start, end = tangent_points(c1, 64, c2, 56)
    assert distance(start, c1) == pytest.approx(64)
    assert distance(end, c2) == pytest.approx(56)
    # the tangent is perpendicular to both radii
    direction = end - start
    assert np.dot(direction, start - c1) == pytest.approx(0, abs=1e-6)
    assert np.dot(direction, end - c2) == pytest.approx(0, abs=1e-6)


def test_tangent_points_clamp_overlapping_circles():
    start, end = tangent_points((0, 0), 50, (1, 0), 1)
    assert np.all(np.isfinite(start))
    assert np.all(np.isfinite(end))


# --------------------------- Frames ---------------------------
def test_transform_point_by_reference_line_rotates():
    result = transform_point_by_reference_line((0, 0), (1, 0), (0, 1), (5, 5), (5, 6))
    assert np.allclose(result, [4, 5])


def test_transform_point_by_reference_line_ignores_length():
    short = transform_point_by_reference_line((0, 0), (1, 0), (3, 2), (5, 5), (5, 6))
    long = transform_point_by_reference_line((0, 0), (1, 0), (3, 2), (5, 5), (5, 500))
    assert np.allclose(short, long)
    assert distance(short, (5, 5)) == pytest.approx(distance((3, 2), (0, 0)))


def test_transform_point_identity():
    result = transform_point_by_reference_line((0, 0), (1, 1), (3, -2), (0, 0), (2, 2))
    assert np.allclose(result, [3, -2])
