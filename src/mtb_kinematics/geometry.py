"""
Planar geometry kernel for the rear suspension analyzer.

This module contains:
- Geometric constants (chain pitch, sampling step, tolerances)
- 2D point helpers (distance, angle, rotation)
- Line and circle intersection routines
- Sprocket and chain-wrap calculations
- Reference-frame transforms for swingarm-mounted parts

Points are plain 2-element numpy arrays in millimetres, x forward and y up.
Every function here is pure and never raises on degenerate input.
"""

import math

import numpy as np

# --------------------------- Geometry Constants (mm) ---------------------------
CHAIN_PITCH = 12.7          # standard 1/2" chain pitch
STEP_SIZE = 0.5             # shock stroke between samples
PARALLEL_TOLERANCE = 1e-4   # |determinant| below this means parallel lines


# --------------------------- Point helpers ---------------------------
def point(x, y):
    """Build a 2D point."""
    return np.array([float(x), float(y)])


def as_point(p):
    return np.asarray(p, dtype=float)


def degrees_to_radians(degrees):
    return degrees * math.pi / 180.0


def radians_to_degrees(radians):
    return radians * 180.0 / math.pi


def safe_asin(value):
    """asin with its argument clamped to [-1, 1] so it never yields NaN."""
    return math.asin(max(-1.0, min(1.0, value)))


def distance(a, b):
    a, b = as_point(a), as_point(b)
    return float(math.hypot(b[0] - a[0], b[1] - a[1]))


def angle(a, b):
    """Direction from a to b in radians, atan2(dy, dx)."""
    a, b = as_point(a), as_point(b)
    return float(math.atan2(b[1] - a[1], b[0] - a[0]))


def rotate(p, pivot, angle_rad):
    """Rotate p about pivot by angle_rad (counter-clockwise positive)."""
    p, pivot = as_point(p), as_point(pivot)
    dx, dy = p - pivot
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    return pivot + np.array([dx * c - dy * s, dx * s + dy * c])


# --------------------------- Lines ---------------------------
def line_intersection(p1, p2, p3, p4):
    """
    Intersection of the infinite line p1-p2 with the infinite line p3-p4.
    Returns None when the lines are parallel. Segments are not clipped, so
    callers that care about segment bounds must check them.
    """
    x1, y1 = as_point(p1)
    x2, y2 = as_point(p2)
    x3, y3 = as_point(p3)
    x4, y4 = as_point(p4)

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < PARALLEL_TOLERANCE:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    return np.array([x1 + t * (x2 - x1), y1 + t * (y2 - y1)])


def line_intersection_with_vertical(p1, p2, x):
    """Point on the line through p1 and p2 at abscissa x, None if the line is vertical."""
    p1, p2 = as_point(p1), as_point(p2)
    dx = p2[0] - p1[0]
    if abs(dx) < PARALLEL_TOLERANCE:
        return None
    slope = (p2[1] - p1[1]) / dx
    return np.array([float(x), p1[1] + slope * (x - p1[0])])


# --------------------------- Circles ---------------------------
def circle_circle_intersection(center1, radius1, center2, radius2):
    """
    Intersection points of two circles.

    Returns [] when the circles are disjoint, one contains the other, or the
    centres coincide. Otherwise returns both points, ordered by the sign of the
    perpendicular offset; tangent circles give two coincident points. The
    caller decides which one it wants.
    """
    c1, c2 = as_point(center1), as_point(center2)
    d = distance(c1, c2)

    if d > radius1 + radius2 or d < abs(radius1 - radius2) or d == 0:
        return []

    a = (radius1 * radius1 - radius2 * radius2 + d * d) / (2 * d)
    h = math.sqrt(max(radius1 * radius1 - a * a, 0.0))

    base = c1 + (a / d) * (c2 - c1)
    offset = (h / d) * np.array([c2[1] - c1[1], c1[0] - c2[0]])

    return [base + offset, base - offset]


def sprocket_radius(teeth):
    """Effective pitch radius of a sprocket: teeth * pitch / 2pi."""
    return teeth * CHAIN_PITCH / (2 * math.pi)


def calculate_chain_length(center1, center2, radius1, radius2):
    """
    Length of a closed chain wrapped around two sprockets: two tangent spans
    plus the wrap arc on each sprocket. When one circle sits inside the other
    the raw centre distance is returned.
    """
    center_dist = distance(center1, center2)

    if center_dist < abs(radius1 - radius2):
        return center_dist

    radius_diff = radius1 - radius2
    tangent_length = math.sqrt(max(center_dist * center_dist - radius_diff * radius_diff, 0.0))

    alpha = safe_asin(radius_diff / center_dist) if center_dist > 0 else 0.0
    wrap1 = math.pi + alpha
    wrap2 = math.pi - alpha

    return 2 * tangent_length + radius1 * wrap1 + radius2 * wrap2


def tangent_points(center1, radius1, center2, radius2):
    """
    Contact points (start, end) of the upper common tangent between two
    circles, used for the chain line.
    """
    c1, c2 = as_point(center1), as_point(center2)
    dx, dy = c2 - c1
    dist = math.hypot(dx, dy)
    base_angle = math.atan2(dy, dx)

    ratio = (radius1 - radius2) / dist if dist > 0 else 0.0
    upper = base_angle + safe_asin(ratio)

    normal = np.array([math.sin(upper), -math.cos(upper)])
    return c1 + radius1 * normal, c2 + radius2 * normal


# --------------------------- Frames ---------------------------
def transform_point_by_reference_line(p0, a0, i0, p1, a1):
    """
    Carry point i0, defined relative to the segment p0 -> a0, onto the segment
    p1 -> a1. The offset from p0 is rotated by the change in segment direction
    and re-anchored at p1; segment length is ignored.
    """
    delta = angle(p1, a1) - angle(p0, a0)
    offset = as_point(i0) - as_point(p0)
    return rotate(as_point(p1) + offset, p1, delta)
