"""
Linkage solving for the rear suspension analyzer.

This module contains:
- The rigid triangle solve at top-out (pivot, shock eye, rear axle)
- The per-stroke solver that re-places the triangle for a given shock length
- Front axle and pitch angle helpers shared with the second pass

Infeasible geometry never raises: the triangle falls back to nominal lengths
and individual samples come back flagged as degenerate.
"""

import logging
import math

import numpy as np

from .geometry import (
    point, distance, angle, circle_circle_intersection, safe_asin, radians_to_degrees
)
from .model import RigidTriangle, FirstPassState

logger = logging.getLogger(__name__)


# --------------------------- Fixed frame points ---------------------------
def pivot_at_top_out(geometry):
    return point(geometry.bb_to_pivot_x, geometry.bb_height + geometry.bb_to_pivot_y)


def frame_mount_at_top_out(geometry):
    return point(geometry.shock_frame_mount_x, geometry.bb_height + geometry.shock_frame_mount_y)


def top_out_axle(geometry):
    """
    Rear axle at top-out: swingarm_length from the pivot, wheel radius above
    the ground, behind the pivot. Returns None when the swingarm cannot reach
    the ground line.
    """
    pivot = pivot_at_top_out(geometry)
    rear_radius = geometry.rear_wheel_radius

    vertical = rear_radius - pivot[1]
    horizontal_sq = geometry.swingarm_length ** 2 - vertical ** 2
    if horizontal_sq < 0:
        return None

    horizontal = math.sqrt(horizontal_sq)
    axle1 = point(pivot[0] + horizontal, rear_radius)
    axle2 = point(pivot[0] - horizontal, rear_radius)
    return axle1 if axle1[0] < axle2[0] else axle2


def _angle_at_pivot(pivot_to_eye, pivot_to_axle, eye_to_axle):
    """Law of cosines at the pivot; None when the sides cannot close."""
    if pivot_to_eye <= 0 or pivot_to_axle <= 0:
        return None
    cos_angle = ((pivot_to_eye ** 2 + pivot_to_axle ** 2 - eye_to_axle ** 2)
                 / (2 * pivot_to_eye * pivot_to_axle))
    if not -1.0 <= cos_angle <= 1.0:
        return None
    return math.acos(cos_angle)


def _fallback_triangle(geometry):
    return RigidTriangle(
        pivot_to_eye=geometry.shock_swingarm_mount_distance,
        pivot_to_axle=geometry.swingarm_length,
        eye_to_axle=geometry.swingarm_length,
        correct_eye_index=0,
        axle_angle_is_positive=True,
        is_fallback=True,
    )


# --------------------------- Rigid triangle ---------------------------
def establish_rigid_triangle(geometry):
    """
    Solve the swingarm triangle once at top-out and record which eye
    candidate and which side of the pivot-eye line the axle sits on.

    The eye is the intersection candidate with the greater x and the axle the
    solution with the smaller x (swingarm drawn to the left of the frame).
    """
    pivot = pivot_at_top_out(geometry)
    frame_mount = frame_mount_at_top_out(geometry)

    eye_candidates = circle_circle_intersection(
        pivot, geometry.shock_swingarm_mount_distance,
        frame_mount, geometry.shock_ete,
    )
    if len(eye_candidates) != 2:
        logger.warning("Shock eye unreachable at top-out; using nominal swingarm triangle")
        return _fallback_triangle(geometry)

    correct_eye_index = 0 if eye_candidates[0][0] > eye_candidates[1][0] else 1
    eye = eye_candidates[correct_eye_index]

    axle = top_out_axle(geometry)
    if axle is None:
        logger.warning("Swingarm of %.1f mm cannot reach the ground; using nominal swingarm triangle",
                       geometry.swingarm_length)
        return _fallback_triangle(geometry)

    pivot_to_eye = distance(pivot, eye)
    pivot_to_axle = distance(pivot, axle)
    eye_to_axle = distance(eye, axle)

    angle_at_pivot = _angle_at_pivot(pivot_to_eye, pivot_to_axle, eye_to_axle)
    if angle_at_pivot is None:
        logger.warning("Swingarm triangle does not close at top-out; using nominal swingarm triangle")
        return _fallback_triangle(geometry)

    eye_angle = angle(pivot, eye)
    test_plus = pivot + pivot_to_axle * np.array([math.cos(eye_angle + angle_at_pivot),
                                                  math.sin(eye_angle + angle_at_pivot)])
    test_minus = pivot + pivot_to_axle * np.array([math.cos(eye_angle - angle_at_pivot),
                                                   math.sin(eye_angle - angle_at_pivot)])

    return RigidTriangle(
        pivot_to_eye=pivot_to_eye,
        pivot_to_axle=pivot_to_axle,
        eye_to_axle=eye_to_axle,
        correct_eye_index=correct_eye_index,
        axle_angle_is_positive=distance(test_plus, axle) < distance(test_minus, axle),
    )


# --------------------------- Front end ---------------------------
def calculate_front_axle_position(geometry, bb_position, fork_stroke=0.0):
    """Front axle from head tube and fork, with the fork shortened by fork_stroke."""
    hta = geometry.head_tube_angle_radians
    fork_length = geometry.fork_length - fork_stroke
    along = geometry.head_tube_length + fork_length
    return point(
        bb_position[0] + geometry.reach + along * math.cos(hta) + geometry.fork_offset * math.sin(hta),
        bb_position[1] + geometry.stack - along * math.sin(hta) + geometry.fork_offset * math.cos(hta),
    )


def calculate_pitch_angle(rear_axle, front_axle, geometry):
    """
    Angle in degrees of the line tangent to the underside of both wheels,
    i.e. how far the frame has pitched away from level ground.
    """
    center_dist = distance(rear_axle, front_axle)
    if center_dist == 0:
        return 0.0
    center_angle = angle(rear_axle, front_axle)
    radius_diff = geometry.front_wheel_radius - geometry.rear_wheel_radius
    return radians_to_degrees(center_angle - safe_asin(radius_diff / center_dist))


# --------------------------- Per-stroke solve ---------------------------
def degenerate_state(shock_stroke, geometry, fork_stroke=0.0):
    """Well-formed placeholder for a stroke point the linkage cannot reach."""
    bb = point(0.0, geometry.bb_height)
    return FirstPassState(
        shock_stroke=shock_stroke,
        travel_mm=0.0,
        rear_axle_position=point(0.0, geometry.rear_wheel_radius),
        bb_position=bb,
        pivot_position=pivot_at_top_out(geometry),
        swingarm_eye_position=point(0.0, 0.0),
        front_axle_position=calculate_front_axle_position(geometry, bb),
        shock_length=geometry.shock_ete - shock_stroke,
        pitch_angle_degrees=0.0,
        proportional_fork_stroke=fork_stroke,
        is_degenerate=True,
    )


def calculate_state_at_shock_stroke(shock_stroke, geometry, rigid_triangle, fork_stroke=0.0):
    """
    Place the linkage for a given shock compression and settle the bike on
    flat ground. Returns a FirstPassState; unreachable strokes give a
    degenerate one.
    """
    rear_radius = geometry.rear_wheel_radius
    current_shock_length = geometry.shock_ete - shock_stroke

    pivot = pivot_at_top_out(geometry)
    eye_candidates = circle_circle_intersection(
        pivot, geometry.shock_swingarm_mount_distance,
        frame_mount_at_top_out(geometry), current_shock_length,
    )
    if not eye_candidates:
        logger.debug("No shock eye solution at %.1f mm stroke", shock_stroke)
        return degenerate_state(shock_stroke, geometry, fork_stroke)

    # keep the candidate chosen at top-out so the linkage never flips
    eye = eye_candidates[rigid_triangle.correct_eye_index]

    pivot_to_axle = rigid_triangle.pivot_to_axle
    angle_at_pivot = _angle_at_pivot(distance(pivot, eye), pivot_to_axle, rigid_triangle.eye_to_axle)
    if angle_at_pivot is None:
        logger.debug("Swingarm triangle does not close at %.1f mm stroke", shock_stroke)
        return degenerate_state(shock_stroke, geometry, fork_stroke)

    eye_angle = angle(pivot, eye)
    axle_angle = eye_angle + angle_at_pivot if rigid_triangle.axle_angle_is_positive \
        else eye_angle - angle_at_pivot
    nominal_axle = pivot + pivot_to_axle * np.array([math.cos(axle_angle), math.sin(axle_angle)])

    # drop the whole bike so the rear wheel sits on the ground
    shift = np.array([0.0, nominal_axle[1] - rear_radius])
    rear_axle = nominal_axle - shift
    bb = point(0.0, geometry.bb_height) - shift
    pivot_pos = pivot - shift
    eye_pos = eye - shift
    frame_mount = point(geometry.shock_frame_mount_x, bb[1] + geometry.shock_frame_mount_y)

    front_axle = calculate_front_axle_position(geometry, bb)

    return FirstPassState(
        shock_stroke=shock_stroke,
        travel_mm=abs(geometry.bb_height - bb[1]),
        rear_axle_position=rear_axle,
        bb_position=bb,
        pivot_position=pivot_pos,
        swingarm_eye_position=eye_pos,
        front_axle_position=front_axle,
        shock_length=distance(frame_mount, eye_pos),
        pitch_angle_degrees=calculate_pitch_angle(rear_axle, front_axle, geometry),
        proportional_fork_stroke=fork_stroke,
    )
