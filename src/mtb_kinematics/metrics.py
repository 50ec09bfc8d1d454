"""
Second-pass metrics for the rear suspension analyzer.

This module contains functions for:
- Refining the front axle with proportional fork compression
- Leverage ratio and wheel rate from the solved travel curve
- Anti-squat and anti-rise from the instant force centre
- Trail, chain growth and pedal kickback
- Pitch rotation, idler and centre-of-mass helpers used by renderers

Everything here works on the full ordered first-pass sequence, since the
leverage ratio needs neighbouring samples.
"""

import logging
import math
from dataclasses import replace

import numpy as np

from .geometry import (
    point, sprocket_radius, tangent_points, line_intersection,
    line_intersection_with_vertical, transform_point_by_reference_line,
    calculate_chain_length, degrees_to_radians, radians_to_degrees
)
from .kinematics import (
    calculate_front_axle_position, calculate_pitch_angle, pivot_at_top_out, top_out_axle
)
from .model import IdlerType, KinematicState

logger = logging.getLogger(__name__)


# --------------------------- Boundary helpers ---------------------------
def get_apply_pitch_rotation(rear_axle, pitch_angle_degrees):
    """
    Return a function that maps a world point into the pitch-corrected frame:
    a rotation by -pitch about the rear axle.
    """
    center = np.array(rear_axle, dtype=float)
    pitch = degrees_to_radians(pitch_angle_degrees)
    c, s = math.cos(-pitch), math.sin(-pitch)

    def apply(p):
        dx, dy = np.asarray(p, dtype=float) - center
        return center + np.array([dx * c - dy * s, dx * s + dy * c])

    return apply


def get_idler_position(state, geometry):
    """World position of the idler for this state, or None without one."""
    if geometry.idler_type == IdlerType.NONE:
        return None

    if geometry.idler_type == IdlerType.FRAME_MOUNTED:
        return state.bb_position + point(geometry.idler_x, geometry.idler_y)

    # swingarm mounted: moves rigidly with the pivot -> axle line
    top_out_pivot = pivot_at_top_out(geometry)
    top_out_idler = point(geometry.idler_x, geometry.bb_height + geometry.idler_y)
    reference_axle = top_out_axle(geometry)
    if reference_axle is None:
        return state.pivot_position + (top_out_idler - top_out_pivot)

    return transform_point_by_reference_line(
        top_out_pivot, reference_axle, top_out_idler,
        state.pivot_position, state.rear_axle_position,
    )


def get_front_sprocket_circle(state, geometry):
    """(centre, radius) of the sprocket the top chain run leaves towards the cog."""
    idler = get_idler_position(state, geometry)
    if idler is not None:
        return idler, sprocket_radius(geometry.idler_teeth)
    center = state.bb_position + point(geometry.chainring_offset_x, geometry.chainring_offset_y)
    return center, sprocket_radius(geometry.chainring_teeth)


def get_rotated_centre_of_mass(state, geometry, apply_pitch_rotation):
    return apply_pitch_rotation(state.bb_position + point(geometry.com_x, geometry.com_y))


# --------------------------- Per-state metrics ---------------------------
def calculate_anti_squat(state, geometry):
    """
    Anti-squat percentage. The chain line and the pivot -> axle line meet at
    the instant force centre; the line from the rear contact patch through it
    is read off at the front axle and compared with the centre-of-mass height.
    """
    apply = get_apply_pitch_rotation(state.rear_axle_position, state.pitch_angle_degrees)

    sprocket_center, sprocket_r = get_front_sprocket_circle(state, geometry)
    rear_axle = apply(state.rear_axle_position)
    chain_start, chain_end = tangent_points(
        apply(sprocket_center), sprocket_r,
        rear_axle, sprocket_radius(geometry.cog_teeth),
    )

    pivot = apply(state.pivot_position)
    front_axle = apply(state.front_axle_position)

    force_center = line_intersection(chain_start, chain_end, pivot, rear_axle)
    if force_center is None:
        logger.warning("No instant force centre at %.1f mm stroke; anti-squat set to 0",
                       state.shock_stroke)
        return 0.0

    contact_patch = point(rear_axle[0], 0.0)
    projected = line_intersection_with_vertical(contact_patch, force_center, front_axle[0])
    if projected is None:
        logger.warning("Anti-squat line is vertical at %.1f mm stroke; anti-squat set to 0",
                       state.shock_stroke)
        return 0.0

    return _percent_of_com_height(projected[1], state, geometry, apply, "anti-squat")


def calculate_anti_rise(state, geometry):
    """Anti-rise percentage from the braking line rear axle -> main pivot."""
    apply = get_apply_pitch_rotation(state.rear_axle_position, state.pitch_angle_degrees)

    pivot = apply(state.pivot_position)
    rear_axle = apply(state.rear_axle_position)
    front_axle = apply(state.front_axle_position)

    projected = line_intersection_with_vertical(rear_axle, pivot, front_axle[0])
    if projected is None:
        logger.warning("Anti-rise line is vertical at %.1f mm stroke; anti-rise set to 0",
                       state.shock_stroke)
        return 0.0

    return _percent_of_com_height(projected[1], state, geometry, apply, "anti-rise")


def _percent_of_com_height(height, state, geometry, apply, label):
    com_height = get_rotated_centre_of_mass(state, geometry, apply)[1]
    if com_height <= 0:
        logger.warning("Centre of mass at or below ground; %s set to 0", label)
        return 0.0
    return float(height / com_height * 100.0)


def calculate_trail(state, geometry):
    """Perpendicular distance from the front contact patch to the steering axis."""
    apply = get_apply_pitch_rotation(state.rear_axle_position, state.pitch_angle_degrees)

    front_axle = apply(state.front_axle_position)
    contact_patch = point(front_axle[0], front_axle[1] - geometry.front_wheel_radius)

    ht_top = apply(geometry.head_tube_top(state.bb_position))
    ht_bottom = apply(geometry.head_tube_bottom(state.bb_position))

    axis = ht_bottom - ht_top
    length = math.hypot(axis[0], axis[1])
    if length == 0:
        return 0.0
    offset = contact_patch - ht_top
    return float(abs(axis[1] * offset[0] - axis[0] * offset[1]) / length)


def chain_path_length(state, geometry):
    """
    Drive-side chain length from chainring to cog, via the idler when one is
    fitted: half of each closed-loop length between consecutive sprockets.
    """
    chainring = (state.bb_position + point(geometry.chainring_offset_x, geometry.chainring_offset_y),
                 sprocket_radius(geometry.chainring_teeth))
    cog = (state.rear_axle_position, sprocket_radius(geometry.cog_teeth))

    path = [chainring]
    idler = get_idler_position(state, geometry)
    if idler is not None:
        path.append((idler, sprocket_radius(geometry.idler_teeth)))
    path.append(cog)

    return sum(
        calculate_chain_length(c1, c2, r1, r2) / 2
        for (c1, r1), (c2, r2) in zip(path, path[1:])
    )


def leverage_ratios(travel, step_size):
    """d(wheel travel)/d(shock stroke): central differences inside, one-sided at the ends."""
    travel = np.asarray(travel, dtype=float)
    if travel.size < 2 or step_size <= 0:
        return np.ones(travel.size)
    return np.gradient(travel, step_size)


def solvable_leverage_ratios(travel, solvable, step_size):
    """
    Leverage ratios taken separately over each run of consecutive solvable
    samples, so a run ends in a one-sided difference where it meets an
    unsolvable sample. Unsolvable samples get 0.
    """
    travel = np.asarray(travel, dtype=float)
    ratios = np.zeros(travel.size)

    start = None
    for i, ok in enumerate(list(solvable) + [False]):
        if ok and start is None:
            start = i
        elif not ok and start is not None:
            ratios[start:i] = leverage_ratios(travel[start:i], step_size)
            start = None

    return ratios


def wheel_rate(spring_rate, leverage_ratio):
    if leverage_ratio == 0:
        return 0.0
    return spring_rate / (leverage_ratio * leverage_ratio)


# --------------------------- Second pass ---------------------------
def refine_state(first, geometry):
    """Apply fork compression to a first-pass state and re-derive the pitch."""
    # degenerate placeholders keep the fork fully extended
    if first.is_degenerate:
        fork_compression = 0.0
        front_axle = first.front_axle_position
        pitch = first.pitch_angle_degrees
    else:
        fork_compression = first.proportional_fork_stroke
        front_axle = calculate_front_axle_position(geometry, first.bb_position, fork_compression)
        pitch = calculate_pitch_angle(first.rear_axle_position, front_axle, geometry)

    return KinematicState(
        shock_stroke=first.shock_stroke,
        travel_mm=first.travel_mm,
        rear_axle_position=first.rear_axle_position,
        bb_position=first.bb_position,
        pivot_position=first.pivot_position,
        swingarm_eye_position=first.swingarm_eye_position,
        front_axle_position=front_axle,
        shock_length=first.shock_length,
        pitch_angle_degrees=pitch,
        fork_compression=fork_compression,
        is_degenerate=first.is_degenerate,
    )


def derive_states(first_pass, geometry, step_size):
    """
    Turn the ordered first-pass sequence into complete KinematicStates.
    Degenerate samples keep zero-valued metrics, leverage ratio included.
    """
    refined = [refine_state(first, geometry) for first in first_pass]
    if not refined:
        return []

    ratios = solvable_leverage_ratios([s.travel_mm for s in refined],
                                      [not s.is_degenerate for s in refined], step_size)
    chainring_radius = sprocket_radius(geometry.chainring_teeth)

    chain_lengths = [None if s.is_degenerate else chain_path_length(s, geometry) for s in refined]
    reference_length = next((length for length in chain_lengths if length is not None), None)

    states = []
    previous_total = 0.0
    for state, ratio, length in zip(refined, ratios, chain_lengths):
        ratio = float(ratio)
        values = {
            "leverage_ratio": ratio,
            "wheel_rate": wheel_rate(geometry.shock_spring_rate, ratio),
        }

        if not state.is_degenerate:
            total_growth = length - reference_length
            kickback = radians_to_degrees(total_growth / chainring_radius) if chainring_radius > 0 else 0.0
            values.update(
                anti_squat=calculate_anti_squat(state, geometry),
                anti_rise=calculate_anti_rise(state, geometry),
                trail=calculate_trail(state, geometry),
                total_chain_growth=total_growth,
                chain_growth=total_growth - previous_total,
                pedal_kickback=kickback,
                crank_angle=-kickback,
            )
            previous_total = total_growth

        states.append(replace(state, **values))

    return states
