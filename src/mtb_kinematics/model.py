"""
Data model for the rear suspension analyzer.

This module contains:
- The immutable bike Geometry record and its reference default
- Derived geometry properties (wheel radii, head tube end points)
- The RigidTriangle value object fixed at top-out
- First-pass and final kinematic states, and the analysis result bundle
"""

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .geometry import point


class IdlerType(str, Enum):
    NONE = "No Idler"
    FRAME_MOUNTED = "Frame Mounted"
    SWINGARM_MOUNTED = "Swingarm Mounted"


@dataclass(frozen=True)
class Geometry:
    """
    Complete bike description. Lengths in mm, angles in degrees from
    horizontal, offsets measured from the bottom bracket (x forward, y up).
    """
    # Frame
    bb_height: float
    stack: float
    reach: float
    head_angle: float
    head_tube_length: float
    seat_angle: float
    seat_tube_length: float
    bb_to_pivot_x: float        # negative = behind BB
    bb_to_pivot_y: float

    # Fork
    fork_length: float          # axle to crown
    fork_offset: float
    fork_travel: float
    fork_compression_percent: float

    # Suspension
    total_travel: float
    swingarm_length: float      # pivot to rear axle

    # Shock
    shock_frame_mount_x: float
    shock_frame_mount_y: float
    shock_swingarm_mount_distance: float
    shock_stroke: float
    shock_ete: float
    shock_spring_rate: float    # N/mm

    # Drivetrain
    chainring_teeth: int
    cog_teeth: int
    chainring_offset_x: float
    chainring_offset_y: float
    idler_type: IdlerType
    idler_x: float
    idler_y: float
    idler_teeth: int

    # Centre of mass
    com_x: float
    com_y: float

    # Wheels
    front_wheel_diameter: float
    rear_wheel_diameter: float

    # ---------- derived ----------
    @property
    def front_wheel_radius(self):
        return self.front_wheel_diameter / 2

    @property
    def rear_wheel_radius(self):
        return self.rear_wheel_diameter / 2

    @property
    def head_tube_angle_radians(self):
        return math.radians(self.head_angle)

    def head_tube_top(self, bb_position=(0.0, 0.0)):
        return point(bb_position[0] + self.reach, bb_position[1] + self.stack)

    def head_tube_bottom(self, bb_position=(0.0, 0.0)):
        hta = self.head_tube_angle_radians
        top = self.head_tube_top(bb_position)
        return top + self.head_tube_length * np.array([math.cos(hta), -math.sin(hta)])

    def front_center(self):
        """Horizontal BB to front axle distance with the fork extended."""
        hta = self.head_tube_angle_radians
        return (self.head_tube_bottom()[0]
                + self.fork_length * math.cos(hta)
                + self.fork_offset * math.sin(hta))

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls)]


GEOMETRY_KEYS = Geometry.field_names()
INT_KEYS = ("chainring_teeth", "cog_teeth", "idler_teeth")


def default_geometry(**overrides):
    """Reference enduro bike; keyword arguments replace individual fields."""
    geometry = Geometry(
        bb_height=330.0,
        stack=625.0,
        reach=490.0,
        head_angle=64.0,
        head_tube_length=80.0,
        seat_angle=76.0,
        seat_tube_length=320.0,
        bb_to_pivot_x=-80.0,
        bb_to_pivot_y=210.0,
        fork_length=590.0,
        fork_offset=44.0,
        fork_travel=170.0,
        fork_compression_percent=0.0,
        total_travel=150.0,
        swingarm_length=440.0,
        shock_frame_mount_x=30.0,
        shock_frame_mount_y=70.0,
        shock_swingarm_mount_distance=190.0,
        shock_stroke=65.0,
        shock_ete=210.0,
        shock_spring_rate=60.0,
        chainring_teeth=32,
        cog_teeth=28,
        chainring_offset_x=0.0,
        chainring_offset_y=0.0,
        idler_type=IdlerType.NONE,
        idler_x=-60.0,
        idler_y=160.0,
        idler_teeth=16,
        com_x=100.0,
        com_y=860.0,
        front_wheel_diameter=750.0,
        rear_wheel_diameter=750.0,
    )
    return replace(geometry, **overrides) if overrides else geometry


@dataclass(frozen=True)
class RigidTriangle:
    """
    Fixed pivot / shock eye / rear axle triangle, solved once at top-out.
    The two flags pin the eye candidate and the axle side so every later
    solve is a single formula evaluation.
    """
    pivot_to_eye: float
    pivot_to_axle: float
    eye_to_axle: float
    correct_eye_index: int
    axle_angle_is_positive: bool
    is_fallback: bool = False


@dataclass(frozen=True)
class FirstPassState:
    shock_stroke: float
    travel_mm: float
    rear_axle_position: np.ndarray
    bb_position: np.ndarray
    pivot_position: np.ndarray
    swingarm_eye_position: np.ndarray
    front_axle_position: np.ndarray     # undeflected fork
    shock_length: float
    pitch_angle_degrees: float
    proportional_fork_stroke: float = 0.0
    is_degenerate: bool = False


@dataclass(frozen=True)
class KinematicState:
    shock_stroke: float
    travel_mm: float
    rear_axle_position: np.ndarray
    bb_position: np.ndarray
    pivot_position: np.ndarray
    swingarm_eye_position: np.ndarray
    front_axle_position: np.ndarray
    shock_length: float
    pitch_angle_degrees: float
    fork_compression: float
    leverage_ratio: float = 0.0
    wheel_rate: float = 0.0
    anti_squat: float = 0.0
    anti_rise: float = 0.0
    pedal_kickback: float = 0.0
    chain_growth: float = 0.0
    total_chain_growth: float = 0.0
    trail: float = 0.0
    crank_angle: float = 0.0
    is_degenerate: bool = False


@dataclass(frozen=True)
class AnalysisResults:
    states: Tuple[KinematicState, ...] = ()
    axle_path: Tuple[np.ndarray, ...] = ()
    front_axle_path: Tuple[np.ndarray, ...] = ()

    def __len__(self):
        return len(self.states)

    def state_at_travel(self, travel_mm) -> Optional[KinematicState]:
        """Sample whose wheel travel is closest to travel_mm."""
        if not self.states:
            return None
        return min(self.states, key=lambda s: abs(s.travel_mm - travel_mm))

    def series(self, name):
        """One scalar field across all states as a numpy array."""
        return np.array([getattr(s, name) for s in self.states], dtype=float)
