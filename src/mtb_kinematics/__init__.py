"""
Rear suspension kinematics package for dual-suspension bicycles.

This package provides:
- Planar geometry primitives (intersections, tangents, chain wrap)
- The rigid swingarm triangle solve and per-stroke linkage placement
- Derived metrics (leverage ratio, wheel rate, anti-squat, anti-rise, trail)
- Configuration management for setups and design files
- Command line entry point
"""

import logging

from .model import (
    Geometry, IdlerType, RigidTriangle, KinematicState, AnalysisResults, default_geometry
)
from .kinematics import establish_rigid_triangle, calculate_state_at_shock_stroke
from .metrics import get_apply_pitch_rotation, get_idler_position, get_rotated_centre_of_mass
from .analysis import run_kinematic_analysis, summarize_results
from .config import ConfigManager
from .main import main

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"
__all__ = [
    "Geometry",
    "IdlerType",
    "RigidTriangle",
    "KinematicState",
    "AnalysisResults",
    "default_geometry",
    "establish_rigid_triangle",
    "calculate_state_at_shock_stroke",
    "run_kinematic_analysis",
    "summarize_results",
    "get_apply_pitch_rotation",
    "get_idler_position",
    "get_rotated_centre_of_mass",
    "ConfigManager",
    "main"
]
