"""
Analysis functionality for the rear suspension analyzer.

This module contains functions for:
- Running the full kinematic analysis over the shock stroke
- Summarizing the results into headline numbers
- Collecting analysis and setup information as text
"""

import logging
import math

import numpy as np

from .geometry import STEP_SIZE
from .kinematics import establish_rigid_triangle, calculate_state_at_shock_stroke
from .metrics import derive_states
from .model import AnalysisResults

logger = logging.getLogger(__name__)


def stroke_samples(shock_stroke, step_size=STEP_SIZE):
    """Shock strokes to solve: 0, step, 2*step ... not exceeding shock_stroke."""
    count = max(int(math.floor(shock_stroke / step_size)), 0) + 1
    return [i * step_size for i in range(count)]


def run_kinematic_analysis(geometry):
    """
    Solve the rear end at every stroke sample and derive all metrics.

    Returns AnalysisResults with states ordered by increasing shock stroke and
    the front and rear axle paths relative to the bottom bracket.
    """
    rigid_triangle = establish_rigid_triangle(geometry)

    first_pass = []
    for stroke in stroke_samples(geometry.shock_stroke):
        travel_ratio = stroke / geometry.shock_stroke if geometry.shock_stroke > 0 else 0.0
        first_pass.append(calculate_state_at_shock_stroke(
            stroke, geometry, rigid_triangle,
            fork_stroke=travel_ratio * geometry.fork_travel,
        ))

    states = derive_states(first_pass, geometry, STEP_SIZE)

    degenerate = sum(1 for s in states if s.is_degenerate)
    if degenerate:
        logger.warning("%d of %d stroke samples could not be solved", degenerate, len(states))
    logger.debug("Analysed %d stroke samples (fallback triangle: %s)",
                 len(states), rigid_triangle.is_fallback)

    return AnalysisResults(
        states=tuple(states),
        axle_path=tuple(s.rear_axle_position - s.bb_position for s in states),
        front_axle_path=tuple(s.front_axle_position - s.bb_position for s in states),
    )


# --------------------------- Summaries ---------------------------
def summarize_results(results, sag_percent=30.0):
    """Headline numbers for a result set; empty dict when there is nothing to show."""
    if not results.states:
        return {}

    travel = results.series("travel_mm")
    leverage = results.series("leverage_ratio")
    max_travel = float(np.max(travel))

    lr_start, lr_end = float(leverage[0]), float(leverage[-1])
    progression = (lr_start - lr_end) / lr_start * 100.0 if lr_start else 0.0

    sag_state = results.state_at_travel(max_travel * sag_percent / 100.0)
    last = results.states[-1]

    return {
        "samples": len(results.states),
        "degenerate_samples": sum(1 for s in results.states if s.is_degenerate),
        "max_travel": max_travel,
        "leverage_start": lr_start,
        "leverage_end": lr_end,
        "progression": progression,
        "sag_percent": sag_percent,
        "sag_anti_squat": sag_state.anti_squat,
        "sag_anti_rise": sag_state.anti_rise,
        "sag_trail": sag_state.trail,
        "end_pitch": last.pitch_angle_degrees,
        "end_chain_growth": last.total_chain_growth,
        "end_pedal_kickback": last.pedal_kickback,
    }


def collect_analysis_info_text(results):
    """Collect analysis information for display."""
    summary = summarize_results(results)
    lines = ["Analysis"]
    if not summary:
        lines.append("No stroke samples.")
        return "\n".join(lines)

    sag = summary["sag_percent"]
    lines += [
        f"Samples             {summary['samples']:>8d}",
        f"Wheel travel        {summary['max_travel']:8.1f} mm",
        f"Leverage ratio      {summary['leverage_start']:5.2f} -> {summary['leverage_end']:.2f}",
        f"Progression         {summary['progression']:8.1f} %",
        f"Anti-squat @{sag:.0f}%    {summary['sag_anti_squat']:8.1f} %",
        f"Anti-rise  @{sag:.0f}%    {summary['sag_anti_rise']:8.1f} %",
        f"Trail      @{sag:.0f}%    {summary['sag_trail']:8.1f} mm",
        f"Pitch at bottom-out {summary['end_pitch']:8.2f} deg",
        f"Chain growth        {summary['end_chain_growth']:8.1f} mm",
        f"Pedal kickback      {summary['end_pedal_kickback']:8.1f} deg",
    ]
    if summary["degenerate_samples"]:
        lines.append(f"Unsolved samples    {summary['degenerate_samples']:>8d}")
    return "\n".join(lines)


def collect_setup_info_text(geometry):
    """Collect setup information for display."""
    vals = {
        "BB height":       f"{geometry.bb_height:.1f} mm",
        "Stack / reach":   f"{geometry.stack:.0f} / {geometry.reach:.0f} mm",
        "Head angle":      f"{geometry.head_angle:.1f} deg",
        "Front centre":    f"{geometry.front_center():.0f} mm",
        "Pivot from BB":   f"{geometry.bb_to_pivot_x:.0f}, {geometry.bb_to_pivot_y:.0f} mm",
        "Swingarm length": f"{geometry.swingarm_length:.1f} mm",
        "Shock":           f"{geometry.shock_ete:.0f} x {geometry.shock_stroke:.1f} mm",
        "Spring rate":     f"{geometry.shock_spring_rate:.1f} N/mm",
        "Drivetrain":      f"{geometry.chainring_teeth}T / {geometry.cog_teeth}T",
        "Idler":           geometry.idler_type.value,
    }
    lines = [f"{k:<16} {v:>16}" for k, v in vals.items()]
    return "Setup\n" + "\n".join(lines)
