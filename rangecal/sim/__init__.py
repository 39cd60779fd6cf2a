"""
Simulation utilities for generating calibration data with known truth.

Modules:
    pole_plane_scenario: vehicle passes around a pole on flat ground,
        observed by several range sensors with known poses
"""

from rangecal.sim.pole_plane_scenario import (
    DEFAULT_TRUE_POSES,
    PolePlaneScenario,
    cartesian_to_polar,
    make_pole_plane_scenario,
    ned_to_sensor,
    simulate_navigation,
)

__all__ = [
    "DEFAULT_TRUE_POSES",
    "PolePlaneScenario",
    "cartesian_to_polar",
    "make_pole_plane_scenario",
    "ned_to_sensor",
    "simulate_navigation",
]
