"""
Synthetic pole and ground-plane survey for calibration.

A vehicle drives past a vertical pole on flat ground while several range
sensors with known poses scan both features. For every sensor and feature
a set of navigation samples is drawn and the surveyed feature point seen
at each sample is expressed in the sensor frame by inverting the
georeferencing chain

    p_ned = p_nav + R_nav @ (t_s + R_s @ p_sensor)
    p_sensor = R_s^T @ (R_nav^T @ (p_ned - p_nav) - t_s)

so that, with the true poses, every pole point lies on the pole axis and
every ground point lies on the plane.

Frames:
    NED world frame with the pole at (pole_north, pole_east), ground at
    D = ground_down and the pole rising to D = ground_down - pole_height.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from rangecal.calibration.costs import HorizontalPlaneCost, VerticalLineCost
from rangecal.calibration.georegistration import (
    CartesianGeoregistration,
    Georegistration,
    RangeAzimuthElevationGeoregistration,
)
from rangecal.calibration.types import NO_OBSERVATION, ObservationCell, ObservationGrid
from rangecal.coords.pose import as_pose_array
from rangecal.coords.rotations import ypr_to_quat, ypr_to_rotation_matrix

POLE = "pole"
PLANE = "plane"

DEFAULT_TRUE_POSES = np.array(
    [
        [1.50, 0.60, -1.80, 0.30, 0.02, -0.04],
        [1.20, -0.70, -1.60, -0.40, -0.03, 0.05],
        [-0.80, 0.10, -2.00, 3.00, 0.04, 0.02],
    ],
    dtype=np.float64,
)


@dataclass
class PolePlaneScenario:
    """Simulated calibration problem with ground truth.

    Attributes:
        true_poses: Sensor poses (NS, 6) used to generate the data.
        grid: Observation grid, one row per feature.
        cost_functions: One cost per feature row.
        features: Feature kinds per row ("pole" or "plane").
        nav_samples: Navigation states (M, 6) [N, E, D, yaw, pitch, roll]
            per (feature, sensor) observed cell.
    """

    true_poses: np.ndarray
    grid: ObservationGrid
    cost_functions: List
    features: List[str]
    nav_samples: Dict[Tuple[int, int], np.ndarray] = field(default_factory=dict)

    def initial_guess(self, offset: Sequence[float]) -> np.ndarray:
        """True poses plus a fixed (6,) or (NS, 6) offset."""
        return self.true_poses + np.broadcast_to(np.asarray(offset, dtype=np.float64), self.true_poses.shape)


def simulate_navigation(
    n_samples: int,
    rng: np.random.Generator,
    pole_north: float = 0.0,
    pole_east: float = 0.0,
    ground_down: float = 0.0,
    min_range: float = 4.0,
    max_range: float = 12.0,
    max_tilt: float = 0.03,
    vehicle_height: float = 0.5,
) -> np.ndarray:
    """
    Draw vehicle navigation states around the pole.

    The vehicle is placed at a random bearing and distance from the pole,
    with a random heading, small pitch/roll and its reference point
    ``vehicle_height`` above the ground.

    Returns:
        Navigation states (n_samples, 6) [N, E, D, yaw, pitch, roll].
    """
    bearing = rng.uniform(-np.pi, np.pi, n_samples)
    distance = rng.uniform(min_range, max_range, n_samples)

    nav = np.zeros((n_samples, 6))
    nav[:, 0] = pole_north + distance * np.cos(bearing)
    nav[:, 1] = pole_east + distance * np.sin(bearing)
    nav[:, 2] = ground_down - vehicle_height
    nav[:, 3] = rng.uniform(-np.pi, np.pi, n_samples)
    nav[:, 4] = rng.uniform(-max_tilt, max_tilt, n_samples)
    nav[:, 5] = rng.uniform(-max_tilt, max_tilt, n_samples)
    return nav


def ned_to_sensor(pose: np.ndarray, nav: np.ndarray, points_ned: np.ndarray) -> np.ndarray:
    """Invert the georeferencing chain for one sensor.

    Args:
        pose: Sensor pose (6,).
        nav: Navigation states (M, 6) [N, E, D, yaw, pitch, roll].
        points_ned: World points (M, 3).

    Returns:
        Sensor-frame points (M, 3).
    """
    R_nav = ypr_to_rotation_matrix(nav[:, 3], nav[:, 4], nav[:, 5])
    body = np.einsum("mji,mj->mi", R_nav, points_ned - nav[:, 0:3])
    R_s = ypr_to_rotation_matrix(pose[3], pose[4], pose[5])
    return (body - pose[0:3]) @ R_s


def cartesian_to_polar(points: np.ndarray) -> np.ndarray:
    """Sensor-frame points (M, 3) to [range, azimuth, elevation] rows."""
    x, y, z = points[:, 0], points[:, 1], points[:, 2]
    horizontal = np.hypot(x, y)
    return np.column_stack([np.hypot(horizontal, z), np.arctan2(y, x), np.arctan2(-z, horizontal)])


def _format_cell(
    local_points: np.ndarray,
    nav: np.ndarray,
    range_format: str,
    nav_format: str,
) -> ObservationCell:
    if range_format == "cartesian":
        range_data = local_points
        georegistration: Georegistration = CartesianGeoregistration(nav_format=nav_format)
    elif range_format == "polar":
        range_data = cartesian_to_polar(local_points)
        georegistration = RangeAzimuthElevationGeoregistration(nav_format=nav_format)
    else:
        raise ValueError(f"Unknown range_format: {range_format}")

    if nav_format == "ypr":
        nav_data = nav
    elif nav_format == "quaternion":
        nav_data = np.column_stack([nav[:, 0:3], ypr_to_quat(nav[:, 3], nav[:, 4], nav[:, 5])])
    else:
        raise ValueError(f"Unsupported nav_format for simulation: {nav_format}")

    return ObservationCell(range_data, nav_data, georegistration)


def make_pole_plane_scenario(
    true_poses: Optional[np.ndarray] = None,
    features: Sequence[str] = (POLE, PLANE),
    points_per_cell: int = 10,
    missing: Sequence[Tuple[int, int]] = (),
    range_format: str = "cartesian",
    nav_format: str = "ypr",
    metric: str = "variance",
    noise_std: float = 0.0,
    pole_location: Tuple[float, float] = (0.0, 0.0),
    pole_height: float = 4.0,
    ground_down: float = 0.0,
    known_ground: bool = True,
    seed: int = 42,
) -> PolePlaneScenario:
    """
    Generate a pole/plane calibration problem with known sensor poses.

    Args:
        true_poses: Sensor poses (NS, 6); defaults to DEFAULT_TRUE_POSES.
        features: Feature kind of each grid row, "pole" or "plane".
        points_per_cell: Range rows M per observed cell.
        missing: (feature, sensor) pairs left as NO_OBSERVATION.
        range_format: "cartesian" ([x, y, z]) or "polar"
            ([range, azimuth, elevation]).
        nav_format: "ypr" or "quaternion" navigation rows.
        metric: Deviation metric of the cost functions.
        noise_std: Std dev (m) of Gaussian noise added to the world points.
        pole_location: (N, E) of the pole.
        pole_height: Height of the pole above the ground (m).
        ground_down: Down coordinate of the ground plane.
        known_ground: If True the plane cost uses the surveyed ground level;
            otherwise the mean level of the points.
        seed: Random seed.

    Returns:
        PolePlaneScenario with grid, costs and ground truth.

    Example:
        >>> scenario = make_pole_plane_scenario(missing=[(1, 2)])
        >>> scenario.grid.shape
        (2, 3)
    """
    rng = np.random.default_rng(seed)
    poses = as_pose_array(DEFAULT_TRUE_POSES if true_poses is None else true_poses)
    missing_cells = {(int(f), int(s)) for f, s in missing}
    pole_north, pole_east = pole_location

    rows = []
    costs = []
    nav_samples: Dict[Tuple[int, int], np.ndarray] = {}

    for f, kind in enumerate(features):
        if kind == POLE:
            costs.append(VerticalLineCost(metric=metric))
        elif kind == PLANE:
            costs.append(HorizontalPlaneCost(down=ground_down if known_ground else None, metric=metric))
        else:
            raise ValueError(f"Unknown feature kind: {kind}")

        row = []
        for s, pose in enumerate(poses):
            if (f, s) in missing_cells:
                row.append(NO_OBSERVATION)
                continue

            if kind == POLE:
                nav = simulate_navigation(
                    points_per_cell, rng, pole_north, pole_east, ground_down
                )
                targets = np.column_stack(
                    [
                        np.full(points_per_cell, pole_north),
                        np.full(points_per_cell, pole_east),
                        ground_down - rng.uniform(0.0, pole_height, points_per_cell),
                    ]
                )
            else:
                nav = simulate_navigation(
                    points_per_cell, rng, pole_north, pole_east, ground_down,
                    min_range=2.0, max_range=30.0,
                )
                # Ground returns spread around the vehicle
                reach = rng.uniform(2.0, 15.0, points_per_cell)
                angle = rng.uniform(-np.pi, np.pi, points_per_cell)
                targets = np.column_stack(
                    [
                        nav[:, 0] + reach * np.cos(angle),
                        nav[:, 1] + reach * np.sin(angle),
                        np.full(points_per_cell, ground_down),
                    ]
                )

            if noise_std > 0:
                targets = targets + rng.normal(0.0, noise_std, targets.shape)

            local_points = ned_to_sensor(pose, nav, targets)
            row.append(_format_cell(local_points, nav, range_format, nav_format))
            nav_samples[(f, s)] = nav
        rows.append(row)

    return PolePlaneScenario(
        true_poses=poses,
        grid=ObservationGrid(rows),
        cost_functions=costs,
        features=list(features),
        nav_samples=nav_samples,
    )
