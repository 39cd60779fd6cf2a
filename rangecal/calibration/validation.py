"""Structural validation of calibration inputs.

Runs before any optimizer call and reports every problem it finds in one
:class:`~rangecal.calibration.errors.InvalidInputError`:

- initial poses are an (NS, 6) array of finite values with NS >= 1
- the grid has NF >= 1 rows of NS entries each
- there are NF callable cost functions
- every observed cell has matching range/navigation row counts, a
  callable georegistration and, where the georegistration declares them,
  the expected column counts, and the georegistration turns the cell into
  exactly one point per row
- bound half-widths, if given, match the pose shape and are not NaN and
  non-negative; an infinite half-width leaves that parameter free

A feature row that no sensor observed is legal (it costs zero) but is
reported with an :class:`UnobservedFeatureWarning`.
"""

import warnings
from typing import Any, List, Optional, Sequence

import numpy as np

from rangecal.calibration.errors import InvalidInputError, UnobservedFeatureWarning
from rangecal.calibration.georegistration import georegister
from rangecal.calibration.types import NoObservation, ObservationCell, ObservationGrid
from rangecal.coords.pose import POSE_SIZE


def _check_poses(initial_poses: Any, problems: List[str]) -> Optional[np.ndarray]:
    try:
        poses = np.asarray(initial_poses, dtype=np.float64)
    except (TypeError, ValueError):
        problems.append("initial poses are not a numeric array")
        return None
    if poses.ndim != 2 or poses.shape[1] != POSE_SIZE:
        problems.append(f"initial poses must have shape (NS, {POSE_SIZE}), got {poses.shape}")
        return None
    if poses.shape[0] < 1:
        problems.append("initial poses must describe at least one sensor (NS >= 1)")
        return None
    if not np.all(np.isfinite(poses)):
        rows = sorted({int(i) for i in np.argwhere(~np.isfinite(poses))[:, 0]})
        problems.append(f"initial poses contain non-finite values for sensor(s) {rows}")
    return poses


def _check_cell(f: int, s: int, cell: ObservationCell, problems: List[str]) -> None:
    where = f"grid[{f}][{s}]"
    first_problem = len(problems)
    n_range = cell.range_data.shape[0]
    n_nav = cell.nav_data.shape[0]
    if n_range != n_nav:
        problems.append(f"{where}: range data has {n_range} rows but nav data has {n_nav} rows")

    georegistration = cell.georegistration
    if georegistration is None or not callable(georegistration):
        problems.append(f"{where}: missing or non-callable georegistration")
        return

    if n_range == 0:
        return
    expected_range = getattr(georegistration, "expected_range_columns", None)
    if expected_range is not None and cell.range_data.shape[1] < expected_range:
        problems.append(
            f"{where}: range data has {cell.range_data.shape[1]} columns, "
            f"{type(georegistration).__name__} needs {expected_range}"
        )
    expected_nav = getattr(georegistration, "expected_nav_columns", None)
    if expected_nav is not None and cell.nav_data.shape[1] < expected_nav:
        problems.append(
            f"{where}: nav data has {cell.nav_data.shape[1]} columns, "
            f"{type(georegistration).__name__} needs {expected_nav}"
        )

    if len(problems) > first_problem:
        return
    try:
        georegister(georegistration, cell.range_data, cell.nav_data)
    except (ValueError, IndexError, TypeError) as exc:
        problems.append(f"{where}: georegistration failed on the cell data: {exc}")


def validate_inputs(
    initial_poses: Any,
    grid: Any,
    cost_functions: Sequence[Any],
    bounds: Any = None,
) -> ObservationGrid:
    """Validate calibration inputs, raising on any structural problem.

    Args:
        initial_poses: Initial pose guess (NS, 6).
        grid: ObservationGrid, or a nested sequence accepted by it.
        cost_functions: NF feature cost callables.
        bounds: Optional (NS, 6) non-negative half-widths.

    Returns:
        The grid as an ObservationGrid.

    Raises:
        InvalidInputError: Listing every problem found.
    """
    problems: List[str] = []

    poses = _check_poses(initial_poses, problems)
    n_sensors = poses.shape[0] if poses is not None else None

    if not isinstance(grid, ObservationGrid):
        grid = ObservationGrid(grid)

    if grid.n_features < 1:
        problems.append("grid must contain at least one feature row (NF >= 1)")
    if n_sensors is None:
        n_sensors = grid.n_sensors
    for f, row in enumerate(grid.rows):
        if len(row) != n_sensors:
            problems.append(f"grid row {f} has {len(row)} entries, expected NS = {n_sensors}")

    try:
        n_costs = len(cost_functions)
    except TypeError:
        problems.append("cost functions must be a sequence")
        cost_functions = []
        n_costs = 0
    if n_costs != grid.n_features:
        problems.append(f"expected {grid.n_features} cost functions (one per feature), got {n_costs}")
    for f, cost_function in enumerate(cost_functions):
        if not callable(cost_function):
            problems.append(f"cost function {f} is not callable")

    for f, row in enumerate(grid.rows):
        observed = 0
        for s, entry in enumerate(row):
            if isinstance(entry, NoObservation):
                continue
            if not isinstance(entry, ObservationCell):
                problems.append(f"grid[{f}][{s}]: expected ObservationCell, got {type(entry).__name__}")
                continue
            observed += 1
            _check_cell(f, s, entry, problems)
        if observed == 0 and row:
            warnings.warn(
                f"Feature {f} is not observed by any sensor and contributes zero cost",
                UnobservedFeatureWarning,
            )

    if bounds is not None:
        try:
            half_widths = np.asarray(bounds, dtype=np.float64)
        except (TypeError, ValueError):
            problems.append("bounds are not a numeric array")
        else:
            expected_shape = poses.shape if poses is not None else (grid.n_sensors, POSE_SIZE)
            if half_widths.shape != expected_shape:
                problems.append(
                    f"bounds must have the same shape as the initial poses {expected_shape}, "
                    f"got {half_widths.shape}"
                )
            elif np.any(np.isnan(half_widths)):
                problems.append("bounds contain NaN half-widths")
            elif np.any(half_widths < 0):
                cells = [tuple(int(i) for i in idx) for idx in np.argwhere(half_widths < 0)]
                problems.append(f"bounds must be non-negative; negative half-widths at {cells}")

    if problems:
        raise InvalidInputError(problems)

    return grid
