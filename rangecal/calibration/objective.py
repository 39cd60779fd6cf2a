"""Multi-sensor, multi-feature calibration objective.

For a candidate pose set the objective is

    J(poses) = Σ_f  cost_f( ⋃_s  T(pose_s, nav, georegister(cell[f][s])) )

i.e. every sensor's observations of feature f are georeferenced with that
sensor's candidate pose, stacked into one NED point cloud, and scored by
the feature's cost function. Feature costs are summed in feature order.

The objective only reads its arguments and keeps no state between calls,
so repeated evaluations with identical arguments give identical results,
as finite-difference gradient estimation requires. Structural checks
(row counts, shapes) belong to :mod:`rangecal.calibration.validation`;
only :func:`georegister` still rejects output with the wrong number of
points, so a georegistration can never silently reshape a cell.
"""

from typing import Any, Callable, List, Sequence

import numpy as np
from numpy.typing import ArrayLike

from rangecal.calibration.costs import evaluate_feature_cost
from rangecal.calibration.georegistration import georegister
from rangecal.calibration.types import ObservationGrid, is_observed
from rangecal.coords.pose import as_pose_array, transform_to_ned

CostFunctions = Sequence[Callable[[np.ndarray], float]]


def feature_points(pose_set: ArrayLike, grid: ObservationGrid, feature: int) -> np.ndarray:
    """Aggregate one feature's observations into NED points.

    Args:
        pose_set: Candidate poses (NS, 6).
        grid: Observation grid.
        feature: Feature (row) index f.

    Returns:
        (N, 3) NED points of all sensors that observed the feature, in
        sensor order. N is the sum of the observed cells' row counts, and
        N == 0 gives a (0, 3) array.
    """
    poses = as_pose_array(pose_set)
    clouds: List[np.ndarray] = []

    for s, entry in enumerate(grid.feature_row(feature)):
        if not is_observed(entry) or entry.n_rows == 0:
            continue
        registered = georegister(entry.georegistration, entry.range_data, entry.nav_data)
        clouds.append(
            transform_to_ned(
                poses[s],
                registered.local_points,
                registered.nav_positions,
                registered.nav_rotations,
            )
        )

    if not clouds:
        return np.empty((0, 3), dtype=np.float64)
    return np.vstack(clouds)


def feature_costs(pose_set: ArrayLike, grid: ObservationGrid, cost_functions: CostFunctions) -> np.ndarray:
    """Per-feature costs (NF,) for a candidate pose set.

    Features that no sensor observed cost 0 and their cost function is not
    called.
    """
    poses = as_pose_array(pose_set)
    costs = np.zeros(grid.n_features, dtype=np.float64)

    for f in range(grid.n_features):
        points = feature_points(poses, grid, f)
        if points.shape[0] > 0:
            costs[f] = evaluate_feature_cost(cost_functions[f], points)

    return costs


def total_cost(pose_set: ArrayLike, grid: ObservationGrid, cost_functions: CostFunctions) -> float:
    """Scalar calibration objective: sum of all feature costs.

    Args:
        pose_set: Candidate poses (NS, 6), or the flat (NS*6,) vector used
            by optimizers.
        grid: NF-by-NS observation grid.
        cost_functions: NF feature cost callables.

    Returns:
        Total cost, non-negative when every feature cost is.

    Example:
        >>> grid = ObservationGrid([[NO_OBSERVATION, NO_OBSERVATION]])
        >>> total_cost(np.zeros((2, 6)), grid, [VerticalLineCost()])
        0.0
    """
    total = 0.0
    for cost in feature_costs(pose_set, grid, cost_functions):
        total += float(cost)
    return total


class MultiSensorMultiRegionCost:
    """The calibration objective bound to one dataset.

    Optimizers see a function of the parameter block only; this object
    carries the grid and cost functions alongside it. Calling it with a
    flat (NS*6,) vector or an (NS, 6) array returns :func:`total_cost`.
    """

    def __init__(self, grid: Any, cost_functions: CostFunctions) -> None:
        self.grid = grid if isinstance(grid, ObservationGrid) else ObservationGrid(grid)
        self.cost_functions = tuple(cost_functions)

    @property
    def n_parameters(self) -> int:
        return 6 * self.grid.n_sensors

    def __call__(self, params: ArrayLike) -> float:
        return total_cost(params, self.grid, self.cost_functions)

    def feature_costs(self, params: ArrayLike) -> np.ndarray:
        return feature_costs(params, self.grid, self.cost_functions)
