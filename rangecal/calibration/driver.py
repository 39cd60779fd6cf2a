"""Calibration driver: validate, configure, optimise.

Given an initial guess of every sensor's pose, the observation grid and
one cost function per feature, :func:`calibrate`

1. validates all inputs and raises InvalidInputError before any solver
   call if anything is malformed,
2. resolves the solver configuration (caller values override defaults),
3. turns optional bound half-widths into a box around the initial guess,
4. minimises MultiSensorMultiRegionCost over the (NS, 6) pose block, and
5. returns the best poses with the solver's diagnostics.

Example:
    >>> result = calibrate(initial, grid, [VerticalLineCost(), HorizontalPlaneCost()],
    ...                    bounds=np.tile([0.5, 0.5, 0.0, 0.1, 0.1, 0.1], (3, 1)))
    >>> result.poses.shape
    (3, 6)

A solver that stops without meeting its tolerances is not an error: the
best poses found are still returned, ``success`` is False, ``status`` and
``message`` carry the solver's termination reason and a
CalibrationConvergenceWarning is issued.
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike

from rangecal.calibration.errors import CalibrationConvergenceWarning
from rangecal.calibration.objective import MultiSensorMultiRegionCost
from rangecal.calibration.validation import validate_inputs
from rangecal.coords.pose import POSE_SIZE, SensorPose, as_pose_array, poses_from_array
from rangecal.estimators.bounded_optimizer import (
    DEFAULT_SOLVER_CONFIG,
    Solver,
    SolverConfig,
    minimize_bounded,
)
from rangecal.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CalibrationResult:
    """Optimised sensor poses and solver diagnostics.

    Attributes:
        poses: Optimised pose set (NS, 6).
        cost: Final objective value.
        status: Solver termination code.
        message: Solver termination message.
        success: Whether the solver met its convergence criteria.
        iterations: Iterations performed, if reported.
        evaluations: Objective evaluations, if reported.
        gradient: Gradient estimate at the solution (NS, 6), if reported.
        hessian: Hessian (or inverse-Hessian operator) estimate, if reported.
        multipliers: Lagrange multipliers of the bounds, if reported.
        initial_cost: Objective value at the initial guess.
        feature_costs: Per-feature costs (NF,) at the solution.
        config: Solver configuration actually used.
        optimize_result: The solver's result bundle, unmodified.
    """

    poses: np.ndarray
    cost: float
    status: int
    message: str
    success: bool
    iterations: Optional[int] = None
    evaluations: Optional[int] = None
    gradient: Optional[np.ndarray] = None
    hessian: Any = None
    multipliers: Any = None
    initial_cost: float = float("nan")
    feature_costs: np.ndarray = field(default_factory=lambda: np.zeros(0))
    config: SolverConfig = DEFAULT_SOLVER_CONFIG
    optimize_result: Any = None

    def sensor_poses(self) -> List[SensorPose]:
        """Optimised poses as SensorPose objects, one per sensor."""
        return poses_from_array(self.poses)

    def summary(self) -> Dict[str, Any]:
        """JSON-serialisable summary of the run."""
        return {
            "poses": self.poses.tolist(),
            "cost": self.cost,
            "initial_cost": self.initial_cost,
            "feature_costs": np.asarray(self.feature_costs).tolist(),
            "status": self.status,
            "message": self.message,
            "success": self.success,
            "iterations": self.iterations,
            "evaluations": self.evaluations,
            "config": self.config.to_dict(),
        }


def derive_bounds(
    initial_poses: ArrayLike,
    half_widths: Optional[ArrayLike],
) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
    """Symmetric box around the initial guess.

    Args:
        initial_poses: Initial poses (NS, 6).
        half_widths: Non-negative half-widths (NS, 6), or None.

    Returns:
        (lower, upper) arrays (NS, 6), or (None, None) for an unbounded
        search. A zero half-width pins that parameter at its initial value;
        an infinite one leaves it free.
    """
    if half_widths is None:
        return None, None
    x0 = as_pose_array(initial_poses)
    b = np.asarray(half_widths, dtype=np.float64).reshape(x0.shape)
    return x0 - b, x0 + b


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _shaped(value: Any, shape: Tuple[int, int]) -> Optional[np.ndarray]:
    if value is None:
        return None
    array = np.asarray(value, dtype=np.float64)
    if array.size != shape[0] * shape[1]:
        return array
    return array.reshape(shape)


def calibrate(
    initial_poses: ArrayLike,
    grid: Any,
    cost_functions: Sequence[Any],
    bounds: Optional[ArrayLike] = None,
    solver_config: Any = None,
    solver: Optional[Solver] = None,
) -> CalibrationResult:
    """Estimate every sensor's pose from feature observations.

    Args:
        initial_poses: Initial guess (NS, 6) or a sequence of SensorPose.
        grid: NF-by-NS ObservationGrid (or nested sequence of entries).
        cost_functions: NF feature cost callables. Reference costs with
            the default ``metric="std"`` have a kink where the cost reaches
            zero, so on noise-free data L-BFGS-B can stop at the optimum
            with an ABNORMAL line search and a convergence warning. Use
            ``metric="variance"`` for a cost that is smooth there.
        bounds: Optional (NS, 6) half-widths; the search is limited to
            initial ± bounds. None means unbounded.
        solver_config: SolverConfig or mapping of overrides. Values given
            here take precedence over DEFAULT_SOLVER_CONFIG.
        solver: Optimizer implementing the Solver contract. Defaults to
            scipy.optimize.minimize.

    Returns:
        CalibrationResult with the best poses found and diagnostics.

    Raises:
        InvalidInputError: If any input is structurally invalid. Raised
            before the solver is called.
    """
    if isinstance(initial_poses, (list, tuple)) and initial_poses and all(
        isinstance(p, SensorPose) for p in initial_poses
    ):
        initial_poses = as_pose_array(initial_poses)

    grid = validate_inputs(initial_poses, grid, cost_functions, bounds)
    config = DEFAULT_SOLVER_CONFIG.merged(solver_config)

    x0 = as_pose_array(initial_poses)
    shape = x0.shape
    lower, upper = derive_bounds(x0, bounds)

    objective = MultiSensorMultiRegionCost(grid, cost_functions)
    initial_cost = objective(x0)
    logger.info(
        "Calibrating %d sensor(s) over %d feature(s) with %s; initial cost %.9e%s",
        shape[0],
        grid.n_features,
        config.method,
        initial_cost,
        "" if lower is None else " (bounded)",
    )

    result = minimize_bounded(
        objective,
        x0.ravel(),
        None if lower is None else lower.ravel(),
        None if upper is None else upper.ravel(),
        config=config,
        solver=solver,
    )

    poses = np.asarray(result.x, dtype=np.float64).reshape(shape[0], POSE_SIZE)
    success = bool(getattr(result, "success", False))
    message = str(getattr(result, "message", ""))
    multipliers = getattr(result, "multipliers", None)
    if multipliers is None:
        multipliers = getattr(result, "v", None)
    hessian = getattr(result, "hess", None)
    if hessian is None:
        hessian = getattr(result, "hess_inv", None)

    calibration = CalibrationResult(
        poses=poses,
        cost=float(result.fun),
        status=int(getattr(result, "status", 0)),
        message=message,
        success=success,
        iterations=_optional_int(getattr(result, "nit", None)),
        evaluations=_optional_int(getattr(result, "nfev", None)),
        gradient=_shaped(getattr(result, "jac", None), shape),
        hessian=hessian,
        multipliers=multipliers,
        initial_cost=initial_cost,
        feature_costs=objective.feature_costs(poses),
        config=config,
        optimize_result=result,
    )

    if success:
        logger.info(
            "Converged after %s iteration(s): cost %.9e (%s)",
            calibration.iterations,
            calibration.cost,
            message,
        )
    else:
        hint = ""
        if any(getattr(cost, "metric", None) == "std" for cost in cost_functions):
            hint = "; 'std' feature costs have a kink at zero, metric='variance' is smooth there"
        logger.warning(
            "Solver stopped without converging (status %d): %s; best cost %.9e%s",
            calibration.status,
            message,
            calibration.cost,
            hint,
        )
        warnings.warn(
            f"Calibration did not converge (status {calibration.status}): {message}{hint}",
            CalibrationConvergenceWarning,
        )

    return calibration
