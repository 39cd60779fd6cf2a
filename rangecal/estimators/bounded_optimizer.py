"""
Bounded nonlinear minimisation of a scalar objective.

This module is the seam between the calibration objective and a
general-purpose solver. The calibration only relies on the contract

    solver(fun, x0, lower, upper, config, callback) -> result

where ``fun`` maps a flat parameter vector to a scalar cost, ``lower`` and
``upper`` are per-parameter box limits (or None for an unbounded search)
and ``result`` exposes at least ``x``, ``fun``, ``status``, ``message``
and ``success``. Solvers may add ``nit``, ``nfev``, ``jac``, ``hess``,
``hess_inv`` and Lagrange multipliers; the driver passes them through.

The default implementation wraps :func:`scipy.optimize.minimize` with
box constraints only (no linear or nonlinear constraints). Gradients are
estimated by finite differences of the objective.

Default configuration (SolverConfig()):
    method              L-BFGS-B (quasi-Newton, box constraints)
    max_iterations      1000
    max_evaluations     5000 objective calls, finite differences included
    function_tolerance  1e-12
    gradient_tolerance  1e-10
    step_tolerance      1e-9 (not used by L-BFGS-B or SLSQP)
    finite_difference   "2-point"
    report_progress     True, one log line per iteration
"""

import json
from collections import OrderedDict
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union

import numpy as np
from scipy.optimize import Bounds, OptimizeResult, minimize

from rangecal.utils.logging import get_logger

logger = get_logger(__name__)

# Option names understood by each scipy method, keyed by SolverConfig field.
_SCIPY_OPTION_NAMES: Dict[str, Dict[str, str]] = {
    "L-BFGS-B": {
        "max_iterations": "maxiter",
        "max_evaluations": "maxfun",
        "function_tolerance": "ftol",
        "gradient_tolerance": "gtol",
    },
    "SLSQP": {
        "max_iterations": "maxiter",
        "function_tolerance": "ftol",
    },
    "TNC": {
        "max_evaluations": "maxfun",
        "function_tolerance": "ftol",
        "gradient_tolerance": "gtol",
        "step_tolerance": "xtol",
    },
    "trust-constr": {
        "max_iterations": "maxiter",
        "gradient_tolerance": "gtol",
        "step_tolerance": "xtol",
    },
    "Powell": {
        "max_iterations": "maxiter",
        "max_evaluations": "maxfev",
        "function_tolerance": "ftol",
        "step_tolerance": "xtol",
    },
    "Nelder-Mead": {
        "max_iterations": "maxiter",
        "max_evaluations": "maxfev",
        "function_tolerance": "fatol",
        "step_tolerance": "xatol",
    },
}

# Methods that take a finite-difference scheme through ``jac``.
_GRADIENT_METHODS = ("L-BFGS-B", "SLSQP", "TNC", "trust-constr")


@dataclass(frozen=True)
class SolverConfig:
    """Options for the bounded optimizer.

    Attributes:
        method: scipy.optimize.minimize method name.
        max_iterations: Iteration cap.
        max_evaluations: Objective evaluation cap (where the method has one).
        function_tolerance: Stop when the objective decrease falls below this.
        gradient_tolerance: Stop when the projected gradient falls below this.
        step_tolerance: Stop when the parameter step falls below this.
            L-BFGS-B and SLSQP have no step tolerance and ignore it.
        finite_difference: Gradient scheme, "2-point" or "3-point".
        report_progress: Log the cost at every iteration.
        options: Extra method options, passed verbatim and taking
            precedence over the mapped fields above. The config keeps its
            own copy of the mapping.

    Example:
        >>> config = SolverConfig(max_iterations=200)
        >>> config.to_scipy_options()["maxiter"]
        200
    """

    method: str = "L-BFGS-B"
    max_iterations: int = 1000
    max_evaluations: int = 5000
    function_tolerance: float = 1e-12
    gradient_tolerance: float = 1e-10
    step_tolerance: float = 1e-9
    finite_difference: str = "2-point"
    report_progress: bool = True
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the configuration values."""
        object.__setattr__(self, "options", dict(self.options))
        if not isinstance(self.method, str) or not self.method:
            raise ValueError(f"method must be a non-empty string, got {self.method!r}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.max_evaluations < 1:
            raise ValueError(f"max_evaluations must be positive, got {self.max_evaluations}")
        for name in ("function_tolerance", "gradient_tolerance", "step_tolerance"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a non-negative number, got {value}")
        if self.finite_difference not in ("2-point", "3-point"):
            raise ValueError(
                f"finite_difference must be '2-point' or '3-point', got {self.finite_difference!r}"
            )

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "SolverConfig":
        """Build a config from a mapping; missing keys take their defaults.

        Raises:
            ValueError: If the mapping has keys that are not config fields.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown solver config keys: {unknown}")
        return cls(**dict(values))

    def merged(self, overrides: Union["SolverConfig", Mapping[str, Any], None]) -> "SolverConfig":
        """Return this config updated with the caller's overrides.

        A SolverConfig replaces this one outright; a mapping replaces only
        the fields it names.
        """
        if overrides is None:
            return self
        if isinstance(overrides, SolverConfig):
            return overrides
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown solver config keys: {unknown}")
        return replace(self, **dict(overrides))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_scipy_options(self) -> Dict[str, Any]:
        """Translate to the ``options`` dict of scipy.optimize.minimize."""
        names = _SCIPY_OPTION_NAMES.get(self.method, {})
        options = {scipy_name: getattr(self, field_name) for field_name, scipy_name in names.items()}
        options.update(self.options)
        return options


DEFAULT_SOLVER_CONFIG = SolverConfig()


def load_solver_config(path: Union[str, Path]) -> SolverConfig:
    """Load a SolverConfig from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file has unknown keys or invalid values.
    """
    with open(path, "r", encoding="utf-8") as f:
        values = json.load(f)
    if not isinstance(values, dict):
        raise ValueError(f"Solver config must be a JSON object, got {type(values).__name__}")
    return SolverConfig.from_dict(values)


class Solver(Protocol):
    """Contract of the bounded optimizer used by the calibration driver."""

    def __call__(
        self,
        fun: Callable[[np.ndarray], float],
        x0: np.ndarray,
        lower: Optional[np.ndarray],
        upper: Optional[np.ndarray],
        config: SolverConfig,
        callback: Optional[Callable[..., Any]] = None,
    ) -> Any:
        ...


class _ProgressReporter:
    """Objective wrapper that logs the cost at each solver iteration."""

    def __init__(self, fun: Callable[[np.ndarray], float], history: int = 512) -> None:
        self.fun = fun
        self.iteration = 0
        self._recent: "OrderedDict[bytes, float]" = OrderedDict()
        self._history = history

    def __call__(self, x: np.ndarray) -> float:
        value = self.fun(x)
        key = np.asarray(x, dtype=np.float64).tobytes()
        self._recent[key] = value
        self._recent.move_to_end(key)
        if len(self._recent) > self._history:
            self._recent.popitem(last=False)
        return value

    def callback(self, xk: np.ndarray, *args: Any) -> None:
        self.iteration += 1
        key = np.asarray(xk, dtype=np.float64).tobytes()
        value = self._recent.get(key)
        if value is None:
            logger.info("iteration %4d", self.iteration)
        else:
            logger.info("iteration %4d  cost=%.9e", self.iteration, value)


class ScipyMinimizeSolver:
    """Default solver: scipy.optimize.minimize with box constraints."""

    def __call__(
        self,
        fun: Callable[[np.ndarray], float],
        x0: np.ndarray,
        lower: Optional[np.ndarray],
        upper: Optional[np.ndarray],
        config: SolverConfig,
        callback: Optional[Callable[..., Any]] = None,
    ) -> OptimizeResult:
        x0 = np.asarray(x0, dtype=np.float64).ravel()
        bounds = None
        if lower is not None or upper is not None:
            lb = np.full_like(x0, -np.inf) if lower is None else np.asarray(lower, dtype=np.float64).ravel()
            ub = np.full_like(x0, np.inf) if upper is None else np.asarray(upper, dtype=np.float64).ravel()
            bounds = Bounds(lb, ub)

        kwargs: Dict[str, Any] = {
            "method": config.method,
            "bounds": bounds,
            "options": config.to_scipy_options(),
        }
        if config.method in _GRADIENT_METHODS:
            kwargs["jac"] = config.finite_difference
        if callback is not None:
            kwargs["callback"] = callback

        return minimize(fun, x0, **kwargs)


def minimize_bounded(
    fun: Callable[[np.ndarray], float],
    x0: np.ndarray,
    lower: Optional[np.ndarray] = None,
    upper: Optional[np.ndarray] = None,
    config: Optional[SolverConfig] = None,
    solver: Optional[Solver] = None,
) -> Any:
    """
    Minimise a scalar objective inside a box.

    Args:
        fun: Objective f: R^n → R.
        x0: Initial parameters (n,).
        lower: Lower bounds (n,), or None for no lower limit.
        upper: Upper bounds (n,), or None for no upper limit.
        config: Solver options; defaults to SolverConfig().
        solver: Solver implementation; defaults to ScipyMinimizeSolver().

    Returns:
        The solver's result bundle, unmodified.

    Example:
        >>> result = minimize_bounded(lambda x: float(np.sum((x - 1.0) ** 2)),
        ...                           np.zeros(3), -2 * np.ones(3), 2 * np.ones(3))
        >>> np.round(result.x, 4)
        array([1., 1., 1.])
    """
    config = DEFAULT_SOLVER_CONFIG if config is None else config
    solver = ScipyMinimizeSolver() if solver is None else solver

    callback = None
    if config.report_progress:
        reporter = _ProgressReporter(fun)
        fun = reporter
        callback = reporter.callback

    return solver(fun, np.asarray(x0, dtype=np.float64).ravel(), lower, upper, config, callback)
