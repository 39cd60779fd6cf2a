"""
Optimizers for the calibration objective.

Available:
    - SolverConfig: named solver options with documented defaults
    - minimize_bounded: box-constrained minimisation of a scalar objective
    - ScipyMinimizeSolver: default solver backed by scipy.optimize.minimize
"""

from rangecal.estimators.bounded_optimizer import (
    DEFAULT_SOLVER_CONFIG,
    ScipyMinimizeSolver,
    Solver,
    SolverConfig,
    load_solver_config,
    minimize_bounded,
)

__all__ = [
    "DEFAULT_SOLVER_CONFIG",
    "ScipyMinimizeSolver",
    "Solver",
    "SolverConfig",
    "load_solver_config",
    "minimize_bounded",
]
