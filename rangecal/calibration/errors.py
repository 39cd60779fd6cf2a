"""Error and warning types raised by the calibration driver."""

from typing import Iterable, List


class InvalidInputError(ValueError):
    """Calibration inputs are structurally invalid.

    Raised before the optimizer is called. ``problems`` lists every
    violation found, not only the first one.
    """

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems: List[str] = list(problems)
        summary = "; ".join(self.problems) if self.problems else "invalid input"
        super().__init__(f"Invalid calibration input ({len(self.problems)} problem(s)): {summary}")


class CalibrationConvergenceWarning(UserWarning):
    """The optimizer stopped without meeting its convergence tolerances."""


class UnobservedFeatureWarning(UserWarning):
    """A feature row has no observing sensor and contributes zero cost."""
